"""Portfolio request/response models for the HTTP layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from engine.kernel.types import Block, Portfolio


class BlockIn(BaseModel):
    """One block inside a full-document save."""

    model_config = {"extra": "forbid"}

    id: str = Field(min_length=1)
    kind: str
    position: int = 0
    data: dict[str, Any] = Field(default_factory=dict)


class CreatePortfolioRequest(BaseModel):
    """What the client sends to create a portfolio."""

    model_config = {"extra": "forbid"}

    title: str
    template: str | None = None
    theme: str | None = None


class UpdatePortfolioRequest(BaseModel):
    """Partial update. `blocks`, when given, replaces the whole block list."""

    model_config = {"extra": "forbid"}

    title: str | None = None
    template: str | None = None
    theme: str | None = None
    blocks: list[BlockIn] | None = None


class AddBlockRequest(BaseModel):
    model_config = {"extra": "forbid"}

    kind: str
    data: dict[str, Any] | None = None
    position: int | None = None
    block_id: str | None = None


class UpdateBlockRequest(BaseModel):
    model_config = {"extra": "forbid"}

    data: dict[str, Any]


class MoveBlockRequest(BaseModel):
    model_config = {"extra": "forbid"}

    new_index: int


class ReorderBlocksRequest(BaseModel):
    """The ids given become the new membership; omitted blocks are dropped."""

    model_config = {"extra": "forbid"}

    block_ids: list[str]


class PublishRequest(BaseModel):
    model_config = {"extra": "forbid"}

    publish: bool


class BlockResponse(BaseModel):
    id: str
    kind: str
    position: int
    data: dict[str, Any]

    @classmethod
    def from_model(cls, block: Block) -> BlockResponse:
        return cls(id=block.id, kind=block.kind, position=block.position, data=block.data)


class PortfolioResponse(BaseModel):
    """What the API returns."""

    id: str
    title: str
    template: str
    theme: str
    status: str
    slug: str | None
    public_url: str | None
    blocks: list[BlockResponse]
    created_at: str
    updated_at: str

    @classmethod
    def from_model(cls, portfolio: Portfolio, public_base_url: str) -> PortfolioResponse:
        """Convert a kernel Portfolio to the public API response."""
        return cls(
            id=portfolio.id,
            title=portfolio.title,
            template=portfolio.template,
            theme=portfolio.theme,
            status=portfolio.status,
            slug=portfolio.slug,
            public_url=f"{public_base_url}/p/{portfolio.slug}" if portfolio.slug else None,
            blocks=[BlockResponse.from_model(b) for b in portfolio.blocks],
            created_at=portfolio.created_at,
            updated_at=portfolio.updated_at,
        )
