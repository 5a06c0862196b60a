"""Portfolio routes — list, create, get, update, delete, duplicate, publish, blocks."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import APIRouter, Depends, HTTPException, Response, status

from backend.auth import get_current_owner_id
from backend.config import settings
from backend.models.portfolio import (
    AddBlockRequest,
    CreatePortfolioRequest,
    MoveBlockRequest,
    PortfolioResponse,
    PublishRequest,
    ReorderBlocksRequest,
    UpdateBlockRequest,
    UpdatePortfolioRequest,
)
from backend.services.builder import get_builder
from engine.kernel.builder import Conflict, NotFound, PortfolioBuilder, ValidationFailed
from engine.kernel.renderer import build_render_plan
from engine.kernel.types import Portfolio

router = APIRouter(prefix="/api/portfolios", tags=["portfolios"])


@contextmanager
def builder_errors() -> Iterator[None]:
    """Translate builder failures into HTTP errors."""
    try:
        yield
    except ValidationFailed as e:
        raise HTTPException(
            status_code=422,
            detail={"field": e.field, "reason": e.reason, "errors": e.errors},
        ) from e
    except NotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{e.kind.capitalize()} not found.",
        ) from e
    except Conflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e


def _response(portfolio: Portfolio) -> PortfolioResponse:
    return PortfolioResponse.from_model(portfolio, settings.PUBLIC_URL)


@router.get("", status_code=200)
async def list_portfolios(
    owner_id: str = Depends(get_current_owner_id),
    builder: PortfolioBuilder = Depends(get_builder),
) -> list[PortfolioResponse]:
    """List the owner's portfolios, most recently updated first."""
    portfolios = await builder.list_portfolios(owner_id)
    return [_response(p) for p in portfolios]


@router.post("", status_code=201)
async def create_portfolio(
    req: CreatePortfolioRequest,
    owner_id: str = Depends(get_current_owner_id),
    builder: PortfolioBuilder = Depends(get_builder),
) -> PortfolioResponse:
    with builder_errors():
        portfolio = await builder.create_portfolio(owner_id, req.title, req.template, req.theme)
    return _response(portfolio)


@router.get("/{portfolio_id}", status_code=200)
async def get_portfolio(
    portfolio_id: str,
    owner_id: str = Depends(get_current_owner_id),
    builder: PortfolioBuilder = Depends(get_builder),
) -> PortfolioResponse:
    with builder_errors():
        portfolio = await builder.get_portfolio(portfolio_id, owner_id)
    return _response(portfolio)


@router.patch("/{portfolio_id}", status_code=200)
async def update_portfolio(
    portfolio_id: str,
    req: UpdatePortfolioRequest,
    owner_id: str = Depends(get_current_owner_id),
    builder: PortfolioBuilder = Depends(get_builder),
) -> PortfolioResponse:
    """
    Partial update. A `blocks` list is a full-document save: every block is
    re-validated and one bad block rejects the whole request.
    """
    blocks = [b.model_dump() for b in req.blocks] if req.blocks is not None else None
    with builder_errors():
        portfolio = await builder.update_portfolio(
            portfolio_id,
            owner_id,
            title=req.title,
            template=req.template,
            theme=req.theme,
            blocks=blocks,
        )
    return _response(portfolio)


@router.delete("/{portfolio_id}", status_code=204)
async def delete_portfolio(
    portfolio_id: str,
    owner_id: str = Depends(get_current_owner_id),
    builder: PortfolioBuilder = Depends(get_builder),
) -> Response:
    with builder_errors():
        await builder.delete_portfolio(portfolio_id, owner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{portfolio_id}/duplicate", status_code=201)
async def duplicate_portfolio(
    portfolio_id: str,
    owner_id: str = Depends(get_current_owner_id),
    builder: PortfolioBuilder = Depends(get_builder),
) -> PortfolioResponse:
    with builder_errors():
        portfolio = await builder.duplicate(portfolio_id, owner_id)
    return _response(portfolio)


@router.post("/{portfolio_id}/publish", status_code=200)
async def publish_portfolio(
    portfolio_id: str,
    req: PublishRequest,
    owner_id: str = Depends(get_current_owner_id),
    builder: PortfolioBuilder = Depends(get_builder),
) -> PortfolioResponse:
    """publish=true makes the page public; publish=false takes it down."""
    with builder_errors():
        portfolio = await builder.publish(portfolio_id, owner_id, req.publish)
    return _response(portfolio)


@router.get("/{portfolio_id}/preview", status_code=200)
async def preview_portfolio(
    portfolio_id: str,
    owner_id: str = Depends(get_current_owner_id),
    builder: PortfolioBuilder = Depends(get_builder),
) -> dict:
    """Render plan for the owner's editor preview, published or not."""
    with builder_errors():
        portfolio = await builder.get_portfolio(portfolio_id, owner_id)
    return build_render_plan(portfolio.template, portfolio.blocks, builder.media).to_dict()


# ── blocks ────────────────────────────────────────────────────────────────


@router.post("/{portfolio_id}/blocks", status_code=201)
async def add_block(
    portfolio_id: str,
    req: AddBlockRequest,
    owner_id: str = Depends(get_current_owner_id),
    builder: PortfolioBuilder = Depends(get_builder),
) -> PortfolioResponse:
    """Add a block. Omitted data uses the kind's default; omitted position appends."""
    with builder_errors():
        portfolio = await builder.add_block(
            portfolio_id,
            owner_id,
            req.kind,
            req.data,
            req.position,
            block_id=req.block_id,
        )
    return _response(portfolio)


@router.patch("/{portfolio_id}/blocks/{block_id}", status_code=200)
async def update_block(
    portfolio_id: str,
    block_id: str,
    req: UpdateBlockRequest,
    owner_id: str = Depends(get_current_owner_id),
    builder: PortfolioBuilder = Depends(get_builder),
) -> PortfolioResponse:
    with builder_errors():
        portfolio = await builder.update_block(portfolio_id, owner_id, block_id, req.data)
    return _response(portfolio)


@router.delete("/{portfolio_id}/blocks/{block_id}", status_code=200)
async def remove_block(
    portfolio_id: str,
    block_id: str,
    owner_id: str = Depends(get_current_owner_id),
    builder: PortfolioBuilder = Depends(get_builder),
) -> PortfolioResponse:
    with builder_errors():
        portfolio = await builder.remove_block(portfolio_id, owner_id, block_id)
    return _response(portfolio)


@router.post("/{portfolio_id}/blocks/{block_id}/move", status_code=200)
async def move_block(
    portfolio_id: str,
    block_id: str,
    req: MoveBlockRequest,
    owner_id: str = Depends(get_current_owner_id),
    builder: PortfolioBuilder = Depends(get_builder),
) -> PortfolioResponse:
    with builder_errors():
        portfolio = await builder.move_block(portfolio_id, owner_id, block_id, req.new_index)
    return _response(portfolio)


@router.put("/{portfolio_id}/blocks/order", status_code=200)
async def reorder_blocks(
    portfolio_id: str,
    req: ReorderBlocksRequest,
    owner_id: str = Depends(get_current_owner_id),
    builder: PortfolioBuilder = Depends(get_builder),
) -> PortfolioResponse:
    with builder_errors():
        portfolio = await builder.reorder_blocks(portfolio_id, owner_id, req.block_ids)
    return _response(portfolio)
