"""
Folio Kernel — Shared Types

Data classes used across blocks, ordering, builder, reducer, and renderer.
These are the contracts that bind the kernel together.

A portfolio owns an ordered list of blocks. Order lives in each block's
`position` field, kept dense (0..n-1) by the ordering engine.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# ---------------------------------------------------------------------------
# Block kind registry
# ---------------------------------------------------------------------------

BLOCK_KINDS: tuple[str, ...] = (
    "title",
    "richtext",
    "list",
    "images",
    "resume",
    "carousel",
    "divider",
    "link",
)

TEMPLATE_KINDS: tuple[str, ...] = ("gallery", "about", "contact")
DEFAULT_TEMPLATE = "gallery"
DEFAULT_THEME = "default"

VIEWPORT_MODES: set[str] = {"desktop", "mobile"}

STATUS_DRAFT = "draft"
STATUS_PUBLISHED = "published"

# Reserved media reference carried by default images/carousel payloads.
# Never released, resolved to a configured placeholder URL.
PLACEHOLDER_MEDIA_ID = "placeholder"

MAX_TITLE_LENGTH = 200


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class Block:
    """One typed content unit inside a portfolio."""

    id: str
    kind: str
    position: int
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "position": self.position,
            "data": copy.deepcopy(self.data),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Block:
        return cls(
            id=d["id"],
            kind=d["kind"],
            position=d.get("position", 0),
            data=copy.deepcopy(d.get("data") or {}),
        )


@dataclass
class Portfolio:
    """
    The aggregate: identity, metadata, ordered blocks, publish state.

    Publish state is Draft (status="draft", slug=None) or
    Published (status="published", slug set). The slug is cleared on unpublish;
    minted_slug keeps the first slug ever issued so re-publishing reuses it.
    """

    id: str
    owner_id: str
    title: str
    template: str = DEFAULT_TEMPLATE
    theme: str = DEFAULT_THEME
    blocks: list[Block] = field(default_factory=list)
    status: str = STATUS_DRAFT
    slug: str | None = None
    minted_slug: str | None = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def is_published(self) -> bool:
        return self.status == STATUS_PUBLISHED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "title": self.title,
            "template": self.template,
            "theme": self.theme,
            "blocks": [b.to_dict() for b in self.blocks],
            "status": self.status,
            "slug": self.slug,
            "minted_slug": self.minted_slug,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Portfolio:
        return cls(
            id=str(d["id"]),
            owner_id=str(d["owner_id"]),
            title=d.get("title", ""),
            template=d.get("template", DEFAULT_TEMPLATE),
            theme=d.get("theme", DEFAULT_THEME),
            blocks=[Block.from_dict(b) for b in d.get("blocks", [])],
            status=d.get("status", STATUS_DRAFT),
            slug=d.get("slug"),
            minted_slug=d.get("minted_slug"),
            created_at=d.get("created_at", ""),
            updated_at=d.get("updated_at", ""),
        )


@dataclass
class ValidationResult:
    """Outcome of a structural validator. Validators never raise."""

    valid: bool
    errors: list[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> ValidationResult:
        return cls(valid=not errors, errors=list(errors))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def new_id() -> str:
    """Opaque identity for portfolios and blocks."""
    return str(uuid.uuid4())


def new_slug() -> str:
    """Short public slug, safe as a URL path segment."""
    return f"p-{uuid.uuid4().hex[:10]}"


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


# ---------------------------------------------------------------------------
# Editor (client mirror) types
# ---------------------------------------------------------------------------


@dataclass
class Action:
    """One editor verb. The reducer reads only `type` and `payload`."""

    type: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class EditorState:
    """
    The editor's local view of one portfolio.

    selected_block_id is a lookup key only. saved is the last copy known to
    match the server, restored by editor.revert. viewport_mode is display-only.
    """

    portfolio: Portfolio | None = None
    selected_block_id: str | None = None
    is_dirty: bool = False
    is_preview_mode: bool = False
    viewport_mode: str = "desktop"
    saved: Portfolio | None = None


@dataclass
class ReduceResult:
    """
    Result of applying one action to an editor state.
    The reducer never throws; it always returns one of these.
    """

    state: EditorState
    applied: bool
    warning: str | None = None
