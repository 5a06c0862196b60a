"""
Folio Kernel — Builder

The authoritative mutation surface for portfolios. Sits between the pure
functions (blocks, ordering) and the outside world (storage, media).

Operations: create, get, list, update, add/update/remove/move/reorder block,
publish, duplicate, delete.

Every operation takes (portfolio_id, owner_id) and checks ownership first.
A portfolio that does not exist and one owned by someone else look the same
from outside: NotFound. One logical operation runs at a time per portfolio.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import weakref
from dataclasses import replace
from typing import Any
from uuid import UUID

from engine.kernel.blocks import (
    default_block_data,
    media_references,
    sanitize_block_data,
    validate_block,
    validate_block_data,
)
from engine.kernel.media import MediaStore
from engine.kernel.ordering import insert_at, move_to, normalize, remove_by_id, reorder_by_ids
from engine.kernel.types import (
    BLOCK_KINDS,
    DEFAULT_TEMPLATE,
    DEFAULT_THEME,
    MAX_TITLE_LENGTH,
    PLACEHOLDER_MEDIA_ID,
    STATUS_DRAFT,
    STATUS_PUBLISHED,
    TEMPLATE_KINDS,
    Block,
    Portfolio,
    new_id,
    new_slug,
    now_iso,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class BuilderError(Exception):
    """Base for every failure the builder reports."""


class ValidationFailed(BuilderError):
    """Input is malformed. Nothing was applied."""

    def __init__(self, field: str, reason: str, errors: list[str] | None = None):
        self.field = field
        self.reason = reason
        self.errors = errors or [reason]
        super().__init__(f"{field}: {reason}")


class NotFound(BuilderError):
    """Portfolio or block absent, or not owned by the caller."""

    def __init__(self, kind: str, id: str):
        self.kind = kind
        self.id = id
        super().__init__(f"{kind} not found: {id}")


class Conflict(BuilderError):
    """Identity or slug generation kept colliding."""


# ---------------------------------------------------------------------------
# Storage protocol
# ---------------------------------------------------------------------------


class PortfolioStorage:
    """
    Abstract storage interface.
    Implement with Postgres for production, or in-memory for tests.
    """

    async def get(self, portfolio_id: str) -> Portfolio | None:
        """Fetch a portfolio by id. Returns None if not found."""
        raise NotImplementedError

    async def put(self, portfolio: Portfolio) -> None:
        """Atomically replace (or insert) the whole aggregate."""
        raise NotImplementedError

    async def delete(self, portfolio_id: str) -> bool:
        """Delete a portfolio. Returns False if it did not exist."""
        raise NotImplementedError

    async def list_for_owner(self, owner_id: str) -> list[Portfolio]:
        """All portfolios of an owner, most recently updated first."""
        raise NotImplementedError

    async def get_by_slug(self, slug: str) -> Portfolio | None:
        """Fetch a published portfolio by its public slug."""
        raise NotImplementedError

    async def slug_exists(self, slug: str) -> bool:
        """True if any portfolio has ever been issued this slug."""
        raise NotImplementedError


class MemoryStorage(PortfolioStorage):
    """In-memory storage for testing."""

    def __init__(self) -> None:
        self.portfolios: dict[str, Portfolio] = {}

    async def get(self, portfolio_id: str) -> Portfolio | None:
        found = self.portfolios.get(portfolio_id)
        return copy.deepcopy(found) if found else None

    async def put(self, portfolio: Portfolio) -> None:
        self.portfolios[portfolio.id] = copy.deepcopy(portfolio)

    async def delete(self, portfolio_id: str) -> bool:
        return self.portfolios.pop(portfolio_id, None) is not None

    async def list_for_owner(self, owner_id: str) -> list[Portfolio]:
        owned = [copy.deepcopy(p) for p in self.portfolios.values() if p.owner_id == owner_id]
        return sorted(owned, key=lambda p: p.updated_at, reverse=True)

    async def get_by_slug(self, slug: str) -> Portfolio | None:
        for p in self.portfolios.values():
            if p.slug == slug and p.status == STATUS_PUBLISHED:
                return copy.deepcopy(p)
        return None

    async def slug_exists(self, slug: str) -> bool:
        return any(slug in (p.slug, p.minted_slug) for p in self.portfolios.values())


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class PortfolioBuilder:
    """
    Owner-scoped operations on portfolios.
    Coordinates validation + ordering + storage + media.
    """

    def __init__(
        self,
        storage: PortfolioStorage,
        media: MediaStore | None = None,
        *,
        max_id_attempts: int = 5,
    ):
        self._storage = storage
        self._media = media
        self._max_id_attempts = max_id_attempts
        # Entries vanish once no operation holds the lock.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    @property
    def media(self) -> MediaStore | None:
        """The media collaborator, shared with the renderer."""
        return self._media

    def _get_lock(self, portfolio_id: str) -> asyncio.Lock:
        """Per-portfolio asyncio lock for single-instance serialization."""
        lock = self._locks.get(portfolio_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[portfolio_id] = lock
        return lock

    # -- create / read --

    async def create_portfolio(
        self,
        owner_id: str | UUID,
        title: str,
        template: str | None = None,
        theme: str | None = None,
    ) -> Portfolio:
        """Create an empty Draft portfolio."""
        _check_title(title)
        if template is not None:
            _check_template(template)
        if theme is not None:
            _check_theme(theme)

        now = now_iso()
        portfolio = Portfolio(
            id=await self._fresh_portfolio_id(),
            owner_id=str(owner_id),
            title=title,
            template=template or DEFAULT_TEMPLATE,
            theme=theme or DEFAULT_THEME,
            created_at=now,
            updated_at=now,
        )
        await self._storage.put(portfolio)
        return portfolio

    async def get_portfolio(self, portfolio_id: str | UUID, owner_id: str | UUID) -> Portfolio:
        return await self._load_owned(str(portfolio_id), owner_id)

    async def list_portfolios(self, owner_id: str | UUID) -> list[Portfolio]:
        return await self._storage.list_for_owner(str(owner_id))

    async def get_published(self, slug: str) -> Portfolio:
        """Public lookup. Only published portfolios are visible."""
        portfolio = await self._storage.get_by_slug(slug)
        if portfolio is None or not portfolio.is_published:
            raise NotFound("portfolio", slug)
        return portfolio

    # -- metadata --

    async def update_portfolio(
        self,
        portfolio_id: str | UUID,
        owner_id: str | UUID,
        *,
        title: str | None = None,
        template: str | None = None,
        theme: str | None = None,
        blocks: list[Block] | list[dict[str, Any]] | None = None,
    ) -> Portfolio:
        """
        Partial update. Only the fields given change.

        `blocks` replaces the whole block list. Every block is re-validated
        first; one bad block rejects the entire update.
        """
        if title is not None:
            _check_title(title)
        if template is not None:
            _check_template(template)
        if theme is not None:
            _check_theme(theme)
        new_blocks = _coerce_blocks(blocks) if blocks is not None else None

        async with self._get_lock(str(portfolio_id)):
            portfolio = await self._load_owned(str(portfolio_id), owner_id)
            if title is not None:
                portfolio.title = title
            if template is not None:
                portfolio.template = template
            if theme is not None:
                portfolio.theme = theme
            if new_blocks is not None:
                portfolio.blocks = new_blocks
            return await self._commit(portfolio)

    # -- blocks --

    async def add_block(
        self,
        portfolio_id: str | UUID,
        owner_id: str | UUID,
        kind: str,
        data: dict[str, Any] | None = None,
        position: int | None = None,
        *,
        block_id: str | None = None,
    ) -> Portfolio:
        """
        Validate a new block and insert it at `position` (append when omitted).

        block_id lets an optimistic client keep the id it already shows; it must
        be a non-empty string not yet used in this portfolio.
        """
        if block_id is not None and (not isinstance(block_id, str) or not block_id.strip()):
            raise ValidationFailed("block_id", "Block id must be a non-empty string")
        if kind not in BLOCK_KINDS:
            raise ValidationFailed("kind", f"Unknown block kind: {kind}")
        if position is not None and (not isinstance(position, int) or isinstance(position, bool)):
            raise ValidationFailed("position", "position must be an integer")
        payload = _checked_data(kind, default_block_data(kind) if data is None else data, "data")

        async with self._get_lock(str(portfolio_id)):
            portfolio = await self._load_owned(str(portfolio_id), owner_id)
            index = len(portfolio.blocks) if position is None else position
            taken = {b.id for b in portfolio.blocks}
            if block_id is not None and block_id in taken:
                raise Conflict(f"block id already in use: {block_id}")
            block = Block(
                id=block_id or self._fresh_block_id(taken),
                kind=kind,
                position=index,
                data=payload,
            )
            portfolio.blocks = insert_at(portfolio.blocks, block, index)
            return await self._commit(portfolio)

    async def update_block(
        self,
        portfolio_id: str | UUID,
        owner_id: str | UUID,
        block_id: str,
        partial_data: dict[str, Any],
    ) -> Portfolio:
        """Merge partial_data into a block's payload and re-validate the result."""
        if not isinstance(partial_data, dict):
            raise ValidationFailed("data", "Block data must be an object")

        async with self._get_lock(str(portfolio_id)):
            portfolio = await self._load_owned(str(portfolio_id), owner_id)
            existing = next((b for b in portfolio.blocks if b.id == block_id), None)
            if existing is None:
                raise NotFound("block", block_id)

            merged = _checked_data(existing.kind, {**existing.data, **partial_data}, "data")
            portfolio.blocks = [replace(b, data=merged) if b.id == block_id else b for b in portfolio.blocks]
            return await self._commit(portfolio)

    async def remove_block(self, portfolio_id: str | UUID, owner_id: str | UUID, block_id: str) -> Portfolio:
        """Remove a block. Unknown block ids leave the portfolio as it was."""
        async with self._get_lock(str(portfolio_id)):
            portfolio = await self._load_owned(str(portfolio_id), owner_id)
            portfolio.blocks = remove_by_id(portfolio.blocks, block_id)
            return await self._commit(portfolio)

    async def move_block(
        self,
        portfolio_id: str | UUID,
        owner_id: str | UUID,
        block_id: str,
        new_index: int,
    ) -> Portfolio:
        """Move one block to new_index, clamped to the block count."""
        if not isinstance(new_index, int) or isinstance(new_index, bool):
            raise ValidationFailed("new_index", "new_index must be an integer")

        async with self._get_lock(str(portfolio_id)):
            portfolio = await self._load_owned(str(portfolio_id), owner_id)
            if not any(b.id == block_id for b in portfolio.blocks):
                raise NotFound("block", block_id)
            portfolio.blocks = move_to(portfolio.blocks, block_id, new_index)
            return await self._commit(portfolio)

    async def reorder_blocks(
        self,
        portfolio_id: str | UUID,
        owner_id: str | UUID,
        block_ids: list[str],
    ) -> Portfolio:
        """
        Apply an explicit order. The ids given become the new membership:
        any block left out is dropped.
        """
        if not isinstance(block_ids, list) or not all(isinstance(i, str) for i in block_ids):
            raise ValidationFailed("block_ids", "block_ids must be a list of strings")

        async with self._get_lock(str(portfolio_id)):
            portfolio = await self._load_owned(str(portfolio_id), owner_id)
            portfolio.blocks = reorder_by_ids(portfolio.blocks, block_ids)
            return await self._commit(portfolio)

    # -- publish --

    async def publish(self, portfolio_id: str | UUID, owner_id: str | UUID, should_publish: bool) -> Portfolio:
        """
        Draft -> Published mints a slug the first time and reuses it after.
        Published -> Draft clears the public slug. Same-state calls are no-ops.
        """
        async with self._get_lock(str(portfolio_id)):
            portfolio = await self._load_owned(str(portfolio_id), owner_id)

            if should_publish:
                if portfolio.is_published:
                    return portfolio
                if portfolio.minted_slug is None:
                    portfolio.minted_slug = await self._fresh_slug()
                portfolio.slug = portfolio.minted_slug
                portfolio.status = STATUS_PUBLISHED
                logger.info("publish: portfolio=%s slug=%s", portfolio.id, portfolio.slug)
            else:
                if not portfolio.is_published:
                    return portfolio
                portfolio.slug = None
                portfolio.status = STATUS_DRAFT
                logger.info("unpublish: portfolio=%s", portfolio.id)

            return await self._commit(portfolio)

    # -- duplicate --

    async def duplicate(self, portfolio_id: str | UUID, owner_id: str | UUID) -> Portfolio:
        """
        Deep copy metadata and blocks under fresh identities.
        The copy is always a Draft with no slug.
        """
        source = await self._load_owned(str(portfolio_id), owner_id)

        taken: set[str] = {b.id for b in source.blocks}
        blocks: list[Block] = []
        for block in normalize(source.blocks):
            block_id = self._fresh_block_id(taken)
            taken.add(block_id)
            blocks.append(replace(block, id=block_id, data=copy.deepcopy(block.data)))

        now = now_iso()
        copy_ = Portfolio(
            id=await self._fresh_portfolio_id(),
            owner_id=source.owner_id,
            title=f"{source.title} (Copy)"[:MAX_TITLE_LENGTH],
            template=source.template,
            theme=source.theme,
            blocks=blocks,
            created_at=now,
            updated_at=now,
        )
        await self._storage.put(copy_)
        logger.info("duplicate: portfolio=%s copy=%s", source.id, copy_.id)
        return copy_

    # -- delete --

    async def delete_portfolio(self, portfolio_id: str | UUID, owner_id: str | UUID) -> None:
        """
        Delete a portfolio, then release its media references.
        Release failures are logged and never surface to the caller.
        """
        async with self._get_lock(str(portfolio_id)):
            portfolio = await self._load_owned(str(portfolio_id), owner_id)
            if not await self._storage.delete(portfolio.id):
                raise NotFound("portfolio", portfolio.id)
        logger.info("delete: portfolio=%s", portfolio.id)

        if self._media is None:
            return
        refs: list[str] = []
        for block in portfolio.blocks:
            for ref in media_references(block):
                if ref != PLACEHOLDER_MEDIA_ID and ref not in refs:
                    refs.append(ref)
        for ref in refs:
            try:
                await self._media.release(ref)
            except Exception as e:
                logger.warning("delete: failed to release media %s for portfolio=%s: %s", ref, portfolio.id, e)

    # -- internals --

    async def _load_owned(self, portfolio_id: str, owner_id: str | UUID) -> Portfolio:
        portfolio = await self._storage.get(portfolio_id)
        if portfolio is None or portfolio.owner_id != str(owner_id):
            raise NotFound("portfolio", portfolio_id)
        return portfolio

    async def _commit(self, portfolio: Portfolio) -> Portfolio:
        portfolio.blocks = normalize(portfolio.blocks)
        portfolio.updated_at = now_iso()
        await self._storage.put(portfolio)
        return portfolio

    async def _fresh_portfolio_id(self) -> str:
        for _ in range(self._max_id_attempts):
            candidate = new_id()
            if await self._storage.get(candidate) is None:
                return candidate
            logger.warning("portfolio id collision: %s", candidate)
        raise Conflict("could not allocate a portfolio id")

    async def _fresh_slug(self) -> str:
        for _ in range(self._max_id_attempts):
            candidate = new_slug()
            if not await self._storage.slug_exists(candidate):
                return candidate
            logger.warning("slug collision: %s", candidate)
        raise Conflict("could not allocate a public slug")

    def _fresh_block_id(self, taken: set[str]) -> str:
        for _ in range(self._max_id_attempts):
            candidate = new_id()
            if candidate not in taken:
                return candidate
            logger.warning("block id collision: %s", candidate)
        raise Conflict("could not allocate a block id")


# ---------------------------------------------------------------------------
# Input checks
# ---------------------------------------------------------------------------


def _check_title(title: Any) -> None:
    if not isinstance(title, str) or not title.strip():
        raise ValidationFailed("title", "Title is required")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationFailed("title", f"Title must be at most {MAX_TITLE_LENGTH} characters")


def _check_template(template: Any) -> None:
    if template not in TEMPLATE_KINDS:
        raise ValidationFailed("template", f"Template must be one of: {', '.join(TEMPLATE_KINDS)}")


def _check_theme(theme: Any) -> None:
    if not isinstance(theme, str) or not theme.strip():
        raise ValidationFailed("theme", "Theme must be a non-empty string")


def _checked_data(kind: str, data: Any, field: str) -> dict[str, Any]:
    """Sanitize then validate a payload; raise ValidationFailed on any error."""
    cleaned = sanitize_block_data(kind, data)
    result = validate_block_data(kind, cleaned)
    if not result.valid:
        raise ValidationFailed(field, "; ".join(result.errors), result.errors)
    return cleaned


def _coerce_blocks(raw: list[Block] | list[dict[str, Any]]) -> list[Block]:
    """
    Turn a bulk block list into validated, densely ordered Blocks.
    All-or-nothing: the first invalid block raises.
    """
    if not isinstance(raw, list):
        raise ValidationFailed("blocks", "blocks must be a list")

    blocks: list[Block] = []
    seen: set[str] = set()
    for i, item in enumerate(raw):
        field = f"blocks[{i}]"
        if isinstance(item, Block):
            block = item
        elif isinstance(item, dict):
            if "id" not in item or "kind" not in item:
                raise ValidationFailed(field, "Block requires 'id' and 'kind'")
            block = Block(
                id=item["id"],
                kind=item["kind"],
                position=item.get("position", i),
                data=item.get("data", {}),
            )
        else:
            raise ValidationFailed(field, "Block must be an object")

        block = replace(block, data=sanitize_block_data(block.kind, block.data))
        result = validate_block(block)
        if not result.valid:
            raise ValidationFailed(field, "; ".join(result.errors), result.errors)
        if block.id in seen:
            raise ValidationFailed(field, f"Duplicate block id: {block.id}")
        seen.add(block.id)
        blocks.append(block)

    return normalize(blocks)
