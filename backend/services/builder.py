"""Process-wide PortfolioBuilder, wired to Postgres and R2."""

from __future__ import annotations

from backend import db
from backend.services.media import R2MediaStore
from engine.kernel.builder import PortfolioBuilder
from engine.kernel.postgres_storage import PostgresStorage

_builder: PortfolioBuilder | None = None


def get_builder() -> PortfolioBuilder:
    """
    FastAPI dependency. One builder per process so its per-portfolio
    locks are shared by every request.
    """
    global _builder
    if _builder is None:
        _builder = PortfolioBuilder(PostgresStorage(db.get_pool()), R2MediaStore())
    return _builder


def reset_builder() -> None:
    """Drop the cached builder. Called when the pool closes."""
    global _builder
    _builder = None
