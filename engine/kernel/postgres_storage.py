"""
PostgresStorage adapter for the Folio kernel builder.

Implements the PortfolioStorage protocol using Postgres as the backend.
One row per portfolio; the block list is stored as a JSONB array so that
every structural edit is a single atomic row replace.
"""

from __future__ import annotations

import json
from datetime import datetime

import asyncpg

from engine.kernel.builder import PortfolioStorage
from engine.kernel.types import STATUS_PUBLISHED, Block, Portfolio


async def init_connection(conn: asyncpg.Connection) -> None:
    """
    Initialize each new connection.
    Decodes JSON/JSONB columns to Python lists and dicts.
    """
    for type_name in ("jsonb", "json"):
        await conn.set_type_codec(
            type_name,
            encoder=json.dumps,
            decoder=json.loads,
            schema="pg_catalog",
        )


def _to_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _from_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _row_to_portfolio(row: asyncpg.Record) -> Portfolio:
    """Convert a database row to a Portfolio."""
    return Portfolio(
        id=row["id"],
        owner_id=row["owner_id"],
        title=row["title"],
        template=row["template"],
        theme=row["theme"],
        blocks=[Block.from_dict(b) for b in row["blocks"]],
        status=row["status"],
        slug=row["slug"],
        minted_slug=row["minted_slug"],
        created_at=_from_timestamp(row["created_at"]),
        updated_at=_from_timestamp(row["updated_at"]),
    )


class PostgresStorage(PortfolioStorage):
    """
    Postgres-based storage for portfolios.

    The pool must be created with init=init_connection so JSONB round-trips
    as Python objects.
    """

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def get(self, portfolio_id: str) -> Portfolio | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM portfolios WHERE id = $1", portfolio_id)
            return _row_to_portfolio(row) if row else None

    async def put(self, portfolio: Portfolio) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO portfolios
                    (id, owner_id, title, template, theme, blocks, status, slug, minted_slug, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                ON CONFLICT (id)
                DO UPDATE SET
                    title = EXCLUDED.title,
                    template = EXCLUDED.template,
                    theme = EXCLUDED.theme,
                    blocks = EXCLUDED.blocks,
                    status = EXCLUDED.status,
                    slug = EXCLUDED.slug,
                    minted_slug = EXCLUDED.minted_slug,
                    updated_at = EXCLUDED.updated_at
                """,
                portfolio.id,
                portfolio.owner_id,
                portfolio.title,
                portfolio.template,
                portfolio.theme,
                [b.to_dict() for b in portfolio.blocks],
                portfolio.status,
                portfolio.slug,
                portfolio.minted_slug,
                _to_timestamp(portfolio.created_at),
                _to_timestamp(portfolio.updated_at),
            )

    async def delete(self, portfolio_id: str) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute("DELETE FROM portfolios WHERE id = $1", portfolio_id)
            return result == "DELETE 1"

    async def list_for_owner(self, owner_id: str) -> list[Portfolio]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM portfolios WHERE owner_id = $1 ORDER BY updated_at DESC",
                owner_id,
            )
            return [_row_to_portfolio(row) for row in rows]

    async def get_by_slug(self, slug: str) -> Portfolio | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM portfolios WHERE slug = $1 AND status = $2",
                slug,
                STATUS_PUBLISHED,
            )
            return _row_to_portfolio(row) if row else None

    async def slug_exists(self, slug: str) -> bool:
        async with self.pool.acquire() as conn:
            found = await conn.fetchval(
                "SELECT EXISTS (SELECT 1 FROM portfolios WHERE slug = $1 OR minted_slug = $1)",
                slug,
            )
            return bool(found)

    async def close(self) -> None:
        """Close the connection pool."""
        await self.pool.close()
