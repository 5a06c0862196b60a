"""Create the portfolios table.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # One row per portfolio; blocks are a JSONB array replaced atomically on save
    op.execute("""
        CREATE TABLE portfolios (
            id TEXT PRIMARY KEY,
            owner_id TEXT NOT NULL,
            title TEXT NOT NULL,
            template TEXT NOT NULL DEFAULT 'gallery'
                CHECK (template IN ('gallery', 'about', 'contact')),
            theme TEXT NOT NULL DEFAULT 'default',
            blocks JSONB NOT NULL DEFAULT '[]'::jsonb,
            status TEXT NOT NULL DEFAULT 'draft' CHECK (status IN ('draft', 'published')),
            slug TEXT UNIQUE,
            minted_slug TEXT UNIQUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CHECK ((status = 'published') = (slug IS NOT NULL))
        );
    """)

    op.execute("CREATE INDEX idx_portfolios_owner_updated ON portfolios (owner_id, updated_at DESC);")
    op.execute("CREATE INDEX idx_portfolios_slug ON portfolios (slug) WHERE slug IS NOT NULL;")


def downgrade():
    op.execute("DROP TABLE IF EXISTS portfolios CASCADE")
