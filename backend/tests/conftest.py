"""
Pytest configuration and fixtures for Folio backend tests.

Route tests run against an in-memory builder; no database or R2 needed.
"""

from __future__ import annotations

import os

# Set test environment variables before importing config
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only")
os.environ.setdefault("PUBLIC_URL", "https://folio.test")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from backend.auth import create_jwt  # noqa: E402
from backend.main import app  # noqa: E402
from backend.services.builder import get_builder  # noqa: E402
from engine.kernel.builder import MemoryStorage, PortfolioBuilder  # noqa: E402
from engine.kernel.media import MemoryMedia  # noqa: E402


@pytest.fixture
def media():
    return MemoryMedia(base_url="https://media.test")


@pytest.fixture
def builder(media):
    """In-memory builder injected in place of the Postgres-backed one."""
    builder = PortfolioBuilder(MemoryStorage(), media)
    app.dependency_overrides[get_builder] = lambda: builder
    yield builder
    app.dependency_overrides.pop(get_builder, None)


@pytest_asyncio.fixture
async def async_client(builder):
    """Async HTTP client against the ASGI app."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def owner_id():
    return "owner_alice"


@pytest.fixture
def other_owner_id():
    return "owner_bob"


@pytest.fixture
def auth(owner_id):
    """Authorization header for the primary test owner."""
    return {"Authorization": f"Bearer {create_jwt(owner_id)}"}


@pytest.fixture
def other_auth(other_owner_id):
    return {"Authorization": f"Bearer {create_jwt(other_owner_id)}"}
