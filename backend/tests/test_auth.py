"""
Tests for JWT sessions and the owner dependency.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest
from fastapi import HTTPException

from backend.auth import create_jwt, decode_jwt, get_current_owner_id
from backend.config import settings


class TestJWT:
    """Test JWT creation and validation."""

    def test_round_trip(self):
        token = create_jwt("owner_1")
        payload = decode_jwt(token)

        assert payload["sub"] == "owner_1"
        assert "exp" in payload
        assert "iat" in payload

    def test_decode_expired_jwt(self):
        """An expired token → 401 asking to sign in again."""
        payload = {
            "sub": "owner_1",
            "exp": datetime.now(UTC) - timedelta(hours=1),
            "iat": datetime.now(UTC) - timedelta(hours=2),
        }
        token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(HTTPException) as exc:
            decode_jwt(token)
        assert exc.value.status_code == 401
        assert "expired" in exc.value.detail

    def test_decode_wrong_secret(self):
        token = jwt.encode({"sub": "owner_1"}, "another-secret", algorithm="HS256")
        with pytest.raises(HTTPException) as exc:
            decode_jwt(token)
        assert exc.value.status_code == 401


class TestOwnerDependency:
    """get_current_owner_id reads the header first, then the cookie."""

    @pytest.mark.asyncio
    async def test_bearer_header(self):
        owner = await get_current_owner_id(authorization=f"Bearer {create_jwt('owner_h')}")
        assert owner == "owner_h"

    @pytest.mark.asyncio
    async def test_cookie(self):
        assert await get_current_owner_id(session=create_jwt("owner_c")) == "owner_c"

    @pytest.mark.asyncio
    async def test_header_wins_over_cookie(self):
        owner = await get_current_owner_id(
            session=create_jwt("owner_c"),
            authorization=f"Bearer {create_jwt('owner_h')}",
        )
        assert owner == "owner_h"

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        with pytest.raises(HTTPException) as exc:
            await get_current_owner_id()
        assert exc.value.status_code == 401

    @pytest.mark.asyncio
    async def test_token_without_subject(self):
        token = jwt.encode({"exp": datetime.now(UTC) + timedelta(hours=1)}, settings.JWT_SECRET, algorithm="HS256")
        with pytest.raises(HTTPException) as exc:
            await get_current_owner_id(session=token)
        assert exc.value.status_code == 401
