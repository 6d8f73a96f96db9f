"""Unit tests for db.users."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from db import users

_NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)

_USER_ROW = {
    "id": "1", "username": "filmfan", "name": "Film Fan", "avatar_url": None,
    "bio": "Slow cinema and noir.", "created_at": _NOW, "updated_at": _NOW,
}


@pytest.mark.asyncio
async def test_upsert_user_keeps_profile_fields_unless_supplied(mocker) -> None:
    execute_write = mocker.patch("db.users._execute_write", new=AsyncMock(return_value=_USER_ROW))
    user = await users.upsert_user(AsyncMock(), users.MOCK_USER_ID, users.MOCK_USERNAME)
    _, query, params = execute_write.await_args.args
    assert "bio = COALESCE(EXCLUDED.bio, users.bio)" in query
    assert params == ("1", "filmfan", None, None, None)
    assert user.bio == "Slow cinema and noir."


@pytest.mark.asyncio
async def test_update_user_profile_only_sets_supplied_fields(mocker) -> None:
    execute_write = mocker.patch("db.users._execute_write", new=AsyncMock(return_value=_USER_ROW))
    await users.update_user_profile(AsyncMock(), "1", bio="Slow cinema and noir.")
    _, query, params = execute_write.await_args.args
    assert "bio = %s" in query
    assert "name = %s" not in query
    assert "avatar_url" not in query.split("RETURNING")[0]
    assert "updated_at = now()" in query
    assert params == ("Slow cinema and noir.", "1")


@pytest.mark.asyncio
async def test_update_user_profile_returns_none_for_unknown_user(mocker) -> None:
    mocker.patch("db.users._execute_write", new=AsyncMock(return_value=None))
    assert await users.update_user_profile(AsyncMock(), "404", name="Nobody") is None


@pytest.mark.asyncio
async def test_fetch_user_maps_row(mocker) -> None:
    mocker.patch("db.users._execute_read_one", new=AsyncMock(return_value=_USER_ROW))
    user = await users.fetch_user(AsyncMock(), "1")
    assert user.username == "filmfan"
