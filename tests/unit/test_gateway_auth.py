"""Unit tests for JWT verification and the auth dependencies."""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException
from jose import jwt

from config.settings import settings
from src.bx_common.errors import AccountDisabledError, AdminRequiredError, InvalidCredentialsError
from src.bx_gateway.auth.dependencies import get_current_user, require_admin
from src.bx_gateway.auth.jwt_handler import create_access_token, decode_access_token
from src.bx_gateway.user.db_models import UserModel


def _db_returning(user: UserModel | None) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = user
    db = MagicMock()
    db.execute = AsyncMock(return_value=result)
    return db


def _user(*, active: bool = True, admin: bool = False) -> UserModel:
    return UserModel(
        id=uuid.uuid4(), username="alice", email="a@example.com",
        is_active=active, is_admin=admin,
    )


def test_access_token_claims() -> None:
    payload = jwt.get_unverified_claims(create_access_token("user-123"))
    assert payload["sub"] == "user-123"
    assert payload["type"] == "access"


def test_decode_valid_token() -> None:
    assert decode_access_token(create_access_token("user-abc"))["sub"] == "user-abc"


def test_expired_token() -> None:
    token = create_access_token("user-abc", expires_in=timedelta(seconds=-1))
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_wrong_secret() -> None:
    token = jwt.encode({"sub": "u", "type": "access"}, "other-secret", algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_wrong_token_type() -> None:
    token = jwt.encode({"sub": "u", "type": "refresh"}, settings.JWT_SECRET, algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


class TestGetCurrentUser:
    async def test_returns_user(self) -> None:
        user = _user()
        token = create_access_token(str(user.id))
        assert await get_current_user(token, _db_returning(user)) is user

    async def test_unknown_user_is_401(self) -> None:
        token = create_access_token(str(uuid.uuid4()))
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(token, _db_returning(None))
        assert exc_info.value.status_code == 401

    async def test_bad_token_is_401(self) -> None:
        with pytest.raises(HTTPException):
            await get_current_user("garbage", _db_returning(None))

    async def test_disabled_user(self) -> None:
        user = _user(active=False)
        token = create_access_token(str(user.id))
        with pytest.raises(AccountDisabledError):
            await get_current_user(token, _db_returning(user))


class TestRequireAdmin:
    async def test_admin_passes(self) -> None:
        admin = _user(admin=True)
        assert await require_admin(admin) is admin

    async def test_member_rejected(self) -> None:
        with pytest.raises(AdminRequiredError):
            await require_admin(_user())
