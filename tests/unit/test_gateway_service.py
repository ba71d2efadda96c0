"""Unit tests for user service (mocked DB)."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.cm_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    UsernameExistsError,
)
from src.cm_gateway.user.db_models import UserModel
from src.cm_gateway.user.service import UserService


def _make_user(is_active: bool = True) -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4()
    user.username = "misty"
    user.email = "misty@example.com"
    user.password_hash = "$2b$12$fakehash"
    user.is_active = is_active
    return user


def _scalar(value) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def mock_db() -> AsyncMock:
    db = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def service() -> UserService:
    return UserService()


class TestRegister:
    async def test_duplicate_username_raises_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_scalar(_make_user()))

        with pytest.raises(UsernameExistsError):
            await service.register("misty", "new@email.com", "Pass1word", mock_db)

    async def test_duplicate_email_raises_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(side_effect=[_scalar(None), _scalar(_make_user())])

        with pytest.raises(EmailExistsError):
            await service.register("brock", "misty@example.com", "Pass1word", mock_db)

    async def test_success_creates_profile_row(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        new_id = uuid.uuid4()

        async def _flush() -> None:
            mock_db.add.call_args.args[0].id = new_id

        mock_db.execute = AsyncMock(side_effect=[_scalar(None), _scalar(None), MagicMock()])
        mock_db.flush = AsyncMock(side_effect=_flush)

        with patch("src.cm_gateway.user.service.hash_password", return_value="hashed"):
            user = await service.register("brock", "brock@example.com", "Pass1word", mock_db)

        assert user.username == "brock"
        assert user.password_hash == "hashed"
        profile_params = mock_db.execute.call_args_list[2].args[1]
        assert profile_params == {
            "user_id": str(new_id),
            "email": "brock@example.com",
            "display_name": "brock",
        }


class TestLogin:
    async def test_unknown_username_raises_credentials_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_scalar(None))

        with pytest.raises(InvalidCredentialsError):
            await service.login("nobody", "Pass1word", mock_db)

    async def test_wrong_password_raises_credentials_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_scalar(_make_user()))

        with (
            patch("src.cm_gateway.user.service.verify_password", return_value=False),
            pytest.raises(InvalidCredentialsError),
        ):
            await service.login("misty", "WrongPass1", mock_db)

    async def test_disabled_account_raises_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_scalar(_make_user(is_active=False)))

        with (
            patch("src.cm_gateway.user.service.verify_password", return_value=True),
            pytest.raises(AccountDisabledError),
        ):
            await service.login("misty", "Pass1word", mock_db)

    async def test_success_returns_user_and_token_pair(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value=_scalar(_make_user()))

        with patch("src.cm_gateway.user.service.verify_password", return_value=True):
            user, access, refresh = await service.login("misty", "Pass1word", mock_db)

        assert user.username == "misty"
        assert access != refresh


class TestRefresh:
    async def test_invalid_refresh_token_raises_error(self, service: UserService) -> None:
        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh("not.a.real.token")

    async def test_access_token_used_as_refresh_raises_error(self, service: UserService) -> None:
        from src.cm_gateway.auth.jwt_handler import create_access_token

        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh(create_access_token("user-123"))
