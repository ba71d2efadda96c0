"""User domain service: register, login, refresh.

All DB operations use the injected AsyncSession. Transactions are managed
by the caller (router layer) via `async with db.begin()`.
"""

import logging

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    UsernameExistsError,
)
from src.cm_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.cm_gateway.auth.password import hash_password, verify_password
from src.cm_gateway.user.db_models import UserModel

logger = logging.getLogger(__name__)

# Every user starts with a perfect legit rate; see cm_reputation.
_INSERT_PROFILE_SQL = text("""
    INSERT INTO profiles (id, email, display_name)
    VALUES (:user_id, :email, :display_name)
""")


class UserService:
    """Stateless service — instantiate once, reuse across requests."""

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        db: AsyncSession,
    ) -> UserModel:
        """Register a new user and create their marketplace profile row.

        `users` and `profiles` are inserted in the caller's transaction.
        The caller must wrap this in `async with db.begin()`.
        """
        result = await db.execute(
            select(UserModel).where(UserModel.username == username)
        )
        if result.scalar_one_or_none() is not None:
            raise UsernameExistsError()

        result = await db.execute(
            select(UserModel).where(UserModel.email == email)
        )
        if result.scalar_one_or_none() is not None:
            raise EmailExistsError()

        user = UserModel(
            username=username,
            email=email,
            password_hash=hash_password(password),
            is_active=True,
        )
        db.add(user)
        await db.flush()  # Get user.id without committing

        await db.execute(
            _INSERT_PROFILE_SQL,
            {"user_id": str(user.id), "email": email, "display_name": username},
        )
        logger.info("Registered user %s", user.id)
        return user

    async def login(
        self,
        username: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Authenticate user and return (user, access_token, refresh_token).

        "User not found" and "wrong password" both raise InvalidCredentialsError
        so usernames cannot be enumerated.
        """
        result = await db.execute(
            select(UserModel).where(UserModel.username == username)
        )
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        return (
            user,
            create_access_token(str(user.id)),
            create_refresh_token(str(user.id)),
        )

    async def refresh(self, refresh_token: str) -> str:
        """Validate refresh token and return a new access token."""
        payload = decode_token(refresh_token, expected_type="refresh")
        user_id: str = str(payload["sub"])
        return create_access_token(user_id)
