"""FastAPI dependencies for the acting user.

Usage in any protected router:
    from src.cm_gateway.auth.dependencies import get_current_user_id

    @router.post("/transactions/{transaction_id}/complete")
    async def complete(user_id: Annotated[str, Depends(get_current_user_id)]):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.cm_common.database import get_db_session
from src.cm_common.errors import AccountDisabledError, InvalidCredentialsError
from src.cm_gateway.auth.jwt_handler import decode_token
from src.cm_gateway.user.db_models import UserModel

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Validate the Bearer token and load the user.

    Raises HTTP 401 if the token is missing, invalid, or expired, and
    AccountDisabledError (403) if the account is disabled.
    """
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION

    if not user.is_active:
        raise AccountDisabledError()

    return user


async def get_current_user_id(
    current_user: UserModel = Depends(get_current_user),
) -> str:
    """The acting user's id as the string stored in seller_id/buyer_id columns."""
    return str(current_user.id)
