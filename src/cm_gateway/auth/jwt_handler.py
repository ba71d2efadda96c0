"""JWT token creation and verification (HS256, shared JWT_SECRET).

Access tokens carry the user id in `sub`; the escrow workflow trusts that
id as the acting party and derives seller/buyer roles from the records.
"""

from datetime import UTC, datetime, timedelta
from typing import NoReturn

from jose import JWTError, jwt

from config.settings import settings
from src.cm_common.errors import InvalidCredentialsError, InvalidRefreshTokenError

_ALGORITHM = settings.JWT_ALGORITHM
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
_REFRESH_EXPIRE = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)


def _issue(user_id: str, token_type: str, ttl: timedelta) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "type": token_type,
        "iat": now,
        "exp": now + ttl,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def create_access_token(user_id: str) -> str:
    """Issue a short-lived access token (default: 30 min)."""
    return _issue(user_id, "access", _ACCESS_EXPIRE)


def create_refresh_token(user_id: str) -> str:
    """Issue a long-lived refresh token (default: 7 days)."""
    return _issue(user_id, "refresh", _REFRESH_EXPIRE)


def decode_token(token: str, expected_type: str) -> dict[str, str]:
    """Decode and validate a JWT token.

    Args:
        token: Raw JWT string.
        expected_type: "access" or "refresh"; a token of the other type is
                       rejected.

    Raises:
        InvalidCredentialsError: invalid/expired token, expected_type="access".
        InvalidRefreshTokenError: invalid/expired token, expected_type="refresh".
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],
        )
    except JWTError:
        _raise_auth_error(expected_type)

    if payload.get("type") != expected_type:
        _raise_auth_error(expected_type)

    return payload


def _raise_auth_error(expected_type: str) -> NoReturn:
    if expected_type == "access":
        raise InvalidCredentialsError()
    raise InvalidRefreshTokenError()
