"""
Bearer token helpers

Tokens are issued by the external identity provider. The layout service only
verifies them and reads the ``sub``, ``role`` and ``organization_id`` claims.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from app.core.config import settings
from app.core.exceptions import JWTDecodeError
from app.schemas.principal import Principal


def create_access_token(claims: dict, expires_delta: timedelta | None = None) -> str:
    """
    Sign ``claims`` with an ``exp`` claim added

    Used by local tooling and tests in place of the identity provider.
    """
    to_encode = dict(claims)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = datetime.now(timezone.utc) + lifetime
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_principal_token(principal: Principal, expires_delta: timedelta | None = None) -> str:
    """주체 정보를 레이아웃 서비스가 읽는 클레임 형태로 서명"""
    return create_access_token(
        {
            "sub": principal.user_id,
            "role": principal.role.value,
            "organization_id": principal.organization_id,
        },
        expires_delta,
    )


def decode_access_token(token: str) -> dict:
    """
    Verify signature and expiry, returning the raw claims

    Raises:
        JWTDecodeError: if token is invalid or expired
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        raise JWTDecodeError("Invalid or expired access token") from exc
