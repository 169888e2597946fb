"""
Common FastAPI dependencies
"""

from typing import Awaitable, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import AuthenticationError, JWTDecodeError
from app.core.jwt import decode_access_token
from app.schemas.principal import Principal, UserRole


bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    """
    JWT에서 요청 주체(사용자/조직/역할)를 추출하는 의존성.
    """

    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        payload = decode_access_token(credentials.credentials)
    except (JWTDecodeError, AuthenticationError):
        raise _unauthorized("Could not validate credentials")

    user_id = payload.get("sub")
    if user_id is None:
        raise _unauthorized("Invalid token payload")

    try:
        return Principal(
            user_id=str(user_id),
            organization_id=str(payload.get("organization_id") or ""),
            role=payload.get("role") or UserRole.USER,
        )
    except PydanticValidationError:
        raise _unauthorized("Invalid token claims")


def require_roles(*roles: UserRole) -> Callable[..., Awaitable[Principal]]:
    """
    지정한 역할 중 하나를 가진 주체만 통과시키는 의존성 팩토리.
    """

    allowed = set(roles)

    async def _dependency(
        current_principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        if current_principal.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role",
            )
        return current_principal

    return _dependency
