"""Acting principal schemas"""

import enum

from pydantic import Field

from app.schemas.base import BaseSchema


class UserRole(str, enum.Enum):
    """조직 내 사용자 역할 (권한 오름차순)"""

    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]


_ROLE_RANK: dict[UserRole, int] = {
    UserRole.USER: 0,
    UserRole.ADMIN: 1,
    UserRole.SUPER_ADMIN: 2,
}


class Principal(BaseSchema):
    """JWT 클레임에서 해석한 요청 주체"""

    user_id: str = Field(min_length=1)
    organization_id: str = Field(min_length=1)
    role: UserRole = UserRole.USER
