from __future__ import annotations

from app.core.exceptions import PermissionDeniedError
from app.schemas.principal import Principal, UserRole

LAYOUT_MANAGER_ROLE = UserRole.SUPER_ADMIN


def ensure_can_view_layout(principal: Principal, organization_id: str) -> None:
    """조직 소속 사용자만 레이아웃을 조회할 수 있다."""
    if principal.organization_id != organization_id:
        raise PermissionDeniedError(
            "You can only view the department layout of your own organization."
        )


def ensure_can_manage_layout(principal: Principal, organization_id: str) -> None:
    """레이아웃 변경은 같은 조직의 최상위 역할만 허용한다."""
    ensure_can_view_layout(principal, organization_id)
    if principal.role != LAYOUT_MANAGER_ROLE:
        raise PermissionDeniedError(
            "Only organization super admins can reorganize departments."
        )
