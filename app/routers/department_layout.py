"""Department section layout router"""

from fastapi import APIRouter, Depends, Query, Request

from app.api.swagger_responses import combined_responses
from app.core.dependencies import get_current_principal, require_roles
from app.core.permissions import ensure_can_view_layout
from app.models.section_assignment import SectionId
from app.schemas.department_layout import (
    CustomizationUpdate,
    DragEndRequest,
    DragOverRequest,
    DragStartRequest,
    GestureStateResponse,
    LayoutResponse,
    MergedDepartment,
    MoveToSectionRequest,
    NavigationItem,
    OperationResponse,
    UndoEntrySummary,
)
from app.schemas.principal import Principal, UserRole
from app.services.department_layout_service import (
    DepartmentLayoutService,
    LayoutEngineRegistry,
    OperationOutcome,
)


router = APIRouter(
    prefix="/organizations/{organization_id}/verticals/{vertical_id}/department-layout",
    tags=["department-layout"],
)

_MUTATION_ERRORS = [400, 401, 403, 404, 409, 500, 502, 503]

_OPERATION_EXAMPLE = {
    "message": 'Moved "Finance" to operations.',
    "affected_rows": 1,
    "changed": True,
}


def get_layout_registry(request: Request) -> LayoutEngineRegistry:
    return request.app.state.layout_registry


async def get_layout_service(
    organization_id: str,
    vertical_id: str,
    principal: Principal = Depends(get_current_principal),
    registry: LayoutEngineRegistry = Depends(get_layout_registry),
) -> DepartmentLayoutService:
    ensure_can_view_layout(principal, organization_id)
    return await registry.get(organization_id, vertical_id)


def _operation_response(outcome: OperationOutcome) -> OperationResponse:
    outcome.raise_for_error()
    return OperationResponse(
        message=outcome.message,
        affected_rows=outcome.affected_rows,
        changed=outcome.changed,
    )


def _layout_response(service: DepartmentLayoutService) -> LayoutResponse:
    return LayoutResponse(
        organization_id=service.organization_id,
        vertical_id=service.vertical_id,
        fallback_mode=service.fallback_mode,
        warning=service.warning,
        sections=service.sections(),
    )


# ==================== Reads ====================


@router.get(
    "",
    response_model=LayoutResponse,
    summary="섹션별 부서 배치 조회",
    responses=combined_responses(
        status_code=200,
        data_example={
            "organization_id": "org-1",
            "vertical_id": "business",
            "fallback_mode": False,
            "warning": None,
            "sections": {"documents": [], "departments": [], "operations": [], "admin": []},
        },
        include_errors=[401, 403, 404, 502],
    ),
)
async def get_layout(
    refresh: bool = Query(False, description="저장소에서 다시 읽기"),
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> LayoutResponse:
    if refresh:
        await service.load()
    return _layout_response(service)


@router.get(
    "/navigation",
    response_model=dict[SectionId, list[NavigationItem]],
    summary="조회자 기준 내비게이션 항목",
)
async def get_navigation(
    features: list[str] = Query(default=[], description="활성화된 기능 플래그"),
    principal: Principal = Depends(get_current_principal),
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> dict[SectionId, list[NavigationItem]]:
    return service.navigation_for(principal.role, set(features))


@router.get(
    "/departments",
    response_model=list[MergedDepartment],
    summary="숨김 포함 전체 부서 조회",
)
async def list_departments(
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> list[MergedDepartment]:
    return service.all_departments()


@router.get(
    "/undo",
    response_model=list[UndoEntrySummary],
    summary="되돌릴 수 있는 이동 목록",
)
async def list_undo_entries(
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> list[UndoEntrySummary]:
    return [
        UndoEntrySummary(
            id=entry.action.id,
            department_id=entry.action.department_id,
            department_name=entry.action.department_name,
            from_section_id=entry.action.from_section_id,
            from_position=entry.action.from_position,
            to_section_id=entry.action.to_section_id,
            to_position=entry.action.to_position,
            expires_at=entry.expires_at,
        )
        for entry in service.undo_stack.active_entries()
    ]


# ==================== Drag gesture ====================


@router.post(
    "/drag/start",
    response_model=GestureStateResponse,
    summary="드래그 시작",
    dependencies=[Depends(require_roles(UserRole.SUPER_ADMIN))],
)
async def drag_start(
    payload: DragStartRequest,
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> GestureStateResponse:
    return service.drag_start(payload.department_id)


@router.post(
    "/drag/over",
    response_model=GestureStateResponse,
    summary="드래그 대상 갱신",
    dependencies=[Depends(require_roles(UserRole.SUPER_ADMIN))],
)
async def drag_over(
    payload: DragOverRequest,
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> GestureStateResponse:
    return service.drag_over(payload.over_id)


@router.post(
    "/drag/cancel",
    response_model=GestureStateResponse,
    summary="드래그 취소 (저장 없음)",
    dependencies=[Depends(require_roles(UserRole.SUPER_ADMIN))],
)
async def drag_cancel(
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> GestureStateResponse:
    return service.drag_cancel()


@router.post(
    "/drag/end",
    response_model=OperationResponse,
    summary="드래그 완료 (이동/정렬 저장)",
    responses=combined_responses(
        status_code=200,
        data_example=_OPERATION_EXAMPLE,
        include_errors=_MUTATION_ERRORS,
    ),
)
async def drag_end(
    payload: DragEndRequest,
    principal: Principal = Depends(get_current_principal),
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> OperationResponse:
    outcome = await service.drag_end(
        payload.department_id,
        payload.target_section_id,
        payload.target_position,
        actor=principal,
    )
    return _operation_response(outcome)


# ==================== Department mutations ====================


@router.post(
    "/departments/{department_id}/move",
    response_model=OperationResponse,
    summary="다른 섹션 끝으로 이동",
    responses=combined_responses(
        status_code=200,
        data_example=_OPERATION_EXAMPLE,
        include_errors=_MUTATION_ERRORS,
    ),
)
async def move_to_section(
    department_id: str,
    payload: MoveToSectionRequest,
    principal: Principal = Depends(get_current_principal),
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> OperationResponse:
    outcome = await service.move_to_section(
        department_id,
        payload.target_section_id,
        actor=principal,
    )
    return _operation_response(outcome)


@router.post(
    "/departments/{department_id}/visibility",
    response_model=OperationResponse,
    summary="표시 여부 전환",
)
async def toggle_visibility(
    department_id: str,
    principal: Principal = Depends(get_current_principal),
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> OperationResponse:
    outcome = await service.toggle_visibility(department_id, actor=principal)
    return _operation_response(outcome)


@router.put(
    "/departments/{department_id}/customization",
    response_model=OperationResponse,
    summary="표시 이름/설명 변경",
)
async def update_customization(
    department_id: str,
    payload: CustomizationUpdate,
    principal: Principal = Depends(get_current_principal),
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> OperationResponse:
    outcome = await service.rename_department(
        department_id,
        payload.custom_name,
        payload.custom_description,
        actor=principal,
    )
    return _operation_response(outcome)


@router.delete(
    "/departments/{department_id}",
    response_model=OperationResponse,
    summary="부서 설정 초기화",
)
async def reset_department(
    department_id: str,
    principal: Principal = Depends(get_current_principal),
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> OperationResponse:
    outcome = await service.reset_department(department_id, actor=principal)
    return _operation_response(outcome)


# ==================== Layout-wide operations ====================


@router.post(
    "/reset",
    response_model=OperationResponse,
    summary="전체 레이아웃 기본값으로 초기화",
    dependencies=[Depends(require_roles(UserRole.SUPER_ADMIN))],
)
async def reset_layout(
    principal: Principal = Depends(get_current_principal),
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> OperationResponse:
    outcome = await service.reset_to_defaults(actor=principal)
    return _operation_response(outcome)


@router.post(
    "/initialize",
    response_model=OperationResponse,
    summary="기본 배치 저장",
    dependencies=[Depends(require_roles(UserRole.SUPER_ADMIN))],
)
async def initialize_layout(
    principal: Principal = Depends(get_current_principal),
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> OperationResponse:
    outcome = await service.initialize_defaults(actor=principal)
    return _operation_response(outcome)


@router.post(
    "/undo",
    response_model=OperationResponse,
    summary="마지막 이동 되돌리기",
    responses=combined_responses(
        status_code=200,
        data_example={"message": 'Undid move of "Finance".', "affected_rows": 1, "changed": True},
        include_errors=_MUTATION_ERRORS,
    ),
)
async def undo_last_move(
    principal: Principal = Depends(get_current_principal),
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> OperationResponse:
    outcome = await service.undo_last_move(actor=principal)
    return _operation_response(outcome)


@router.post(
    "/retry",
    response_model=LayoutResponse,
    summary="저장소 재확인 (Check Again)",
)
async def retry_store(
    service: DepartmentLayoutService = Depends(get_layout_service),
) -> LayoutResponse:
    outcome = await service.retry()
    outcome.raise_for_error()
    return _layout_response(service)
