"""Department layout schemas"""

import enum
from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import ConfigDict, Field

from app.models.section_assignment import SectionId
from app.schemas.base import BaseResponseSchema, BaseSchema


SECTION_ORDER: tuple[SectionId, ...] = (
    SectionId.DOCUMENTS,
    SectionId.DEPARTMENTS,
    SectionId.OPERATIONS,
    SectionId.ADMIN,
)


class RequiredRole(str, enum.Enum):
    """부서 접근에 필요한 최소 역할"""

    NONE = "none"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class DepartmentDefinition(BaseSchema):
    """기본 부서 정의 (외부에서 주입, 불변)"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1)
    description: str | None = None
    icon_ref: str = "circle"
    route: str | None = None
    color: str | None = None
    required_role: RequiredRole = RequiredRole.NONE
    required_feature: str | None = None
    default_section: SectionId | None = None


# ==================== Assignment entries ====================


class AssignmentFields(BaseSchema):
    department_id: str = Field(min_length=1, max_length=100)
    department_key: str = Field(min_length=1, max_length=100)
    section_id: SectionId
    display_order: int = Field(ge=0)
    is_visible: bool = True
    custom_name: str | None = None
    custom_description: str | None = None


class VirtualAssignment(AssignmentFields):
    """
    Not-yet-persisted placement.

    Synthesized for departments without a stored row, and for optimistic
    creates that are waiting on the store.
    """

    kind: Literal["virtual"] = "virtual"


class PersistedAssignment(AssignmentFields, BaseResponseSchema):
    """Row read back from the assignment store"""

    kind: Literal["persisted"] = "persisted"
    organization_id: str
    vertical_id: str
    created_by: str | None = None
    updated_by: str | None = None


AssignmentEntry = Annotated[
    Union[VirtualAssignment, PersistedAssignment],
    Field(discriminator="kind"),
]


class AssignmentUpsert(BaseSchema):
    """upsert 요청 (organization/vertical/department 기준 1건)"""

    organization_id: str = Field(min_length=1)
    vertical_id: str = Field(min_length=1)
    department_id: str = Field(min_length=1, max_length=100)
    department_key: str = Field(min_length=1, max_length=100)
    section_id: SectionId
    display_order: int = Field(ge=0)
    is_visible: bool = True
    custom_name: str | None = None
    custom_description: str | None = None
    updated_by: str | None = None


class BulkOrderUpdate(BaseSchema):
    department_id: str = Field(min_length=1)
    display_order: int = Field(ge=0)


class MutationResult(BaseSchema):
    """저장소 쓰기 결과 (실제 영향받은 행 수 포함)"""

    success: bool
    affected_rows: int = Field(ge=0)
    operation: str | None = None


# ==================== Merged view ====================


class MergedDepartment(BaseSchema):
    """기본 정의 + 조직별 오버라이드 병합 결과"""

    id: str
    default_name: str
    default_description: str | None = None
    icon_ref: str
    route: str | None = None
    color: str | None = None
    required_role: RequiredRole = RequiredRole.NONE
    required_feature: str | None = None

    name: str
    description: str | None = None
    section_id: SectionId
    display_order: int
    is_visible: bool

    custom_name: str | None = None
    custom_description: str | None = None
    updated_at: datetime | None = None
    entry: AssignmentEntry

    @property
    def has_customization(self) -> bool:
        return isinstance(self.entry, PersistedAssignment)


SectionedDepartments = dict[SectionId, list[MergedDepartment]]


class NavigationItem(BaseSchema):
    id: str
    name: str
    description: str = ""
    icon_ref: str
    route: str | None = None
    color: str | None = None
    required_role: RequiredRole = RequiredRole.NONE
    required_feature: str | None = None


# ==================== Undo ====================


class MoveAction(BaseSchema):
    id: str
    timestamp: float
    department_id: str
    department_name: str
    from_section_id: SectionId
    from_position: int
    to_section_id: SectionId
    to_position: int
    previous_state: list[AssignmentEntry] = Field(default_factory=list)


class UndoEntry(BaseSchema):
    action: MoveAction
    expires_at: float


# ==================== API payloads ====================


class DragStartRequest(BaseSchema):
    department_id: str = Field(min_length=1)


class DragOverRequest(BaseSchema):
    over_id: str | None = None


class DragEndRequest(BaseSchema):
    department_id: str = Field(min_length=1)
    target_section_id: SectionId
    target_position: int = Field(ge=0)


class MoveToSectionRequest(BaseSchema):
    target_section_id: SectionId


class CustomizationUpdate(BaseSchema):
    custom_name: str | None = Field(default=None, max_length=200)
    custom_description: str | None = None


class GestureStateResponse(BaseSchema):
    state: str
    active_id: str | None = None
    over_id: str | None = None


class OperationResponse(BaseSchema):
    """Successful mutation result (failures are returned as error envelopes)"""

    message: str
    affected_rows: int = 0
    changed: bool = False


class LayoutResponse(BaseSchema):
    organization_id: str
    vertical_id: str
    fallback_mode: bool
    warning: str | None = None
    sections: dict[SectionId, list[MergedDepartment]]


class UndoEntrySummary(BaseSchema):
    id: str
    department_id: str
    department_name: str
    from_section_id: SectionId
    from_position: int
    to_section_id: SectionId
    to_position: int
    expires_at: float
