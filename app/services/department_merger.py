"""
Department configuration merger

Combines immutable department definitions with per-organization assignments
into the sectioned, ordered, visibility-filtered structure consumed by
navigation and dashboard views.

Everything here is pure: same inputs, same output, no I/O.
"""

from typing import Iterable, Sequence

from app.models.section_assignment import SectionId
from app.schemas.department_layout import (
    SECTION_ORDER,
    AssignmentEntry,
    DepartmentDefinition,
    MergedDepartment,
    NavigationItem,
    PersistedAssignment,
    RequiredRole,
    SectionedDepartments,
    VirtualAssignment,
)
from app.schemas.principal import UserRole
from app.services.section_defaults import DEFAULT_SECTION_DEFAULTS, SectionDefaults

_REQUIRED_ROLE_RANK: dict[RequiredRole, int] = {
    RequiredRole.NONE: UserRole.USER.rank,
    RequiredRole.ADMIN: UserRole.ADMIN.rank,
    RequiredRole.SUPER_ADMIN: UserRole.SUPER_ADMIN.rank,
}


def empty_sections() -> SectionedDepartments:
    return {section_id: [] for section_id in SECTION_ORDER}


def default_entry(
    definition: DepartmentDefinition,
    defaults: SectionDefaults = DEFAULT_SECTION_DEFAULTS,
) -> VirtualAssignment:
    """저장된 배치가 없는 부서의 기본 배치 (영속 ID 없음)"""

    return VirtualAssignment(
        department_id=definition.id,
        department_key=definition.id,
        section_id=definition.default_section or defaults.section_for(definition.id),
        display_order=defaults.order_for(definition.id),
        is_visible=True,
    )


def merge_department(
    definition: DepartmentDefinition,
    entry: AssignmentEntry | None,
    defaults: SectionDefaults = DEFAULT_SECTION_DEFAULTS,
) -> MergedDepartment:
    if entry is None:
        entry = default_entry(definition, defaults)

    return MergedDepartment(
        id=definition.id,
        default_name=definition.name,
        default_description=definition.description,
        icon_ref=definition.icon_ref,
        route=definition.route,
        color=definition.color,
        required_role=definition.required_role,
        required_feature=definition.required_feature,
        name=entry.custom_name or definition.name,
        description=entry.custom_description or definition.description,
        section_id=entry.section_id,
        display_order=entry.display_order,
        is_visible=entry.is_visible,
        custom_name=entry.custom_name,
        custom_description=entry.custom_description,
        updated_at=entry.updated_at if isinstance(entry, PersistedAssignment) else None,
        entry=entry,
    )


def merge_all(
    definitions: Sequence[DepartmentDefinition],
    assignments: Iterable[AssignmentEntry],
    defaults: SectionDefaults = DEFAULT_SECTION_DEFAULTS,
) -> list[MergedDepartment]:
    """
    Merge every definition with its assignment, hidden ones included

    Returns:
        One MergedDepartment per definition, in definition order
    """
    by_department = {entry.department_id: entry for entry in assignments}
    return [
        merge_department(definition, by_department.get(definition.id), defaults)
        for definition in definitions
    ]


def merge(
    definitions: Sequence[DepartmentDefinition],
    assignments: Iterable[AssignmentEntry],
    defaults: SectionDefaults = DEFAULT_SECTION_DEFAULTS,
) -> SectionedDepartments:
    """
    Build the sectioned navigation structure

    Hidden departments are dropped. Each section is sorted by display_order;
    sorted() is stable, so ties keep definition order.
    """
    sections = empty_sections()
    for department in merge_all(definitions, assignments, defaults):
        if department.is_visible:
            sections[department.section_id].append(department)

    return {
        section_id: sorted(departments, key=lambda department: department.display_order)
        for section_id, departments in sections.items()
    }


def section_members(
    departments: Iterable[MergedDepartment],
    section_id: SectionId,
    *,
    include_hidden: bool = True,
) -> list[MergedDepartment]:
    """섹션 내 부서를 표시 순서대로 반환"""

    members = [
        department
        for department in departments
        if department.section_id == section_id and (include_hidden or department.is_visible)
    ]
    return sorted(members, key=lambda department: department.display_order)


def can_view(
    department: MergedDepartment,
    role: UserRole,
    enabled_features: set[str] | None = None,
) -> bool:
    if _REQUIRED_ROLE_RANK[department.required_role] > role.rank:
        return False
    if department.required_feature and department.required_feature not in (enabled_features or set()):
        return False
    return True


def filter_for_viewer(
    sections: SectionedDepartments,
    role: UserRole,
    enabled_features: set[str] | None = None,
) -> SectionedDepartments:
    """Drop departments the viewer's role or enabled features do not unlock"""

    return {
        section_id: [
            department
            for department in departments
            if can_view(department, role, enabled_features)
        ]
        for section_id, departments in sections.items()
    }


def to_navigation_items(departments: Iterable[MergedDepartment]) -> list[NavigationItem]:
    return [
        NavigationItem(
            id=department.id,
            name=department.name,
            description=department.description or "",
            icon_ref=department.icon_ref,
            route=department.route,
            color=department.color,
            required_role=department.required_role,
            required_feature=department.required_feature,
        )
        for department in departments
    ]
