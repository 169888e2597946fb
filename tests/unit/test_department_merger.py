"""
Unit tests for the department configuration merger
"""

from datetime import datetime, timezone
from uuid import uuid4

from app.models.section_assignment import SectionId
from app.schemas.department_layout import (
    DepartmentDefinition,
    PersistedAssignment,
    RequiredRole,
    VirtualAssignment,
)
from app.schemas.principal import UserRole
from app.services.department_catalog import BUSINESS_DEPARTMENTS
from app.services.department_merger import (
    filter_for_viewer,
    merge,
    merge_all,
    section_members,
    to_navigation_items,
)
from app.services.section_defaults import (
    DEFAULT_SECTION_DEFAULTS,
    UNORDERED_POSITION,
    SectionDefaults,
)


def definition(department_id: str, name: str | None = None, **extra) -> DepartmentDefinition:
    return DepartmentDefinition(id=department_id, name=name or department_id.title(), **extra)


def persisted(
    department_id: str,
    section_id: SectionId,
    display_order: int,
    **extra,
) -> PersistedAssignment:
    now = datetime.now(timezone.utc)
    return PersistedAssignment(
        id=uuid4(),
        organization_id="org-1",
        vertical_id="business",
        department_id=department_id,
        department_key=department_id,
        section_id=section_id,
        display_order=display_order,
        created_at=now,
        updated_at=now,
        **extra,
    )


FLAT_DEFAULTS = SectionDefaults(frozenset(), frozenset(), {})


def ids(departments) -> list[str]:
    return [department.id for department in departments]


def test_heuristic_sections():
    assert DEFAULT_SECTION_DEFAULTS.section_for("documents") == SectionId.DOCUMENTS
    assert DEFAULT_SECTION_DEFAULTS.section_for("workflows") == SectionId.OPERATIONS
    assert DEFAULT_SECTION_DEFAULTS.section_for("users") == SectionId.ADMIN
    assert DEFAULT_SECTION_DEFAULTS.section_for("sales") == SectionId.DEPARTMENTS


def test_heuristic_order_falls_back_to_end():
    assert DEFAULT_SECTION_DEFAULTS.order_for("finance-accounting") == 1
    assert DEFAULT_SECTION_DEFAULTS.order_for("unknown-department") == UNORDERED_POSITION


def test_merge_without_assignments_uses_defaults():
    sections = merge(
        [definition("documents"), definition("sales"), definition("workflows"), definition("users")],
        [],
    )

    assert list(sections) == [
        SectionId.DOCUMENTS,
        SectionId.DEPARTMENTS,
        SectionId.OPERATIONS,
        SectionId.ADMIN,
    ]
    assert ids(sections[SectionId.DOCUMENTS]) == ["documents"]
    assert ids(sections[SectionId.DEPARTMENTS]) == ["sales"]
    assert ids(sections[SectionId.OPERATIONS]) == ["workflows"]
    assert ids(sections[SectionId.ADMIN]) == ["users"]
    assert all(
        isinstance(department.entry, VirtualAssignment)
        for departments in sections.values()
        for department in departments
    )


def test_definition_default_section_overrides_heuristic():
    sections = merge([definition("sales", default_section=SectionId.OPERATIONS)], [])

    assert ids(sections[SectionId.OPERATIONS]) == ["sales"]
    assert sections[SectionId.DEPARTMENTS] == []


def test_assignment_overrides_section_order_and_name():
    definitions = [definition("hr"), definition("finance"), definition("sales")]
    assignments = [
        persisted("sales", SectionId.DEPARTMENTS, 0, custom_name="Revenue"),
        persisted("finance", SectionId.OPERATIONS, 3),
    ]

    sections = merge(definitions, assignments, FLAT_DEFAULTS)

    assert ids(sections[SectionId.DEPARTMENTS]) == ["sales", "hr"]
    assert ids(sections[SectionId.OPERATIONS]) == ["finance"]
    sales = sections[SectionId.DEPARTMENTS][0]
    assert sales.name == "Revenue"
    assert sales.default_name == "Sales"
    assert sales.has_customization is True


def test_hidden_departments_are_dropped():
    definitions = [definition("hr"), definition("finance")]
    assignments = [persisted("hr", SectionId.DEPARTMENTS, 0, is_visible=False)]

    sections = merge(definitions, assignments, FLAT_DEFAULTS)

    assert ids(sections[SectionId.DEPARTMENTS]) == ["finance"]


def test_ties_keep_definition_order():
    definitions = [definition("c"), definition("a"), definition("b")]
    assignments = [
        persisted("a", SectionId.DEPARTMENTS, 1),
        persisted("b", SectionId.DEPARTMENTS, 1),
        persisted("c", SectionId.DEPARTMENTS, 1),
    ]

    sections = merge(definitions, assignments, FLAT_DEFAULTS)

    assert ids(sections[SectionId.DEPARTMENTS]) == ["c", "a", "b"]


def test_merge_is_pure_and_idempotent():
    definitions = [definition("hr"), definition("finance")]
    assignments = [persisted("finance", SectionId.OPERATIONS, 0)]

    first = merge(definitions, assignments)
    second = merge(definitions, assignments)

    assert first == second
    assert len(assignments) == 1
    assert assignments[0].section_id == SectionId.OPERATIONS


def test_merge_all_includes_hidden_in_definition_order():
    definitions = [definition("hr"), definition("finance")]
    assignments = [persisted("hr", SectionId.DEPARTMENTS, 5, is_visible=False)]

    departments = merge_all(definitions, assignments)

    assert ids(departments) == ["hr", "finance"]
    assert departments[0].is_visible is False


def test_section_members_can_exclude_hidden():
    departments = merge_all(
        [definition("hr"), definition("finance")],
        [persisted("hr", SectionId.DEPARTMENTS, 0, is_visible=False)],
        FLAT_DEFAULTS,
    )

    assert ids(section_members(departments, SectionId.DEPARTMENTS)) == ["hr", "finance"]
    assert ids(
        section_members(departments, SectionId.DEPARTMENTS, include_hidden=False)
    ) == ["finance"]


def test_filter_for_viewer_applies_role_and_feature():
    definitions = [
        definition("sales"),
        definition("users", required_role=RequiredRole.ADMIN),
        definition("oauth", required_role=RequiredRole.SUPER_ADMIN),
        definition("streaming", required_feature="streaming"),
    ]
    sections = merge(definitions, [])

    for_user = filter_for_viewer(sections, UserRole.USER)
    for_admin = filter_for_viewer(sections, UserRole.ADMIN, {"streaming"})
    for_owner = filter_for_viewer(sections, UserRole.SUPER_ADMIN)

    assert ids(for_user[SectionId.ADMIN]) == []
    assert ids(for_user[SectionId.OPERATIONS]) == []
    assert ids(for_admin[SectionId.ADMIN]) == ["users"]
    assert ids(for_admin[SectionId.OPERATIONS]) == ["streaming"]
    assert ids(for_owner[SectionId.ADMIN]) == ["users", "oauth"]


def test_to_navigation_items_uses_merged_name():
    departments = merge_all(
        [definition("sales", route="/sales", icon_ref="chart")],
        [persisted("sales", SectionId.DEPARTMENTS, 0, custom_name="Revenue")],
    )

    [item] = to_navigation_items(departments)

    assert item.id == "sales"
    assert item.name == "Revenue"
    assert item.route == "/sales"
    assert item.icon_ref == "chart"
    assert item.description == ""


def test_business_catalog_merges_every_definition_once():
    departments = merge_all(BUSINESS_DEPARTMENTS, [])

    assert len(departments) == len(BUSINESS_DEPARTMENTS)
    assert len({department.id for department in departments}) == len(departments)
