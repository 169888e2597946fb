"""
Built-in department definitions per vertical

Definitions are immutable configuration; organizations only override their
placement, visibility and display text through assignments.
"""

from app.core.exceptions import RecordNotFoundError
from app.schemas.department_layout import DepartmentDefinition, RequiredRole


def _dept(id: str, name: str, icon_ref: str, route: str, **extra) -> DepartmentDefinition:
    return DepartmentDefinition(id=id, name=name, icon_ref=icon_ref, route=route, **extra)


BUSINESS_DEPARTMENTS: tuple[DepartmentDefinition, ...] = (
    # primary navigation
    _dept("documents", "Document Center", "file-text", "/documents"),
    # core departments
    _dept("human-resources", "Team", "users", "/department/human-resources", color="blue"),
    _dept("finance-accounting", "Finances", "calculator", "/department/finance-accounting", color="green"),
    _dept("sales", "Sales", "trending-up", "/department/sales", color="emerald"),
    _dept("operations", "Projects", "cog", "/department/operations", color="purple"),
    _dept("customer-support", "Customer Support", "headphones", "/department/customer-support", color="indigo"),
    # additional departments
    _dept("marketing", "Marketing", "megaphone", "/department/marketing", color="pink"),
    _dept("it-technology", "IT & Technology", "monitor", "/department/it-technology", color="cyan"),
    _dept("legal-compliance", "Legal & Compliance", "scale", "/department/legal-compliance", color="gray"),
    _dept("procurement", "Procurement", "package", "/department/procurement", color="amber"),
    _dept("project-management", "Project Management", "briefcase", "/department/project-management", color="sky"),
    _dept("research-development", "Research & Development", "flask-conical", "/department/research-development", color="violet"),
    _dept("quality-assurance", "Quality Assurance", "check-circle", "/department/quality-assurance", color="lime"),
    # operations navigation
    _dept("workflows", "Onboarding", "git-branch", "/workflows", required_role=RequiredRole.ADMIN),
    _dept("hr", "HR", "users", "/operations/hr"),
    _dept("accounting", "Accounting", "calculator", "/operations/accounting"),
    _dept("legal", "Legal", "scale", "/operations/legal"),
    _dept("branding", "Branding", "megaphone", "/operations/branding"),
    _dept("social-media", "Social Media", "megaphone", "/operations/social-media"),
    _dept("communications", "Communications", "headphones", "/operations/communications"),
    _dept("volunteer-management", "Team Management", "users", "/operations/volunteer-management"),
    _dept("streaming", "Media & Content", "monitor", "/operations/streaming"),
    _dept("it", "IT & Technology", "monitor", "/operations/it"),
    # administration
    _dept("users", "Users", "users", "/users", required_role=RequiredRole.ADMIN),
    _dept("oauth", "OAuth", "shield", "/oauth", required_role=RequiredRole.ADMIN),
    _dept(
        "ui-customization",
        "UI Customization",
        "palette",
        "/settings/organization-customization",
        required_role=RequiredRole.SUPER_ADMIN,
    ),
)

VERTICAL_DEPARTMENTS: dict[str, tuple[DepartmentDefinition, ...]] = {
    "business": BUSINESS_DEPARTMENTS,
}


def get_department_definitions(vertical_id: str) -> list[DepartmentDefinition]:
    """버티컬의 기본 부서 정의 목록 (정의 순서 유지)"""

    try:
        return list(VERTICAL_DEPARTMENTS[vertical_id])
    except KeyError as exc:
        raise RecordNotFoundError(f"Unknown vertical '{vertical_id}'") from exc
