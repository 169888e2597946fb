"""
Default section placement for departments without a stored assignment
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from app.models.section_assignment import SectionId

DOCUMENTS_DEPARTMENT_ID = "documents"

# Pushes unknown departments to the end of their section
UNORDERED_POSITION = 999

SECONDARY_NAVIGATION_IDS: frozenset[str] = frozenset(
    {
        "workflows",
        "hr",
        "accounting",
        "legal",
        "branding",
        "social-media",
        "communications",
        "volunteer-management",
        "streaming",
        "it",
    }
)

ADMINISTRATIVE_IDS: frozenset[str] = frozenset({"users", "oauth", "ui-customization"})

DEFAULT_ORDER: Mapping[str, int] = MappingProxyType(
    {
        # primary navigation
        "documents": 0,
        # core departments
        "human-resources": 0,
        "finance-accounting": 1,
        "sales": 2,
        "donor-relations": 2,
        "operations": 3,
        "member-care": 4,
        "customer-support": 4,
        "communications-marketing": 5,
        "marketing": 5,
        "it-technology": 6,
        "legal-compliance": 7,
        "procurement": 8,
        "project-management": 9,
        "research-development": 10,
        "quality-assurance": 11,
        # secondary navigation
        "workflows": 0,
        "hr": 1,
        "accounting": 2,
        "legal": 3,
        "branding": 4,
        "social-media": 5,
        "communications": 6,
        "volunteer-management": 7,
        "streaming": 8,
        "it": 9,
        # administrative
        "users": 0,
        "oauth": 1,
        "ui-customization": 2,
    }
)


@dataclass(frozen=True)
class SectionDefaults:
    """Heuristic section/order lookup used when no assignment exists"""

    secondary_navigation_ids: frozenset[str] = SECONDARY_NAVIGATION_IDS
    administrative_ids: frozenset[str] = ADMINISTRATIVE_IDS
    order_map: Mapping[str, int] = field(default_factory=lambda: DEFAULT_ORDER)

    def section_for(self, department_id: str) -> SectionId:
        if department_id == DOCUMENTS_DEPARTMENT_ID:
            return SectionId.DOCUMENTS
        if department_id in self.secondary_navigation_ids:
            return SectionId.OPERATIONS
        if department_id in self.administrative_ids:
            return SectionId.ADMIN
        return SectionId.DEPARTMENTS

    def order_for(self, department_id: str) -> int:
        return self.order_map.get(department_id, UNORDERED_POSITION)


DEFAULT_SECTION_DEFAULTS = SectionDefaults()
