"""
Assignment Store Protocol (Interface)
Defines contract for department section assignment stores
"""

from typing import Protocol

from app.models.section_assignment import SectionId
from app.schemas.department_layout import (
    AssignmentUpsert,
    BulkOrderUpdate,
    MutationResult,
    PersistedAssignment,
)


class AssignmentStoreProtocol(Protocol):
    """
    Protocol for assignment store implementations

    Every write reports the rows it actually touched. A missing backing
    table is reported as StoreUnavailableError, every other backend failure
    as TransientFailureError.
    """

    async def list_assignments(
        self,
        organization_id: str,
        vertical_id: str,
    ) -> list[PersistedAssignment]:
        """
        Fetch all assignments for an organization and vertical

        Raises:
            StoreUnavailableError: If the backing table does not exist
            TransientFailureError: For any other backend failure
        """
        ...

    async def upsert(self, assignment: AssignmentUpsert) -> PersistedAssignment:
        """
        Create or update the single assignment for
        (organization_id, vertical_id, department_id)
        """
        ...

    async def bulk_reorder(
        self,
        organization_id: str,
        vertical_id: str,
        section_id: SectionId,
        updates: list[BulkOrderUpdate],
        *,
        updated_by: str | None = None,
    ) -> MutationResult:
        """
        Rewrite display_order for the listed departments of one section

        Departments without a row yet are created in the section.
        ``updated_by`` is recorded when given and left untouched otherwise.
        """
        ...

    async def move(
        self,
        organization_id: str,
        vertical_id: str,
        department_id: str,
        from_section_id: SectionId,
        to_section_id: SectionId,
        target_position: int,
        *,
        updated_by: str | None = None,
    ) -> MutationResult:
        """
        Place a department in a section at a position (upsert semantics)

        Rows at or after ``target_position`` in the target section shift down
        by one, and rows after the old position in the source section shift
        up by one. A department without a row leaves no gap to close.
        """
        ...

    async def delete_all(self, organization_id: str, vertical_id: str) -> bool:
        """Delete every assignment of the organization/vertical"""
        ...

    async def delete_one(
        self,
        organization_id: str,
        vertical_id: str,
        department_id: str,
    ) -> bool:
        """Delete one assignment; False when no row existed"""
        ...

    async def initialize_defaults(
        self,
        organization_id: str,
        vertical_id: str,
        assignments: list[AssignmentUpsert],
    ) -> int:
        """
        Bulk-insert default assignments when none exist yet

        Returns:
            Number of rows created (0 when rows already existed)
        """
        ...
