"""
SQL Assignment Store
Async SQLAlchemy implementation backed by department_section_assignments
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import StoreUnavailableError, TransientFailureError
from app.core.logging import get_logger, measure_latency
from app.models.section_assignment import DepartmentSectionAssignment, SectionId
from app.repositories.section_assignment_repository import SectionAssignmentRepository
from app.schemas.department_layout import (
    AssignmentUpsert,
    BulkOrderUpdate,
    MutationResult,
    PersistedAssignment,
)

logger = get_logger(__name__)

# PostgreSQL undefined_table
MISSING_TABLE_SQLSTATES = frozenset({"42P01"})


def is_missing_table_error(exc: BaseException) -> bool:
    """Does the driver error say the assignments table/schema is absent?"""

    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in MISSING_TABLE_SQLSTATES:
        return True

    message = str(orig if orig is not None else exc).lower()
    if "no such table" in message:
        return True
    return "relation" in message and "does not exist" in message


class SqlAssignmentStore:
    """
    Assignment store using one AsyncSession per call

    The store outlives HTTP requests (engines keep per-organization state),
    so it owns its sessions instead of borrowing the request session.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    @asynccontextmanager
    async def _repository(self, operation: str) -> AsyncIterator[SectionAssignmentRepository]:
        async with self._session_maker() as session:
            try:
                yield SectionAssignmentRepository(session)
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise self._translate(exc, operation) from exc

    def _translate(self, exc: SQLAlchemyError, operation: str) -> Exception:
        if isinstance(exc, DBAPIError) and is_missing_table_error(exc):
            logger.warning("assignment_store_unavailable", operation=operation, error=str(exc))
            return StoreUnavailableError(
                "Department assignment table is missing. Using the default department layout."
            )

        logger.error("assignment_store_failure", operation=operation, error=str(exc))
        return TransientFailureError(f"Assignment store {operation} failed: {exc}")

    @measure_latency("assignment_store.list")
    async def list_assignments(
        self,
        organization_id: str,
        vertical_id: str,
    ) -> list[PersistedAssignment]:
        async with self._repository("list") as repo:
            rows = await repo.list_for_scope(organization_id, vertical_id)
            assignments = [PersistedAssignment.model_validate(row) for row in rows]

        logger.debug(
            "assignments_listed",
            organization_id=organization_id,
            vertical_id=vertical_id,
            count=len(assignments),
        )
        return assignments

    @measure_latency("assignment_store.upsert")
    async def upsert(self, assignment: AssignmentUpsert) -> PersistedAssignment:
        async with self._repository("upsert") as repo:
            row = await repo.get_one(
                assignment.organization_id,
                assignment.vertical_id,
                assignment.department_id,
            )
            if row is None:
                row = await repo.add(
                    DepartmentSectionAssignment(
                        organization_id=assignment.organization_id,
                        vertical_id=assignment.vertical_id,
                        department_id=assignment.department_id,
                        department_key=assignment.department_key,
                        section_id=assignment.section_id,
                        display_order=assignment.display_order,
                        is_visible=assignment.is_visible,
                        custom_name=assignment.custom_name,
                        custom_description=assignment.custom_description,
                        created_by=assignment.updated_by,
                        updated_by=assignment.updated_by,
                    )
                )
            else:
                row.department_key = assignment.department_key
                row.section_id = assignment.section_id
                row.display_order = assignment.display_order
                row.is_visible = assignment.is_visible
                row.custom_name = assignment.custom_name
                row.custom_description = assignment.custom_description
                row.updated_by = assignment.updated_by
                await repo.session.flush()
                await repo.session.refresh(row)

            saved = PersistedAssignment.model_validate(row)

        logger.info(
            "assignment_upserted",
            organization_id=assignment.organization_id,
            vertical_id=assignment.vertical_id,
            department_id=assignment.department_id,
            section_id=assignment.section_id.value,
        )
        return saved

    @measure_latency("assignment_store.bulk_reorder")
    async def bulk_reorder(
        self,
        organization_id: str,
        vertical_id: str,
        section_id: SectionId,
        updates: list[BulkOrderUpdate],
        *,
        updated_by: str | None = None,
    ) -> MutationResult:
        affected_rows = 0
        async with self._repository("bulk_reorder") as repo:
            for item in updates:
                rows = await repo.update_placement(
                    organization_id,
                    vertical_id,
                    item.department_id,
                    section_id=section_id,
                    display_order=item.display_order,
                    only_in_section=section_id,
                    updated_by=updated_by,
                )
                if rows == 0 and await repo.get_one(
                    organization_id, vertical_id, item.department_id
                ) is None:
                    await repo.add(
                        DepartmentSectionAssignment(
                            organization_id=organization_id,
                            vertical_id=vertical_id,
                            department_id=item.department_id,
                            department_key=item.department_id,
                            section_id=section_id,
                            display_order=item.display_order,
                            is_visible=True,
                            created_by=updated_by,
                            updated_by=updated_by,
                        )
                    )
                    rows = 1
                affected_rows += rows

        logger.info(
            "assignments_reordered",
            organization_id=organization_id,
            vertical_id=vertical_id,
            section_id=section_id.value,
            requested=len(updates),
            affected_rows=affected_rows,
        )
        return MutationResult(
            success=True,
            affected_rows=affected_rows,
            operation="bulk_reorder",
        )

    @measure_latency("assignment_store.move")
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
        async with self._repository("move") as repo:
            current = await repo.get_one(organization_id, vertical_id, department_id)
            current_order = (
                current.display_order
                if current is not None and current.section_id == from_section_id
                else None
            )

            opened = closed = 0
            if from_section_id != to_section_id:
                opened = await repo.shift_section(
                    organization_id,
                    vertical_id,
                    to_section_id,
                    min_order=target_position,
                    delta=1,
                    exclude_department_id=department_id,
                )
                if current_order is not None:
                    closed = await repo.shift_section(
                        organization_id,
                        vertical_id,
                        from_section_id,
                        min_order=current_order + 1,
                        delta=-1,
                        exclude_department_id=department_id,
                    )

            affected_rows = await repo.update_placement(
                organization_id,
                vertical_id,
                department_id,
                section_id=to_section_id,
                display_order=target_position,
                updated_by=updated_by,
            )
            operation = "updated"
            if affected_rows == 0:
                await repo.add(
                    DepartmentSectionAssignment(
                        organization_id=organization_id,
                        vertical_id=vertical_id,
                        department_id=department_id,
                        department_key=department_id,
                        section_id=to_section_id,
                        display_order=target_position,
                        is_visible=True,
                        created_by=updated_by,
                        updated_by=updated_by,
                    )
                )
                affected_rows = 1
                operation = "inserted"

        logger.info(
            "assignment_moved",
            organization_id=organization_id,
            vertical_id=vertical_id,
            department_id=department_id,
            from_section=from_section_id.value,
            to_section=to_section_id.value,
            position=target_position,
            affected_rows=affected_rows,
            shifted_in_target=opened,
            shifted_in_source=closed,
            operation=operation,
        )
        return MutationResult(success=True, affected_rows=affected_rows, operation=operation)

    @measure_latency("assignment_store.delete_all")
    async def delete_all(self, organization_id: str, vertical_id: str) -> bool:
        async with self._repository("delete_all") as repo:
            deleted = await repo.delete_for_scope(organization_id, vertical_id)

        logger.info(
            "assignments_reset",
            organization_id=organization_id,
            vertical_id=vertical_id,
            deleted=deleted,
        )
        return True

    @measure_latency("assignment_store.delete_one")
    async def delete_one(
        self,
        organization_id: str,
        vertical_id: str,
        department_id: str,
    ) -> bool:
        async with self._repository("delete_one") as repo:
            deleted = await repo.delete_one(organization_id, vertical_id, department_id)

        logger.info(
            "assignment_deleted",
            organization_id=organization_id,
            vertical_id=vertical_id,
            department_id=department_id,
            deleted=deleted,
        )
        return deleted > 0

    @measure_latency("assignment_store.initialize_defaults")
    async def initialize_defaults(
        self,
        organization_id: str,
        vertical_id: str,
        assignments: list[AssignmentUpsert],
    ) -> int:
        async with self._repository("initialize_defaults") as repo:
            existing = await repo.count_for_scope(organization_id, vertical_id)
            if existing > 0:
                logger.info(
                    "assignments_already_initialized",
                    organization_id=organization_id,
                    vertical_id=vertical_id,
                    existing=existing,
                )
                return 0

            created = await repo.add_all(
                [
                    DepartmentSectionAssignment(
                        organization_id=organization_id,
                        vertical_id=vertical_id,
                        department_id=item.department_id,
                        department_key=item.department_key,
                        section_id=item.section_id,
                        display_order=item.display_order,
                        is_visible=item.is_visible,
                        custom_name=item.custom_name,
                        custom_description=item.custom_description,
                        created_by=item.updated_by,
                        updated_by=item.updated_by,
                    )
                    for item in assignments
                ]
            )

        logger.info(
            "assignments_initialized",
            organization_id=organization_id,
            vertical_id=vertical_id,
            created=created,
        )
        return created
