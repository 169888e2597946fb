"""
Assignment Store InMemory 구현체

DB 없이 개발/테스트에서 사용할 수 있는 메모리 기반 저장소.
SQL 구현과 동일하게 영향받은 행 수를 보고한다.
"""

from datetime import datetime, timezone
from uuid import uuid4

from app.core.exceptions import StoreUnavailableError
from app.core.logging import get_logger
from app.models.section_assignment import SectionId
from app.schemas.department_layout import (
    AssignmentUpsert,
    BulkOrderUpdate,
    MutationResult,
    PersistedAssignment,
)

logger = get_logger(__name__)

_Key = tuple[str, str, str]


class InMemoryAssignmentStore:
    """개발/테스트용 InMemory Assignment Store."""

    def __init__(self, *, available: bool = True) -> None:
        self._rows: dict[_Key, PersistedAssignment] = {}
        self._available = available
        logger.info("inmemory_assignment_store_initialized", available=available)

    def set_available(self, available: bool) -> None:
        """테이블 누락 상황을 흉내낸다 (False면 모든 호출이 StoreUnavailableError)."""

        self._available = available

    def _check_available(self) -> None:
        if not self._available:
            raise StoreUnavailableError("Department assignment table is missing.")

    async def list_assignments(
        self,
        organization_id: str,
        vertical_id: str,
    ) -> list[PersistedAssignment]:
        self._check_available()
        rows = [
            row
            for (org, vertical, _), row in self._rows.items()
            if org == organization_id and vertical == vertical_id
        ]
        return sorted(rows, key=lambda row: (row.section_id.value, row.display_order))

    async def upsert(self, assignment: AssignmentUpsert) -> PersistedAssignment:
        self._check_available()
        key = (assignment.organization_id, assignment.vertical_id, assignment.department_id)
        now = datetime.now(timezone.utc)
        existing = self._rows.get(key)
        fields = assignment.model_dump(exclude={"updated_by"})

        if existing is None:
            row = PersistedAssignment(
                id=uuid4(),
                created_at=now,
                updated_at=now,
                created_by=assignment.updated_by,
                updated_by=assignment.updated_by,
                **fields,
            )
        else:
            row = existing.model_copy(
                update={**fields, "updated_at": now, "updated_by": assignment.updated_by}
            )

        self._rows[key] = row
        return row

    def _place(
        self,
        organization_id: str,
        vertical_id: str,
        department_id: str,
        section_id: SectionId,
        display_order: int,
        updated_by: str | None = None,
    ) -> None:
        key = (organization_id, vertical_id, department_id)
        now = datetime.now(timezone.utc)
        existing = self._rows.get(key)
        if existing is None:
            self._rows[key] = PersistedAssignment(
                id=uuid4(),
                organization_id=organization_id,
                vertical_id=vertical_id,
                department_id=department_id,
                department_key=department_id,
                section_id=section_id,
                display_order=display_order,
                is_visible=True,
                created_at=now,
                updated_at=now,
                created_by=updated_by,
                updated_by=updated_by,
            )
        else:
            changes = {"section_id": section_id, "display_order": display_order, "updated_at": now}
            if updated_by is not None:
                changes["updated_by"] = updated_by
            self._rows[key] = existing.model_copy(update=changes)

    def _shift(
        self,
        organization_id: str,
        vertical_id: str,
        section_id: SectionId,
        *,
        min_order: int,
        delta: int,
        exclude_department_id: str,
    ) -> None:
        now = datetime.now(timezone.utc)
        for key, row in self._rows.items():
            if (
                key[0] == organization_id
                and key[1] == vertical_id
                and row.section_id == section_id
                and row.display_order >= min_order
                and row.department_id != exclude_department_id
            ):
                self._rows[key] = row.model_copy(
                    update={"display_order": row.display_order + delta, "updated_at": now}
                )

    async def bulk_reorder(
        self,
        organization_id: str,
        vertical_id: str,
        section_id: SectionId,
        updates: list[BulkOrderUpdate],
        *,
        updated_by: str | None = None,
    ) -> MutationResult:
        self._check_available()
        affected_rows = 0
        for item in updates:
            existing = self._rows.get((organization_id, vertical_id, item.department_id))
            if existing is not None and existing.section_id != section_id:
                continue
            self._place(
                organization_id,
                vertical_id,
                item.department_id,
                section_id,
                item.display_order,
                updated_by,
            )
            affected_rows += 1
        return MutationResult(success=True, affected_rows=affected_rows, operation="bulk_reorder")

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
        self._check_available()
        existing = self._rows.get((organization_id, vertical_id, department_id))
        if from_section_id != to_section_id:
            self._shift(
                organization_id,
                vertical_id,
                to_section_id,
                min_order=target_position,
                delta=1,
                exclude_department_id=department_id,
            )
            if existing is not None and existing.section_id == from_section_id:
                self._shift(
                    organization_id,
                    vertical_id,
                    from_section_id,
                    min_order=existing.display_order + 1,
                    delta=-1,
                    exclude_department_id=department_id,
                )
        self._place(
            organization_id, vertical_id, department_id, to_section_id, target_position, updated_by
        )
        return MutationResult(
            success=True,
            affected_rows=1,
            operation="updated" if existing is not None else "inserted",
        )

    async def delete_all(self, organization_id: str, vertical_id: str) -> bool:
        self._check_available()
        for key in [k for k in self._rows if k[0] == organization_id and k[1] == vertical_id]:
            del self._rows[key]
        return True

    async def delete_one(
        self,
        organization_id: str,
        vertical_id: str,
        department_id: str,
    ) -> bool:
        self._check_available()
        return self._rows.pop((organization_id, vertical_id, department_id), None) is not None

    async def initialize_defaults(
        self,
        organization_id: str,
        vertical_id: str,
        assignments: list[AssignmentUpsert],
    ) -> int:
        existing = await self.list_assignments(organization_id, vertical_id)
        if existing:
            return 0
        for item in assignments:
            await self.upsert(item)
        return len(assignments)
