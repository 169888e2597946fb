"""
Department section assignment repository

department_section_assignments 테이블의 세션 단위 데이터 접근 계층
"""

from typing import Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.models.section_assignment import DepartmentSectionAssignment, SectionId

logger = get_logger(__name__)


class SectionAssignmentRepository:
    """부서 배치 CRUD 및 일괄 순서 변경을 담당하는 Repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_for_scope(
        self,
        organization_id: str,
        vertical_id: str,
    ) -> Sequence[DepartmentSectionAssignment]:
        """조직/버티컬의 모든 배치를 섹션, 순서대로 조회"""

        stmt = (
            select(DepartmentSectionAssignment)
            .where(
                DepartmentSectionAssignment.organization_id == organization_id,
                DepartmentSectionAssignment.vertical_id == vertical_id,
            )
            .order_by(
                DepartmentSectionAssignment.section_id.asc(),
                DepartmentSectionAssignment.display_order.asc(),
            )
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_one(
        self,
        organization_id: str,
        vertical_id: str,
        department_id: str,
    ) -> DepartmentSectionAssignment | None:
        stmt = select(DepartmentSectionAssignment).where(
            DepartmentSectionAssignment.organization_id == organization_id,
            DepartmentSectionAssignment.vertical_id == vertical_id,
            DepartmentSectionAssignment.department_id == department_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_for_scope(self, organization_id: str, vertical_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(DepartmentSectionAssignment)
            .where(
                DepartmentSectionAssignment.organization_id == organization_id,
                DepartmentSectionAssignment.vertical_id == vertical_id,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def add(self, assignment: DepartmentSectionAssignment) -> DepartmentSectionAssignment:
        """배치 생성"""

        self.session.add(assignment)
        await self.session.flush()
        await self.session.refresh(assignment)
        return assignment

    async def add_all(self, assignments: list[DepartmentSectionAssignment]) -> int:
        self.session.add_all(assignments)
        await self.session.flush()
        return len(assignments)

    async def update_placement(
        self,
        organization_id: str,
        vertical_id: str,
        department_id: str,
        *,
        section_id: SectionId,
        display_order: int,
        updated_by: str | None = None,
        only_in_section: SectionId | None = None,
    ) -> int:
        """
        섹션/순서 갱신

        Args:
            only_in_section: 지정 시 해당 섹션에 있는 행만 갱신
            updated_by: None이면 기존 변경 주체를 유지

        Returns:
            영향받은 행 수
        """
        values: dict = {
            "section_id": section_id,
            "display_order": display_order,
            "updated_at": func.now(),
        }
        if updated_by is not None:
            values["updated_by"] = updated_by

        stmt = (
            update(DepartmentSectionAssignment)
            .where(
                DepartmentSectionAssignment.organization_id == organization_id,
                DepartmentSectionAssignment.vertical_id == vertical_id,
                DepartmentSectionAssignment.department_id == department_id,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if only_in_section is not None:
            stmt = stmt.where(DepartmentSectionAssignment.section_id == only_in_section)

        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def shift_section(
        self,
        organization_id: str,
        vertical_id: str,
        section_id: SectionId,
        *,
        min_order: int,
        delta: int,
        exclude_department_id: str | None = None,
    ) -> int:
        """
        섹션 내 ``display_order >= min_order`` 행을 ``delta``만큼 이동

        Used by cross-section moves to open a slot in the target section
        (+1) and close the gap left in the source section (-1).
        """
        stmt = (
            update(DepartmentSectionAssignment)
            .where(
                DepartmentSectionAssignment.organization_id == organization_id,
                DepartmentSectionAssignment.vertical_id == vertical_id,
                DepartmentSectionAssignment.section_id == section_id,
                DepartmentSectionAssignment.display_order >= min_order,
            )
            .values(
                display_order=DepartmentSectionAssignment.display_order + delta,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        if exclude_department_id is not None:
            stmt = stmt.where(DepartmentSectionAssignment.department_id != exclude_department_id)

        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_for_scope(self, organization_id: str, vertical_id: str) -> int:
        stmt = delete(DepartmentSectionAssignment).where(
            DepartmentSectionAssignment.organization_id == organization_id,
            DepartmentSectionAssignment.vertical_id == vertical_id,
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_one(
        self,
        organization_id: str,
        vertical_id: str,
        department_id: str,
    ) -> int:
        stmt = delete(DepartmentSectionAssignment).where(
            DepartmentSectionAssignment.organization_id == organization_id,
            DepartmentSectionAssignment.vertical_id == vertical_id,
            DepartmentSectionAssignment.department_id == department_id,
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0
