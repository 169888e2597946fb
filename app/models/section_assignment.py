"""
Department section assignment model

조직/버티컬별 부서 배치(섹션, 순서, 표시 여부, 표시명) 오버라이드를 저장한다.
"""

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Enum as SQLEnum,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import ActorMixin, BaseModel


class SectionId(str, enum.Enum):
    """사이드바 섹션 식별자"""

    DOCUMENTS = "documents"
    DEPARTMENTS = "departments"
    OPERATIONS = "operations"
    ADMIN = "admin"


class DepartmentSectionAssignment(BaseModel, ActorMixin):
    """
    조직별 부서-섹션 배치
    - (organization_id, vertical_id, department_id) 당 최대 1건
    - 행이 없으면 기본 설정(휴리스틱 섹션/순서)을 따른다
    """

    __tablename__ = "department_section_assignments"
    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "vertical_id",
            "department_id",
            name="uq_dept_assignment_org_vertical_department",
        ),
        Index("idx_dept_assignments_org_vertical", "organization_id", "vertical_id"),
        CheckConstraint("display_order >= 0", name="ck_dept_assignment_display_order"),
    )

    organization_id: Mapped[str] = mapped_column(String(64), nullable=False)
    vertical_id: Mapped[str] = mapped_column(String(50), nullable=False)
    department_id: Mapped[str] = mapped_column(String(100), nullable=False)
    department_key: Mapped[str] = mapped_column(String(100), nullable=False)
    section_id: Mapped[SectionId] = mapped_column(
        SQLEnum(
            SectionId,
            name="section_id",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        index=True,
    )
    display_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )
    is_visible: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default="true",
    )
    custom_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    custom_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<DepartmentSectionAssignment(org={self.organization_id}, "
            f"vertical={self.vertical_id}, department={self.department_id}, "
            f"section={self.section_id}, order={self.display_order})>"
        )
