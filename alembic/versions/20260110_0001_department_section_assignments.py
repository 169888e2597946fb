"""department_section_assignments

Revision ID: 20260110_0001
Revises:
Create Date: 2026-01-10 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "20260110_0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SECTION_IDS = ("documents", "departments", "operations", "admin")


def upgrade() -> None:
    """Create the per-organization department placement table."""

    section_id = postgresql.ENUM(*SECTION_IDS, name="section_id", create_type=False)
    section_id.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "department_section_assignments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("organization_id", sa.String(length=64), nullable=False),
        sa.Column("vertical_id", sa.String(length=50), nullable=False),
        sa.Column("department_id", sa.String(length=100), nullable=False),
        sa.Column("department_key", sa.String(length=100), nullable=False),
        sa.Column("section_id", section_id, nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_visible", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("custom_name", sa.String(length=200), nullable=True),
        sa.Column("custom_description", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("updated_by", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            "organization_id",
            "vertical_id",
            "department_id",
            name="uq_dept_assignment_org_vertical_department",
        ),
        sa.CheckConstraint("display_order >= 0", name="ck_dept_assignment_display_order"),
    )
    op.create_index(
        "idx_dept_assignments_org_vertical",
        "department_section_assignments",
        ["organization_id", "vertical_id"],
    )
    op.create_index(
        "ix_department_section_assignments_section_id",
        "department_section_assignments",
        ["section_id"],
    )


def downgrade() -> None:
    op.drop_index(
        "ix_department_section_assignments_section_id",
        table_name="department_section_assignments",
    )
    op.drop_index(
        "idx_dept_assignments_org_vertical",
        table_name="department_section_assignments",
    )
    op.drop_table("department_section_assignments")
    postgresql.ENUM(name="section_id").drop(op.get_bind(), checkfirst=True)
