"""
SQLAlchemy Declarative Base와 공통 믹스인 정의
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for the layout schema"""

    pass


class TimestampMixin:
    """created_at / updated_at maintained by the database"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ActorMixin:
    """
    변경 주체 기록 (JWT ``sub``)

    Users live in the external identity provider, so these are plain
    strings rather than foreign keys.
    """

    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String(64), nullable=True)


class BaseModel(Base, TimestampMixin):
    """UUID primary key plus timestamps"""

    __abstract__ = True

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
