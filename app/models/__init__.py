"""
SQLAlchemy 2.0 Models
"""

from app.models.base import Base, BaseModel  # noqa: F401
from app.models.section_assignment import DepartmentSectionAssignment, SectionId  # noqa: F401

__all__ = [
    "Base",
    "BaseModel",
    "DepartmentSectionAssignment",
    "SectionId",
]
