"""
API Routers
FastAPI route handlers
"""

from app.routers import department_layout

__all__ = [
    "department_layout",
]
