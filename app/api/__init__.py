"""
HTTP layer of the department layout service
"""

from app.api.main import create_app

__all__ = ["create_app"]
