"""
Core module: Configuration, Logging, Exceptions, Common Utilities
"""

from app.core.config import settings

__all__ = ["settings"]
