"""
Assignment Store Factory
Creates appropriate store implementation based on configuration
"""

from app.assignment_store.inmemory import InMemoryAssignmentStore
from app.assignment_store.protocol import AssignmentStoreProtocol
from app.assignment_store.sql import SqlAssignmentStore
from app.core.config import settings
from app.core.db import get_session_maker
from app.core.logging import get_logger

logger = get_logger(__name__)


def create_assignment_store() -> AssignmentStoreProtocol:
    """
    Build an assignment store for ``settings.assignment_store_type``

    Raises:
        ValueError: If assignment_store_type is not supported
    """
    store_type = settings.assignment_store_type
    logger.info("assignment_store_factory", store_type=store_type)

    if store_type == "memory":
        return InMemoryAssignmentStore()

    if store_type == "sql":
        return SqlAssignmentStore(get_session_maker())

    raise ValueError(
        f"Unsupported assignment_store_type: {store_type}. Supported types: sql, memory"
    )


_assignment_store: AssignmentStoreProtocol | None = None


def get_assignment_store() -> AssignmentStoreProtocol:
    """
    Get singleton assignment store instance
    """
    global _assignment_store
    if _assignment_store is None:
        _assignment_store = create_assignment_store()
    return _assignment_store
