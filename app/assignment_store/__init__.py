"""
Assignment Store
Persistence of per-organization department section assignments
"""

from app.assignment_store.factory import create_assignment_store, get_assignment_store
from app.assignment_store.inmemory import InMemoryAssignmentStore
from app.assignment_store.protocol import AssignmentStoreProtocol
from app.assignment_store.sql import SqlAssignmentStore

__all__ = [
    "AssignmentStoreProtocol",
    "InMemoryAssignmentStore",
    "SqlAssignmentStore",
    "create_assignment_store",
    "get_assignment_store",
]
