"""
Custom Exceptions for the department layout service
"""


class LayoutException(Exception):
    """Base exception for all application errors"""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# Database Exceptions
class DatabaseError(LayoutException):
    """Database operation failed"""

    pass


class RecordNotFoundError(LayoutException):
    """Requested record not found in database"""

    pass


class DuplicateRecordError(LayoutException):
    """Attempted to create duplicate record"""

    pass


# Assignment Store Exceptions
class AssignmentStoreError(LayoutException):
    """Assignment store operation failed"""

    pass


class StoreUnavailableError(AssignmentStoreError):
    """Backing table/schema for assignments does not exist"""

    pass


class TransientFailureError(AssignmentStoreError):
    """Network or generic store failure; the caller may try again later"""

    pass


class ZeroRowsAffectedError(AssignmentStoreError):
    """Write reported success but touched no rows"""

    def __init__(self, operation: str, message: str | None = None):
        self.operation = operation
        super().__init__(
            message or f"{operation} did not update any rows. The change was not saved."
        )


# Business Logic Exceptions
class BusinessLogicError(LayoutException):
    """Business rule violation"""

    pass


class FallbackModeError(BusinessLogicError):
    """Mutation attempted while the store is unavailable (read-only defaults)"""

    pass


class NothingToUndoError(BusinessLogicError):
    """No unexpired move is available for undo"""

    pass


# Validation Exceptions
class ValidationError(LayoutException):
    """Input validation failed"""

    pass


class AuthenticationError(LayoutException):
    """Authentication failed"""

    pass


class AuthorizationError(LayoutException):
    """User not authorized for this operation"""

    pass


class PermissionDeniedError(AuthorizationError):
    """Acting principal lacks the role required to change the layout"""

    pass


class JWTDecodeError(AuthenticationError):
    """JWT decoding failed"""

    pass
