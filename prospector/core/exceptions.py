"""
Custom exceptions for Prospector API.
Provides consistent error handling across the application.

Every exception carries a machine readable ``code`` and the HTTP status the
API boundary answers with. Services raise these; ``main.py`` renders them.
"""
from typing import Optional


class ProspectorException(Exception):
    """Base exception for Prospector"""
    code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(self, message: str = "An error occurred", code: Optional[str] = None):
        self.message = message
        if code:
            self.code = code
        super().__init__(self.message)

    @property
    def public_code(self) -> str:
        """Code exposed to API callers."""
        return self.code


class NotFoundError(ProspectorException):
    """Resource not found"""
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str = "Resource", resource_id: str = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)


class ListNotFoundError(NotFoundError):
    """Company list does not exist (answered as NOT_FOUND)"""
    code = "LIST_NOT_FOUND"

    def __init__(self, list_id: str = None):
        super().__init__("Company list", list_id)

    @property
    def public_code(self) -> str:
        return NotFoundError.code


class UnauthorizedError(ProspectorException):
    """Authentication failed"""
    code = "UNAUTHORIZED"
    status_code = 401

    def __init__(self, message: str = "Invalid or missing authentication"):
        super().__init__(message)


class ForbiddenError(ProspectorException):
    """Access denied"""
    code = "FORBIDDEN"
    status_code = 403

    def __init__(self, message: str = "You don't have permission to access this resource"):
        super().__init__(message)


class ValidationError(ProspectorException):
    """Malformed or out-of-range input"""
    code = "INVALID_REQUEST"
    status_code = 400

    def __init__(self, code: str = "INVALID_REQUEST", message: str = "Validation failed"):
        super().__init__(message, code=code)


class InternalError(ProspectorException):
    """Unexpected storage or transaction failure"""
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
