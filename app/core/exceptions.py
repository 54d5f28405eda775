"""
Custom application exceptions
"""

import enum
from typing import Optional, Dict, Any


class Module(enum.IntEnum):
    EVENT = 1
    REGISTRATION = 2


class ErrorCode(enum.IntEnum):
    NOT_FOUND = 0
    BAD_PAYMENT_TYPE = 1
    EVENT_NOT_FOUND = 2
    REGISTRATION_ALREADY_EXISTS = 3
    DATABASE_ERROR = 4


def get_code(module: Module, error_code: ErrorCode) -> str:
    """Internal error code in the "<module>00<code>" form, e.g. "2003"."""
    return f"{int(module)}00{int(error_code)}"


class AppException(Exception):
    """Base exception for the registration service"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication related errors"""

    def __init__(self, message: str = "Unauthorized", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="AUTH_ERROR",
            status_code=401,
            details=details
        )


class AuthorizationError(AppException):
    """Authorization related errors"""

    def __init__(self, message: str = "Forbidden", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="AUTH_FORBIDDEN",
            status_code=403,
            details=details
        )


class NotFoundError(AppException):
    """Resource not found errors"""

    def __init__(self, resource: str, identifier: Any = None, code: Optional[str] = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id {identifier} not found"
        super().__init__(
            message=message,
            code=code or "NOT_FOUND",
            status_code=404
        )


class EventNotFoundError(NotFoundError):

    def __init__(self, event_id: Any = None):
        super().__init__(
            "Event",
            event_id,
            code=get_code(Module.REGISTRATION, ErrorCode.EVENT_NOT_FOUND)
        )


class ValidationError(AppException):
    """Validation errors"""

    def __init__(self, message: str, field: Optional[str] = None, code: str = "VALIDATION_ERROR"):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code=code,
            status_code=400,
            details=details
        )


class ConflictError(AppException):
    """Resource conflict errors"""

    def __init__(self, message: str, code: str = "CONFLICT", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            details=details
        )


class DuplicateRegistrationError(ConflictError):
    """Person already registered or waiting for the event"""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code=get_code(Module.REGISTRATION, ErrorCode.REGISTRATION_ALREADY_EXISTS)
        )


class RegistrationError(AppException):
    """Registration workflow errors"""

    def __init__(self, message: str, code: str = "REGISTRATION_ERROR", status_code: int = 400):
        super().__init__(
            message=message,
            code=code,
            status_code=status_code
        )


class DatabaseError(AppException):
    """Database write failed"""

    def __init__(self, message: str, module: Module = Module.REGISTRATION):
        super().__init__(
            message=message,
            code=get_code(module, ErrorCode.DATABASE_ERROR),
            status_code=500
        )


class RateLimitError(AppException):
    """Rate limit exceeded error"""

    def __init__(self, limit: int, window: int):
        super().__init__(
            message=f"Rate limit exceeded. Max {limit} requests per {window} seconds",
            code="RATE_LIMIT_EXCEEDED",
            status_code=429,
            details={"limit": limit, "window": window}
        )
