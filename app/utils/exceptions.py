"""Custom HTTP exception classes module.

Provides pre-configured HTTPException subclasses for common error patterns.
These simplify error raising across services and repositories by
eliminating the need to specify status codes at each call site.
Each class carries an ``error_code`` used by the JSON error envelope.

Usage:
    from app.utils.exceptions import NotFoundError, DuplicateError
    raise NotFoundError("Member not found")
    raise DuplicateError("District code already exists")
"""

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """404 Not Found exception.

    Raised when a requested resource (member, player, tournament, etc.) does not exist.

    Args:
        detail: Error message, default: "Resource not found"
    """

    error_code: str = "NOT_FOUND"

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class DuplicateError(HTTPException):
    """409 Conflict exception.

    Raised when attempting to create a resource that violates a uniqueness constraint
    (e.g. duplicate member email, duplicate district code, duplicate registration).

    Args:
        detail: Error message, default: "Resource already exists"
    """

    error_code: str = "DUPLICATE_RESOURCE"

    def __init__(self, detail: str = "Resource already exists") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ForbiddenError(HTTPException):
    """403 Forbidden exception.

    Raised when the authenticated user lacks the required permission or role,
    or when the account is disabled.

    Args:
        detail: Error message, default: "Insufficient permissions"
    """

    error_code: str = "ACCESS_DENIED"

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UnauthorizedError(HTTPException):
    """401 Unauthorized exception.

    Raised when authentication is missing, invalid, or expired.

    Args:
        detail: Error message, default: "Authentication required"
    """

    error_code: str = "UNAUTHORIZED"

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class BadRequestError(HTTPException):
    """400 Bad Request exception.

    Raised when the request data is invalid beyond what Pydantic validation catches
    (e.g. business rule violations, invalid state transitions).

    Args:
        detail: Error message, default: "Bad request"
    """

    error_code: str = "BAD_REQUEST"

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class TooManyRequestsError(HTTPException):
    """429 Too Many Requests exception.

    Args:
        detail: Error message
        retry_after: Seconds until the client may retry
    """

    error_code: str = "RATE_LIMITED"

    def __init__(self, detail: str = "Too many requests", retry_after: int = 60) -> None:
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=detail,
            headers={"Retry-After": str(retry_after)},
        )
