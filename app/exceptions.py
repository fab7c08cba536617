"""HTTP error types raised by routes and services.

Each maps onto one status code; the handlers in ``app.main`` attach the
request's correlation id to the response body.
"""
from fastapi import HTTPException, status


class UnauthorizedException(HTTPException):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class ForbiddenException(HTTPException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundException(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ValidationException(HTTPException):
    def __init__(self, detail: str = "Invalid request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ConflictException(HTTPException):
    """Raised when the database rejects a write (foreign key or check constraint)."""

    def __init__(self, detail: str = "Constraint violation"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)
