"""
Custom Exceptions
HTTP errors raised by the API routes when a service reports an expected
failure.
Source: https://fastapi.tiangolo.com/tutorial/handling-errors/
Verified: 2026-10-16
"""

from typing import Any

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Raised when resource not found"""

    def __init__(self, detail: Any = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )


class BadRequestError(HTTPException):
    """Raised when the request cannot be processed as given"""

    def __init__(self, detail: Any = "Bad request"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class ValidationError(HTTPException):
    """Raised when validation fails"""

    def __init__(self, detail: Any = "Validation error"):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )


class ConflictError(HTTPException):
    """Raised when resource conflict occurs"""

    def __init__(self, detail: Any = "Resource conflict"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )
