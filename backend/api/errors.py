"""
Domain exceptions raised by services and mapped to HTTP responses in main.py.

Services raise these instead of HTTPException so they stay usable outside
a request (scripts, tests); the handler turns them into the
{"success": false, "message": ...} envelope.
"""
from typing import Any, Optional


class DomainError(Exception):
    status_code = 400

    def __init__(self, message: str, errors: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationError(DomainError):
    """Bad input: unknown enum value, negative number, missing field, unknown reference."""
    status_code = 400


class CapacityError(DomainError):
    """Headcount or subscription limit reached."""
    status_code = 400


class CircularHierarchyError(DomainError):
    status_code = 400


class DuplicateError(DomainError):
    status_code = 400


class NotFoundError(DomainError):
    status_code = 404
