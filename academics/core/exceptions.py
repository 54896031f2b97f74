# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error taxonomy shared by the academics domain services.

This module defines the exception hierarchy every domain raises:
- AcademicsError: Base exception carrying a kind, a message and details
- NotFoundError: A student, subject, section, grade or resolution is absent
- PreconditionError: The current state forbids the operation
- ValidationError: The input itself is malformed or out of range
- AuthorizationError: The caller does not own the target record

Domain packages subclass one of the four kinds, so a caller can map
failures by kind (e.g. NotFound to 404) without knowing every concrete type.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Kinds of failure a domain operation can report."""

    NOT_FOUND = "not_found"
    PRECONDITION = "precondition"
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"


class AcademicsError(Exception):
    """Base exception for all academics domain errors.

    Attributes:
        kind: Failure kind, set by each of the four kind subclasses.
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    kind: ErrorKind = ErrorKind.PRECONDITION

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize academics error.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with details if available."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for an API layer."""
        return {
            "kind": self.kind.value,
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(AcademicsError):
    """Raised when a referenced record does not exist."""

    kind = ErrorKind.NOT_FOUND


class PreconditionError(AcademicsError):
    """Raised when the current state does not allow the operation."""

    kind = ErrorKind.PRECONDITION


class ValidationError(AcademicsError):
    """Raised when an input value is invalid."""

    kind = ErrorKind.VALIDATION


class AuthorizationError(AcademicsError):
    """Raised when the caller may not act on the target record."""

    kind = ErrorKind.AUTHORIZATION


# Errors shared by several domains


class StudentNotFoundError(NotFoundError):
    """Raised when student is not found."""

    pass


class NoActiveTermError(PreconditionError):
    """Raised when no academic term is active and none was given."""

    pass


class InvalidGradeError(ValidationError):
    """Raised when a grade value is outside the accepted enumeration."""

    pass


class GradeNotFoundError(NotFoundError):
    """Raised when grade is not found."""

    pass


class NotAuthorizedError(AuthorizationError):
    """Raised when a caller targets records it does not own."""

    pass
