# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the error taxonomy."""

import pytest

from academics.core.exceptions import (
    AcademicsError,
    AuthorizationError,
    ErrorKind,
    GradeNotFoundError,
    InvalidGradeError,
    NoActiveTermError,
    NotAuthorizedError,
    NotFoundError,
    PreconditionError,
    StudentNotFoundError,
    ValidationError,
)
from academics.domains.enrollment import (
    DuplicateEnrollmentError,
    EnrollmentNotFoundError,
    SectionsUnavailableError,
    UnitCapExceededError,
)
from academics.domains.inc_resolution import AlreadyApprovedError, NoIncOnRecordError
from academics.domains.repeat_eligibility import InvalidDateError, NotAFailureError


class TestAcademicsError:
    """Tests for the base error."""

    def test_message_and_details(self) -> None:
        """Test message and details are kept and rendered."""
        error = AcademicsError("Something failed", {"id": "x"})

        assert error.message == "Something failed"
        assert error.details == {"id": "x"}
        assert str(error) == "Something failed - Details: {'id': 'x'}"

    def test_str_without_details(self) -> None:
        """Test the plain message is rendered without details."""
        assert str(AcademicsError("Plain")) == "Plain"

    def test_to_dict(self) -> None:
        """Test the error serializes with its kind and class name."""
        error = StudentNotFoundError("Student s-1 not found")

        assert error.to_dict() == {
            "kind": "not_found",
            "error": "StudentNotFoundError",
            "message": "Student s-1 not found",
            "details": {},
        }


class TestErrorKinds:
    """Tests that every concrete error reports the right kind."""

    @pytest.mark.parametrize(
        ("error_class", "kind"),
        [
            (StudentNotFoundError, ErrorKind.NOT_FOUND),
            (GradeNotFoundError, ErrorKind.NOT_FOUND),
            (EnrollmentNotFoundError, ErrorKind.NOT_FOUND),
            (NoActiveTermError, ErrorKind.PRECONDITION),
            (DuplicateEnrollmentError, ErrorKind.PRECONDITION),
            (SectionsUnavailableError, ErrorKind.PRECONDITION),
            (UnitCapExceededError, ErrorKind.PRECONDITION),
            (NotAFailureError, ErrorKind.PRECONDITION),
            (NoIncOnRecordError, ErrorKind.PRECONDITION),
            (AlreadyApprovedError, ErrorKind.PRECONDITION),
            (InvalidGradeError, ErrorKind.VALIDATION),
            (InvalidDateError, ErrorKind.VALIDATION),
            (NotAuthorizedError, ErrorKind.AUTHORIZATION),
        ],
    )
    def test_kind(self, error_class: type[AcademicsError], kind: ErrorKind) -> None:
        """Test the error class carries its kind."""
        error = error_class("boom")

        assert error.kind is kind
        assert isinstance(error, AcademicsError)

    def test_kind_bases(self) -> None:
        """Test each kind has its own base class."""
        assert issubclass(StudentNotFoundError, NotFoundError)
        assert issubclass(UnitCapExceededError, PreconditionError)
        assert issubclass(InvalidGradeError, ValidationError)
        assert issubclass(NotAuthorizedError, AuthorizationError)
