# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Caller identity passed into student-scoped operations.

Authentication happens upstream. The API layer builds an IdentityContext
from the verified token and hands it to the services, which only enforce
record ownership (a student may read their own records; staff may act on
behalf of any student id).
"""

from dataclasses import dataclass
from enum import Enum

from academics.core.exceptions import NotAuthorizedError, ValidationError


class Role(str, Enum):
    """Portal roles known to the engine."""

    STUDENT = "student"
    PROFESSOR = "professor"
    REGISTRAR = "registrar"
    ADMISSION = "admission"
    DEAN = "dean"
    ADMIN = "admin"


STAFF_ROLES = frozenset({Role.REGISTRAR, Role.ADMISSION, Role.DEAN})


@dataclass(frozen=True)
class IdentityContext:
    """Authenticated caller.

    Attributes:
        role: Role of the caller.
        student_id: Student record id when the caller is a student.
        professor_id: Professor record id when the caller is a professor.
    """

    role: Role
    student_id: str | None = None
    professor_id: str | None = None

    @property
    def is_staff(self) -> bool:
        """Check if the caller may act on behalf of any student."""
        return self.role in STAFF_ROLES

    def resolve_student_id(self, requested_student_id: str | None = None) -> str:
        """Resolve which student a lookup targets.

        Students always target themselves; staff must name a student.

        Args:
            requested_student_id: Student id supplied with the request.

        Returns:
            The student id to operate on.

        Raises:
            NotAuthorizedError: If a student targets another student or the
                role may not read student records.
            ValidationError: If staff did not name a student.
        """
        if self.role == Role.STUDENT:
            if self.student_id is None:
                raise NotAuthorizedError("Caller has no student record")
            if requested_student_id and requested_student_id != self.student_id:
                raise NotAuthorizedError(
                    "Students may only access their own records",
                    {"student_id": requested_student_id},
                )
            return self.student_id

        if self.is_staff:
            if not requested_student_id:
                raise ValidationError("Student ID is required")
            return requested_student_id

        raise NotAuthorizedError(
            f"Role {self.role.value} may not access student records"
        )
