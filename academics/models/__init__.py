# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request/response models and shared enumerations."""

from academics.models.academic_term import TermContext
from academics.models.common import (
    EnrollmentStatus,
    GradeValue,
    SectionStatus,
    Semester,
    StudentStatus,
    SubjectType,
)

__all__ = [
    "TermContext",
    "EnrollmentStatus",
    "GradeValue",
    "SectionStatus",
    "Semester",
    "StudentStatus",
    "SubjectType",
]
