# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models for the academics engine.

Importing this package registers every mapped class on Base.metadata.
"""

from academics.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from academics.infrastructure.database.models.catalog import (
    AcademicTerm,
    Professor,
    Program,
    Section,
    Subject,
)
from academics.infrastructure.database.models.enrollment import Enrollment, EnrollmentSubject
from academics.infrastructure.database.models.grade import Grade, IncResolution
from academics.infrastructure.database.models.student import Student

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "AcademicTerm",
    "Professor",
    "Program",
    "Section",
    "Subject",
    "Student",
    "Enrollment",
    "EnrollmentSubject",
    "Grade",
    "IncResolution",
]
