# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enumerations for the academics engine.

GradeValue is the single source of truth for the grading scale: the
accepted values, their order (best to worst) and their GPA points.
"""

from enum import Enum


class GradeValue(str, Enum):
    """Closed grading scale.

    Numeric bands run from 1.0 (highest) to 5.0 (failure). INC marks an
    incomplete and DRP a drop; neither carries GPA points.
    """

    GRADE_1_0 = "grade_1_0"
    GRADE_1_25 = "grade_1_25"
    GRADE_1_5 = "grade_1_5"
    GRADE_1_75 = "grade_1_75"
    GRADE_2_0 = "grade_2_0"
    GRADE_2_25 = "grade_2_25"
    GRADE_2_5 = "grade_2_5"
    GRADE_2_75 = "grade_2_75"
    GRADE_3_0 = "grade_3_0"
    GRADE_4_0 = "grade_4_0"
    GRADE_5_0 = "grade_5_0"
    INC = "INC"
    DRP = "DRP"

    @classmethod
    def ordered(cls) -> list["GradeValue"]:
        """All values, best numeric band first, sentinels last."""
        return list(cls)

    @classmethod
    def numeric_values(cls) -> list["GradeValue"]:
        """Values that carry GPA points, in scale order."""
        return [value for value in cls.ordered() if value.is_numeric]

    @classmethod
    def parse(cls, raw: "str | GradeValue") -> "GradeValue":
        """Convert a raw string into a GradeValue.

        Raises:
            ValueError: If the string is not on the grading scale.
        """
        if isinstance(raw, cls):
            return raw
        return cls(raw)

    @property
    def is_numeric(self) -> bool:
        """Check if this value carries GPA points."""
        return self not in (GradeValue.INC, GradeValue.DRP)

    @property
    def is_failure(self) -> bool:
        """Check if this value is the failing band."""
        return self is GradeValue.GRADE_5_0

    @property
    def starts_repeat_cooldown(self) -> bool:
        """Check if this value sets a repeat-eligible date."""
        return self in (GradeValue.GRADE_5_0, GradeValue.INC)

    def grade_points(self) -> float | None:
        """GPA points for this value, or None for INC/DRP."""
        return _GRADE_POINTS.get(self)


_GRADE_POINTS: dict[GradeValue, float] = {
    GradeValue.GRADE_1_0: 1.0,
    GradeValue.GRADE_1_25: 1.25,
    GradeValue.GRADE_1_5: 1.5,
    GradeValue.GRADE_1_75: 1.75,
    GradeValue.GRADE_2_0: 2.0,
    GradeValue.GRADE_2_25: 2.25,
    GradeValue.GRADE_2_5: 2.5,
    GradeValue.GRADE_2_75: 2.75,
    GradeValue.GRADE_3_0: 3.0,
    GradeValue.GRADE_4_0: 4.0,
    GradeValue.GRADE_5_0: 5.0,
}


class SubjectType(str, Enum):
    """Subject classification; drives the repeat cooldown length."""

    MAJOR = "major"
    MINOR = "minor"


class Semester(str, Enum):
    """Semester labels of an academic term."""

    FIRST = "first"
    SECOND = "second"
    SUMMER = "summer"


class SectionStatus(str, Enum):
    """Whether a section accepts enrollments."""

    OPEN = "open"
    CLOSED = "closed"


class EnrollmentStatus(str, Enum):
    """Lifecycle of an enrollment."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class StudentStatus(str, Enum):
    """Registration standing of a student."""

    REGULAR = "regular"
    IRREGULAR = "irregular"
    INACTIVE = "inactive"
