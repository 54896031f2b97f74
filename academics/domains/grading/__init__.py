# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grading domain package.

This package provides the grade lifecycle:
- Grade submission and correction by professors
- Registrar approval (single and bulk)
- Student GPA and INC standing recompute
- Pending grades and professor section rosters
"""

from academics.core.exceptions import GradeNotFoundError, InvalidGradeError, NotAuthorizedError
from academics.domains.grading.service import EnrollmentSubjectNotFoundError, GradingService
from academics.domains.grading.standing import (
    Standing,
    compute_standing,
    recompute_student_standing,
)

__all__ = [
    "GradingService",
    "Standing",
    "compute_standing",
    "recompute_student_standing",
    "EnrollmentSubjectNotFoundError",
    "GradeNotFoundError",
    "InvalidGradeError",
    "NotAuthorizedError",
]
