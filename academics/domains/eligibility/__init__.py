# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Eligibility domain package.

This package resolves which subjects a student may enroll in:
- Year-standing and program candidates
- Prerequisite, INC-blocking and repeat-cooldown filters
- Recommended subjects for the student's year and semester
"""

from academics.domains.eligibility.rules import (
    GradeRecord,
    blocked_by_inc,
    in_repeat_cooldown,
    inc_subject_ids,
    prerequisite_satisfied,
    repeat_cooldown_until,
    year_standing_allows,
)
from academics.domains.eligibility.service import EligibilityService

__all__ = [
    "EligibilityService",
    "GradeRecord",
    "blocked_by_inc",
    "in_repeat_cooldown",
    "inc_subject_ids",
    "prerequisite_satisfied",
    "repeat_cooldown_until",
    "year_standing_allows",
]
