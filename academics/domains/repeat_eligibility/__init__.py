# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Repeat eligibility domain package.

This package computes when failed subjects may be retaken:
- Cooldown end dates for failing and INC grades
- Per-student and all-student eligibility reports
- Registrar override of a cooldown end date
"""

from academics.domains.repeat_eligibility.service import (
    InvalidDateError,
    NotAFailureError,
    RepeatEligibilityService,
    compute_repeat_eligible_date,
)

__all__ = [
    "RepeatEligibilityService",
    "compute_repeat_eligible_date",
    "InvalidDateError",
    "NotAFailureError",
]
