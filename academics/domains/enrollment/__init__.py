# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides the enrollment transaction manager:
- Enroll a student in sections with atomic slot accounting
- Cancel a pending enrollment and restore slots
- Enrollment history
"""

from academics.domains.enrollment.service import (
    DuplicateEnrollmentError,
    EmptySectionSelectionError,
    EnrollmentNotFoundError,
    EnrollmentService,
    NotCancellableError,
    SectionsUnavailableError,
    UnitCapExceededError,
)

__all__ = [
    "EnrollmentService",
    "DuplicateEnrollmentError",
    "EmptySectionSelectionError",
    "EnrollmentNotFoundError",
    "NotCancellableError",
    "SectionsUnavailableError",
    "UnitCapExceededError",
]
