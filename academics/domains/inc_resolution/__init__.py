# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""INC resolution domain package.

This package provides the INC resolution workflow:
- Professor proposals replacing an INC grade
- Registrar approval (single and bulk) with standing recompute
- INC subject and resolution listings
"""

from academics.domains.inc_resolution.service import (
    AlreadyApprovedError,
    DuplicateResolutionError,
    IncResolutionService,
    NoIncOnRecordError,
    ResolutionNotFoundError,
)

__all__ = [
    "IncResolutionService",
    "AlreadyApprovedError",
    "DuplicateResolutionError",
    "NoIncOnRecordError",
    "ResolutionNotFoundError",
]
