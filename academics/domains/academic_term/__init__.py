# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic term domain package.

Active-term lookup and explicit TermContext resolution.
"""

from academics.core.exceptions import NoActiveTermError
from academics.domains.academic_term.service import (
    AcademicTermService,
    TermNotFoundError,
)
from academics.models.academic_term import TermContext

__all__ = [
    "AcademicTermService",
    "NoActiveTermError",
    "TermContext",
    "TermNotFoundError",
]
