# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic term models.

TermContext is the explicit "current term" value threaded into every
term-dependent operation, so callers (and tests) can pin any term.
"""

from pydantic import BaseModel, ConfigDict, Field

from academics.models.common import Semester


class TermContext(BaseModel):
    """Resolved academic term."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str = Field(..., description="Academic term identifier")
    school_year: str = Field(..., description="School year, e.g. 2024-2025")
    semester: Semester = Field(..., description="Semester label")
    is_active: bool = Field(default=False, description="Whether the term is active")

    @property
    def label(self) -> str:
        return f"{self.school_year} {self.semester.value}"
