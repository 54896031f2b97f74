# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Eligibility resolver response models."""

from pydantic import BaseModel, Field

from academics.models.academic_term import TermContext
from academics.models.catalog import SubjectOffering


class StudentStanding(BaseModel):
    """Student fields relevant to eligibility."""

    id: str
    student_no: str
    year_level: int
    program: str
    gpa: float
    has_inc: bool


class AvailableSubjectsResponse(BaseModel):
    """Subjects a student may enroll in for a term."""

    subjects: list[SubjectOffering] = Field(default_factory=list)
    student: StudentStanding
    term: TermContext
    requested_by: str | None = Field(
        default=None, description="Staff role when looked up on behalf of the student"
    )
