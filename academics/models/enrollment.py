# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment request and response models."""

from datetime import datetime

from pydantic import BaseModel, Field

from academics.models.academic_term import TermContext
from academics.models.catalog import SectionSummary, SubjectSummary
from academics.models.common import EnrollmentStatus
from academics.models.grade import GradeResponse


class EnrollRequest(BaseModel):
    """Sections a student wants to take this term."""

    section_ids: list[str] = Field(default_factory=list)
    total_units: int = Field(..., ge=0)


class EnrollmentSubjectResponse(BaseModel):
    """One subject line of an enrollment."""

    id: str
    subject: SubjectSummary
    section: SectionSummary
    units: int
    grade: GradeResponse | None = None


class EnrollmentResponse(BaseModel):
    """Enrollment with its subject lines."""

    id: str
    student_id: str
    term: TermContext
    status: EnrollmentStatus
    total_units: int
    date_enrolled: datetime
    subjects: list[EnrollmentSubjectResponse] = Field(default_factory=list)
