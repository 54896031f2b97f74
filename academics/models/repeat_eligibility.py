# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Repeat eligibility report models."""

from datetime import datetime

from pydantic import BaseModel, Field

from academics.models.catalog import ProgramSummary, SubjectSummary
from academics.models.common import Semester


class FailedTerm(BaseModel):
    """Term in which the subject was failed."""

    school_year: str
    semester: Semester


class RepeatEligibilityItem(BaseModel):
    """Eligibility of one failed subject."""

    grade_id: str
    subject: SubjectSummary
    failed_term: FailedTerm
    date_failed: datetime
    repeat_eligible_date: datetime
    is_eligible: bool
    days_until_eligible: int = Field(..., ge=0)


class RepeatEligibilityReport(BaseModel):
    """Failed subjects of one student."""

    student_id: str
    subjects: list[RepeatEligibilityItem] = Field(default_factory=list)
    total_eligible: int = 0
    total_pending: int = 0


class StudentRepeatSummary(BaseModel):
    """Failed subject counts for one student."""

    student_id: str
    student_no: str
    full_name: str
    year_level: int
    program: ProgramSummary
    failed_subjects: int
    eligible_subjects: int
    pending_subjects: int
    subjects: list[RepeatEligibilityItem] = Field(default_factory=list)


class AllStudentsEligibilityReport(BaseModel):
    """Repeat eligibility across students, for registrar and dean oversight."""

    students: list[StudentRepeatSummary] = Field(default_factory=list)
    total_students: int = 0
    total_eligible: int = 0
    total_pending: int = 0
