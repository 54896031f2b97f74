# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""INC resolution request and response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from academics.models.academic_term import TermContext
from academics.models.catalog import ProfessorSummary, SectionSummary, SubjectSummary
from academics.models.common import GradeValue
from academics.models.grade import StudentSummary


class CreateIncResolutionRequest(BaseModel):
    """Professor proposal to replace an INC."""

    student_id: str
    subject_id: str
    new_grade: GradeValue
    remarks: str | None = Field(default=None, max_length=2000)


class IncResolutionResponse(BaseModel):
    """INC resolution row."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    subject_id: str
    professor_id: str
    old_grade: GradeValue
    new_grade: GradeValue
    remarks: str | None = None
    approved_by_registrar: bool
    date_submitted: datetime
    date_approved: datetime | None = None


class IncResolutionDetail(IncResolutionResponse):
    """INC resolution with the student, subject and professor it concerns."""

    student: StudentSummary
    subject: SubjectSummary
    professor: ProfessorSummary


class IncSubject(BaseModel):
    """A subject a student currently holds an INC for."""

    grade_id: str
    subject: SubjectSummary
    section: SectionSummary
    term: TermContext
    date_encoded: datetime
    remarks: str | None = None
    has_resolution: bool


class StudentIncSubjectsResponse(BaseModel):
    """A student's INC subjects and the resolutions filed for them."""

    inc_subjects: list[IncSubject] = Field(default_factory=list)
    existing_resolutions: list[IncResolutionDetail] = Field(default_factory=list)


class BulkResolutionResponse(BaseModel):
    """Result of a bulk resolution approval."""

    approved_count: int
    student_ids: list[str] = Field(default_factory=list)
