# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade lifecycle request and response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from academics.models.academic_term import TermContext
from academics.models.catalog import SectionSummary, SubjectSummary
from academics.models.common import GradeValue


class SubmitGradeRequest(BaseModel):
    """Professor grade submission."""

    enrollment_subject_id: str
    grade_value: GradeValue
    remarks: str | None = Field(default=None, max_length=2000)


class GradeResponse(BaseModel):
    """Grade row."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    enrollment_subject_id: str
    grade_value: GradeValue
    approved: bool
    encoded_by: str
    date_encoded: datetime
    remarks: str | None = None
    repeat_eligible_date: datetime | None = None


class StudentSummary(BaseModel):
    """Student identity shown next to a grade."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    student_no: str
    full_name: str
    year_level: int


class PendingGrade(BaseModel):
    """Unapproved grade awaiting the registrar."""

    grade: GradeResponse
    student: StudentSummary
    subject: SubjectSummary
    section: SectionSummary


class PendingGradesResponse(BaseModel):
    """Unapproved grades for a term."""

    pending_grades: list[PendingGrade] = Field(default_factory=list)
    term: TermContext


class BulkApproveResponse(BaseModel):
    """Result of a bulk approval."""

    approved_count: int
    student_ids: list[str] = Field(default_factory=list)


class RosterEntry(BaseModel):
    """One student in a professor's section."""

    enrollment_subject_id: str
    student: StudentSummary
    grade: GradeResponse | None = None


class SectionRoster(BaseModel):
    """A professor's section with enrolled students and their grades."""

    section: SectionSummary
    subject: SubjectSummary
    students: list[RosterEntry] = Field(default_factory=list)


class ProfessorSectionsResponse(BaseModel):
    """All sections a professor handles in a term."""

    sections: list[SectionRoster] = Field(default_factory=list)
    term: TermContext
