# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Catalog read models: programs, professors, subjects and sections."""

from pydantic import BaseModel, ConfigDict, Field

from academics.models.common import Semester, SectionStatus, SubjectType


class ProgramSummary(BaseModel):
    """Program summary."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    name: str


class ProfessorSummary(BaseModel):
    """Professor summary."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    department: str | None = None


class SectionSummary(BaseModel):
    """Section with its current capacity."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    subject_id: str
    school_year: str
    semester: Semester
    max_slots: int
    available_slots: int
    status: SectionStatus
    professor: ProfessorSummary | None = None


class SubjectSummary(BaseModel):
    """Subject catalog entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    name: str
    units: int
    subject_type: SubjectType
    prerequisite_id: str | None = None
    year_standing: int | None = None
    recommended_year: int | None = None
    recommended_semester: Semester | None = None


class SubjectOffering(SubjectSummary):
    """Subject together with its open sections in a term."""

    sections: list[SectionSummary] = Field(default_factory=list)
