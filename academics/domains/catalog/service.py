# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Catalog lookup service.

Catalog administration (program, subject and section CRUD) lives outside
this engine. This module offers the read-only lookups the engine needs,
the prerequisite-link invariant, and the DTO converters shared by the
other domains.
"""

from __future__ import annotations

import logging

from sqlalchemy import inspect, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from academics.core.exceptions import NotFoundError, ValidationError
from academics.infrastructure.database.models import Program, Section, Subject
from academics.models.catalog import (
    ProfessorSummary,
    ProgramSummary,
    SectionSummary,
    SubjectOffering,
    SubjectSummary,
)

logger = logging.getLogger(__name__)


class ProgramNotFoundError(NotFoundError):
    """Raised when program is not found."""

    pass


class SubjectNotFoundError(NotFoundError):
    """Raised when subject is not found."""

    pass


class SectionNotFoundError(NotFoundError):
    """Raised when section is not found."""

    pass


class SelfPrerequisiteError(ValidationError):
    """Raised when a subject is linked as its own prerequisite."""

    pass


def _is_loaded(instance: object, attribute: str) -> bool:
    return attribute not in inspect(instance).unloaded


def to_subject_summary(subject: Subject) -> SubjectSummary:
    """Convert a subject row to its summary DTO."""
    return SubjectSummary.model_validate(subject)


def to_section_summary(section: Section) -> SectionSummary:
    """Convert a section row to its summary DTO.

    The professor is included only when it was eager-loaded.
    """
    professor = None
    if _is_loaded(section, "professor") and section.professor is not None:
        professor = ProfessorSummary.model_validate(section.professor)

    return SectionSummary(
        id=section.id,
        name=section.name,
        subject_id=section.subject_id,
        school_year=section.school_year,
        semester=section.semester,
        max_slots=section.max_slots,
        available_slots=section.available_slots,
        status=section.status,
        professor=professor,
    )


def to_subject_offering(subject: Subject, sections: list[Section]) -> SubjectOffering:
    """Convert a subject and its open sections to an offering DTO."""
    return SubjectOffering(
        **to_subject_summary(subject).model_dump(),
        sections=[to_section_summary(section) for section in sections],
    )


class CatalogService:
    """Read-only catalog lookups.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize catalog service.

        Args:
            db: Async database session.
        """
        self.db = db

    async def get_program(self, program_id: str) -> ProgramSummary:
        """Get program by ID.

        Raises:
            ProgramNotFoundError: If not found.
        """
        result = await self.db.execute(select(Program).where(Program.id == program_id))
        program = result.scalar_one_or_none()

        if not program:
            raise ProgramNotFoundError(f"Program {program_id} not found")

        return ProgramSummary.model_validate(program)

    async def get_subject(self, subject_id: str) -> SubjectSummary:
        """Get subject by ID.

        Raises:
            SubjectNotFoundError: If not found.
        """
        subject = await self._get_subject(subject_id)
        return to_subject_summary(subject)

    async def get_section(self, section_id: str) -> SectionSummary:
        """Get section by ID, with its professor.

        Raises:
            SectionNotFoundError: If not found.
        """
        query = (
            select(Section)
            .options(selectinload(Section.professor))
            .where(Section.id == section_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        section = result.scalar_one_or_none()

        if not section:
            raise SectionNotFoundError(f"Section {section_id} not found")

        return to_section_summary(section)

    async def assign_prerequisite(
        self,
        subject_id: str,
        prerequisite_id: str | None,
    ) -> SubjectSummary:
        """Link (or unlink) a subject's prerequisite.

        Args:
            subject_id: Subject to update.
            prerequisite_id: Prerequisite subject, or None to clear the link.

        Returns:
            Updated subject.

        Raises:
            SelfPrerequisiteError: If the subject would require itself.
            SubjectNotFoundError: If either subject does not exist.
        """
        if prerequisite_id is not None and prerequisite_id == subject_id:
            raise SelfPrerequisiteError(
                "Subject cannot be its own prerequisite",
                {"subject_id": subject_id},
            )

        subject = await self._get_subject(subject_id)
        if prerequisite_id is not None:
            await self._get_subject(prerequisite_id)

        subject.prerequisite_id = prerequisite_id
        await self.db.commit()

        logger.info("Set prerequisite of subject %s to %s", subject_id, prerequisite_id)

        return to_subject_summary(subject)

    async def _get_subject(self, subject_id: str) -> Subject:
        result = await self.db.execute(select(Subject).where(Subject.id == subject_id))
        subject = result.scalar_one_or_none()

        if not subject:
            raise SubjectNotFoundError(f"Subject {subject_id} not found")

        return subject
