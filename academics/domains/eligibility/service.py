# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Eligibility resolver.

This module provides the EligibilityService class for:
- Subjects a student may enroll in this term (prerequisite, INC and
  repeat-cooldown gating applied)
- Subjects recommended for the student's year and the term's semester

Both lookups are read-only and serve self-service (student) and
staff-assisted (admission/registrar) callers alike.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from academics.core.exceptions import StudentNotFoundError, ValidationError
from academics.core.identity import IdentityContext
from academics.domains.academic_term.service import AcademicTermService
from academics.domains.catalog.service import to_subject_offering
from academics.domains.eligibility.rules import (
    GradeRecord,
    blocked_by_inc,
    in_repeat_cooldown,
    inc_subject_ids,
    prerequisite_satisfied,
    year_standing_allows,
)
from academics.infrastructure.database.models import (
    AcademicTerm,
    Enrollment,
    EnrollmentSubject,
    Grade,
    Section,
    Student,
    Subject,
)
from academics.models.academic_term import TermContext
from academics.models.catalog import SubjectOffering
from academics.models.common import SectionStatus
from academics.models.eligibility import AvailableSubjectsResponse, StudentStanding
from academics.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class EligibilityService:
    """Service computing which subjects a student may take.

    Attributes:
        db: Async database session.
        terms: Term lookup used when no TermContext is passed.
        clock: Source of "now" for cooldown checks.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize eligibility service.

        Args:
            db: Async database session.
            clock: Callable returning the current aware datetime.
        """
        self.db = db
        self.terms = AcademicTermService(db)
        self.clock = clock

    async def available_subjects(
        self,
        student_id: str | None = None,
        term_id: str | None = None,
        *,
        identity: IdentityContext | None = None,
        term: TermContext | None = None,
    ) -> AvailableSubjectsResponse:
        """List subjects the student may enroll in for the term.

        Args:
            student_id: Target student (optional for student callers).
            term_id: Optional explicit term; defaults to the active term.
            identity: Caller identity for ownership checks.
            term: Already-resolved term, overrides term_id.

        Returns:
            Eligible subjects with their open sections, the student and the term.

        Raises:
            StudentNotFoundError: If student not found.
            NoActiveTermError: If no term was given and none is active.
            NotAuthorizedError: If a student targets another student.
        """
        student_id = self._resolve_student_id(student_id, identity)
        student = await self._get_student(student_id)
        resolved_term = await self.terms.resolve(term_id, term)

        query = (
            select(Subject)
            .where(Subject.program_id == student.program_id)
            .order_by(Subject.code)
        )
        result = await self.db.execute(query)
        candidates = [
            subject
            for subject in result.scalars().all()
            if year_standing_allows(subject.year_standing, student.year_level)
        ]

        sections_by_subject = await self._open_sections(
            [subject.id for subject in candidates], resolved_term
        )
        history = await self._grade_history(student.id)
        incomplete = inc_subject_ids(history) if student.has_inc else set()
        now = self.clock()

        available: list[SubjectOffering] = []
        for subject in candidates:
            if not prerequisite_satisfied(
                subject.prerequisite_id, history, resolved_term.school_year
            ):
                continue

            if student.has_inc and blocked_by_inc(
                subject.id, subject.prerequisite_id, incomplete
            ):
                continue

            if in_repeat_cooldown(subject.id, history, now):
                continue

            available.append(
                to_subject_offering(subject, sections_by_subject.get(subject.id, []))
            )

        logger.debug(
            "Resolved %d of %d candidate subjects for student %s in %s",
            len(available),
            len(candidates),
            student.id,
            resolved_term.label,
        )

        return AvailableSubjectsResponse(
            subjects=available,
            student=self._to_standing(student),
            term=resolved_term,
            requested_by=identity.role.value if identity and identity.is_staff else None,
        )

    async def recommended_subjects(
        self,
        student_id: str | None = None,
        term_id: str | None = None,
        *,
        identity: IdentityContext | None = None,
        term: TermContext | None = None,
    ) -> list[SubjectOffering]:
        """List subjects tagged for the student's year and the term's semester.

        No prerequisite, INC or repeat gating is applied.

        Raises:
            StudentNotFoundError: If student not found.
            NoActiveTermError: If no term was given and none is active.
            NotAuthorizedError: If a student targets another student.
        """
        student_id = self._resolve_student_id(student_id, identity)
        student = await self._get_student(student_id)
        resolved_term = await self.terms.resolve(term_id, term)

        query = select(Subject).where(
            Subject.program_id == student.program_id,
            Subject.recommended_year == student.year_level,
            Subject.recommended_semester == resolved_term.semester,
        ).order_by(Subject.code)
        result = await self.db.execute(query)
        subjects = list(result.scalars().all())

        sections_by_subject = await self._open_sections(
            [subject.id for subject in subjects], resolved_term
        )

        return [
            to_subject_offering(subject, sections_by_subject.get(subject.id, []))
            for subject in subjects
        ]

    def _resolve_student_id(
        self,
        student_id: str | None,
        identity: IdentityContext | None,
    ) -> str:
        if identity is not None:
            return identity.resolve_student_id(student_id)
        if not student_id:
            raise ValidationError("Student ID is required to get available subjects")
        return student_id

    async def _get_student(self, student_id: str) -> Student:
        """Get student with program.

        Raises:
            StudentNotFoundError: If not found.
        """
        query = (
            select(Student)
            .options(selectinload(Student.program))
            .where(Student.id == student_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        student = result.scalar_one_or_none()

        if not student:
            raise StudentNotFoundError(f"Student {student_id} not found")

        return student

    async def _open_sections(
        self,
        subject_ids: list[str],
        term: TermContext,
    ) -> dict[str, list[Section]]:
        """Open sections with free slots in the term, grouped by subject."""
        if not subject_ids:
            return {}

        query = (
            select(Section)
            .options(selectinload(Section.professor))
            .where(
                Section.subject_id.in_(subject_ids),
                Section.school_year == term.school_year,
                Section.semester == term.semester,
                Section.status == SectionStatus.OPEN,
                Section.available_slots > 0,
            )
            .order_by(Section.name)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)

        grouped: dict[str, list[Section]] = defaultdict(list)
        for section in result.scalars().all():
            grouped[section.subject_id].append(section)
        return grouped

    async def _grade_history(self, student_id: str) -> list[GradeRecord]:
        """All grades the student holds, with the school year they were earned in."""
        query = (
            select(
                EnrollmentSubject.subject_id,
                Grade.grade_value,
                Grade.approved,
                Grade.repeat_eligible_date,
                AcademicTerm.school_year,
            )
            .select_from(EnrollmentSubject)
            .join(Grade, Grade.enrollment_subject_id == EnrollmentSubject.id)
            .join(Enrollment, Enrollment.id == EnrollmentSubject.enrollment_id)
            .join(AcademicTerm, AcademicTerm.id == Enrollment.term_id)
            .where(Enrollment.student_id == student_id)
        )
        result = await self.db.execute(query)

        return [
            GradeRecord(
                subject_id=row.subject_id,
                grade_value=row.grade_value,
                school_year=row.school_year,
                approved=row.approved,
                repeat_eligible_date=row.repeat_eligible_date,
            )
            for row in result.all()
        ]

    def _to_standing(self, student: Student) -> StudentStanding:
        return StudentStanding(
            id=student.id,
            student_no=student.student_no,
            year_level=student.year_level,
            program=student.program.name,
            gpa=student.gpa,
            has_inc=student.has_inc,
        )
