# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for section enrollment with slot accounting.

This module provides the EnrollmentService class for:
- Enrolling a student in a set of sections for the active term
- Cancelling a pending enrollment and restoring its slots
- Listing a student's enrollment history

Slot counts are changed only through conditional UPDATE statements
(``available_slots > 0`` on enroll, ``available_slots < max_slots`` on
cancel), so two transactions can never both take the last slot.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import Select, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from academics.core.config import EnrollmentPolicySettings, get_settings
from academics.core.exceptions import (
    NotFoundError,
    PreconditionError,
    StudentNotFoundError,
    ValidationError,
)
from academics.core.identity import IdentityContext
from academics.domains.academic_term.service import AcademicTermService
from academics.domains.catalog.service import to_section_summary, to_subject_summary
from academics.infrastructure.database.models import (
    AcademicTerm,
    Enrollment,
    EnrollmentSubject,
    Section,
    Student,
)
from academics.models.academic_term import TermContext
from academics.models.common import EnrollmentStatus, SectionStatus
from academics.models.enrollment import EnrollmentResponse, EnrollmentSubjectResponse
from academics.models.grade import GradeResponse
from academics.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class EmptySectionSelectionError(PreconditionError):
    """Raised when an enrollment request names no sections."""

    pass


class UnitCapExceededError(PreconditionError):
    """Raised when an enrollment exceeds the per-term unit cap."""

    pass


class DuplicateEnrollmentError(PreconditionError):
    """Raised when student already has a non-cancelled enrollment in the term."""

    pass


class SectionsUnavailableError(PreconditionError):
    """Raised when a requested section is closed, full or outside the term."""

    pass


class EnrollmentNotFoundError(NotFoundError):
    """Raised when enrollment is not found."""

    pass


class NotCancellableError(PreconditionError):
    """Raised when an enrollment is not pending or not owned by the student."""

    pass


class EnrollmentService:
    """Service for enrolling students in sections.

    Attributes:
        db: Async database session.
        policy: Unit cap and related enrollment policy.
        terms: Term lookup.
        clock: Source of the enrollment timestamp.
    """

    def __init__(
        self,
        db: AsyncSession,
        policy: EnrollmentPolicySettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize enrollment service.

        Args:
            db: Async database session.
            policy: Enrollment policy; defaults to the configured one.
            clock: Callable returning the current aware datetime.
        """
        self.db = db
        self.policy = policy or get_settings().enrollment
        self.terms = AcademicTermService(db)
        self.clock = clock

    async def enroll(
        self,
        student_id: str,
        section_ids: list[str],
        total_units: int,
        term: TermContext | None = None,
    ) -> EnrollmentResponse:
        """Enroll a student in sections for the active term.

        Everything is written in one transaction: the pending enrollment,
        one subject line per section and one slot taken from each section.
        If any section loses its last slot to a concurrent enrollment the
        whole operation is rolled back.

        Args:
            student_id: Student to enroll.
            section_ids: Requested sections, one per subject.
            total_units: Unit total declared by the caller.
            term: Optional term to enroll in; defaults to the active term.

        Returns:
            The created enrollment.

        Raises:
            EmptySectionSelectionError: If no sections were requested.
            UnitCapExceededError: If the units exceed the per-term cap.
            NoActiveTermError: If no term is active.
            StudentNotFoundError: If student not found.
            DuplicateEnrollmentError: If student is already enrolled this term.
            SectionsUnavailableError: If any section is closed, full,
                outside the term or listed twice.
        """
        if not section_ids:
            raise EmptySectionSelectionError("At least one section must be selected")

        max_units = self.policy.max_units_per_term
        if total_units > max_units:
            raise UnitCapExceededError(
                f"Total units ({total_units}) exceed the maximum of {max_units} per semester",
                {"total_units": total_units, "max_units": max_units},
            )

        resolved_term = await self.terms.resolve(term=term)
        await self._get_student(student_id)

        existing = await self._get_open_enrollment(student_id, resolved_term.id)
        if existing:
            raise DuplicateEnrollmentError(
                "Student is already enrolled for this semester",
                {"enrollment_id": existing.id, "term_id": resolved_term.id},
            )

        sections = await self._get_enrollable_sections(section_ids, resolved_term)
        if len(sections) != len(section_ids):
            raise SectionsUnavailableError(
                "Some selected sections are not available",
                {"requested": len(section_ids), "available": len(sections)},
            )

        # Stored units come from the catalog, not from the caller
        computed_units = sum(section.subject.units for section in sections)
        if computed_units > max_units:
            raise UnitCapExceededError(
                f"Total units ({computed_units}) exceed the maximum of {max_units} per semester",
                {"total_units": computed_units, "max_units": max_units},
            )

        try:
            enrollment = Enrollment(
                student_id=student_id,
                term_id=resolved_term.id,
                status=EnrollmentStatus.PENDING,
                total_units=computed_units,
                date_enrolled=self.clock(),
            )
            for section in sections:
                enrollment.enrollment_subjects.append(
                    EnrollmentSubject(
                        subject_id=section.subject_id,
                        section_id=section.id,
                        units=section.subject.units,
                    )
                )
            self.db.add(enrollment)
            await self.db.flush()

            for section in sections:
                if not await self._take_slot(section.id):
                    raise SectionsUnavailableError(
                        "Some selected sections are not available",
                        {"section_id": section.id},
                    )

            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                "Enrollment of student %s in %s hit a uniqueness conflict: %s",
                student_id,
                resolved_term.label,
                e,
            )
            raise DuplicateEnrollmentError(
                "Student is already enrolled for this semester",
                {"term_id": resolved_term.id},
            ) from e
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Enrolled student %s in %d sections (%d units) for %s",
            student_id,
            len(sections),
            computed_units,
            resolved_term.label,
        )

        return await self._get_enrollment_response(enrollment.id)

    async def cancel(self, student_id: str, enrollment_id: str) -> EnrollmentResponse:
        """Cancel a pending enrollment and give its slots back.

        Args:
            student_id: Student who owns the enrollment.
            enrollment_id: Enrollment to cancel.

        Returns:
            The cancelled enrollment.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
            NotCancellableError: If the enrollment is not pending or belongs
                to another student.
        """
        query = (
            select(Enrollment)
            .options(selectinload(Enrollment.enrollment_subjects))
            .where(Enrollment.id == enrollment_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        enrollment = result.scalar_one_or_none()

        if not enrollment:
            raise EnrollmentNotFoundError(f"Enrollment {enrollment_id} not found")

        if enrollment.student_id != student_id:
            raise NotCancellableError(
                "Enrollment does not belong to this student",
                {"enrollment_id": enrollment_id},
            )

        if enrollment.status != EnrollmentStatus.PENDING:
            raise NotCancellableError(
                f"Only pending enrollments can be cancelled (status: {enrollment.status.value})",
                {"enrollment_id": enrollment_id, "status": enrollment.status.value},
            )

        try:
            result = await self.db.execute(
                update(Enrollment)
                .where(
                    Enrollment.id == enrollment_id,
                    Enrollment.status == EnrollmentStatus.PENDING,
                )
                .values(status=EnrollmentStatus.CANCELLED, updated_at=self.clock())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise NotCancellableError(
                    "Enrollment is no longer pending",
                    {"enrollment_id": enrollment_id},
                )

            for line in enrollment.enrollment_subjects:
                await self._release_slot(line.section_id)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Cancelled enrollment %s of student %s, released %d slots",
            enrollment_id,
            student_id,
            len(enrollment.enrollment_subjects),
        )

        return await self._get_enrollment_response(enrollment_id)

    async def enrollment_history(
        self,
        student_id: str | None = None,
        *,
        identity: IdentityContext | None = None,
    ) -> list[EnrollmentResponse]:
        """List a student's enrollments, newest first.

        Args:
            student_id: Target student (optional for student callers).
            identity: Caller identity for ownership checks.

        Returns:
            Enrollments with term, subject lines, sections and grades.

        Raises:
            StudentNotFoundError: If student not found.
            NotAuthorizedError: If a student targets another student.
        """
        if identity is not None:
            student_id = identity.resolve_student_id(student_id)
        elif not student_id:
            raise ValidationError("Student ID is required to get enrollment history")

        await self._get_student(student_id)

        query = (
            self._enrollment_query()
            .where(Enrollment.student_id == student_id)
            .order_by(Enrollment.date_enrolled.desc())
        )
        result = await self.db.execute(query)
        enrollments = result.scalars().all()

        return [self._to_response(enrollment) for enrollment in enrollments]

    async def _get_student(self, student_id: str) -> Student:
        result = await self.db.execute(select(Student).where(Student.id == student_id))
        student = result.scalar_one_or_none()

        if not student:
            raise StudentNotFoundError(f"Student {student_id} not found")

        return student

    async def _get_open_enrollment(self, student_id: str, term_id: str) -> Enrollment | None:
        query = select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.term_id == term_id,
            Enrollment.status != EnrollmentStatus.CANCELLED,
        )
        result = await self.db.execute(query)
        return result.scalars().first()

    async def _get_enrollable_sections(
        self,
        section_ids: list[str],
        term: TermContext,
    ) -> list[Section]:
        """Requested sections that are open, in the term and have a free slot.

        Sections are returned in request order.
        """
        query = (
            select(Section)
            .options(selectinload(Section.subject))
            .where(
                Section.id.in_(section_ids),
                Section.status == SectionStatus.OPEN,
                Section.available_slots > 0,
                Section.school_year == term.school_year,
                Section.semester == term.semester,
            )
        )
        result = await self.db.execute(query)
        by_id = {section.id: section for section in result.scalars().all()}

        return [by_id[section_id] for section_id in dict.fromkeys(section_ids) if section_id in by_id]

    async def _take_slot(self, section_id: str) -> bool:
        """Atomically take one slot; False if the section is full or closed."""
        result = await self.db.execute(
            update(Section)
            .where(
                Section.id == section_id,
                Section.available_slots > 0,
                Section.status == SectionStatus.OPEN,
            )
            .values(available_slots=Section.available_slots - 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def _release_slot(self, section_id: str) -> bool:
        """Atomically give one slot back, never above max_slots."""
        result = await self.db.execute(
            update(Section)
            .where(
                Section.id == section_id,
                Section.available_slots < Section.max_slots,
            )
            .values(available_slots=Section.available_slots + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning("Section %s already at capacity, slot not restored", section_id)
            return False
        return True

    def _enrollment_query(self) -> Select:
        """Enrollment with term, lines, sections and grades, re-read from the database.

        Slot counts change through UPDATE statements that bypass the session,
        so cached rows are always refreshed.
        """
        return (
            select(Enrollment)
            .options(
                selectinload(Enrollment.term),
                selectinload(Enrollment.enrollment_subjects).selectinload(EnrollmentSubject.subject),
                selectinload(Enrollment.enrollment_subjects)
                .selectinload(EnrollmentSubject.section)
                .selectinload(Section.professor),
                selectinload(Enrollment.enrollment_subjects).selectinload(EnrollmentSubject.grade),
            )
            .execution_options(populate_existing=True)
        )

    async def _get_enrollment_response(self, enrollment_id: str) -> EnrollmentResponse:
        """Reload an enrollment with fresh slot counts and build its response."""
        query = self._enrollment_query().where(Enrollment.id == enrollment_id)
        result = await self.db.execute(query)
        return self._to_response(result.scalar_one())

    def _to_response(self, enrollment: Enrollment) -> EnrollmentResponse:
        term: AcademicTerm = enrollment.term
        return EnrollmentResponse(
            id=enrollment.id,
            student_id=enrollment.student_id,
            term=TermContext.model_validate(term),
            status=enrollment.status,
            total_units=enrollment.total_units,
            date_enrolled=enrollment.date_enrolled,
            subjects=[
                EnrollmentSubjectResponse(
                    id=line.id,
                    subject=to_subject_summary(line.subject),
                    section=to_section_summary(line.section),
                    units=line.units,
                    grade=GradeResponse.model_validate(line.grade) if line.grade else None,
                )
                for line in enrollment.enrollment_subjects
            ],
        )
