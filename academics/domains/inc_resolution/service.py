# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""INC resolution workflow.

This module provides the IncResolutionService class for:
- Professors proposing a replacement grade for a student's INC
- Registrar approval (single and bulk), which overwrites the INC grade
  and recomputes the student's standing
- Listing a student's INC subjects, a professor's resolutions and the
  resolutions awaiting the registrar

A resolution is proposed (approved_by_registrar=False) or approved.
Approval is terminal.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from academics.core.exceptions import (
    InvalidGradeError,
    NotFoundError,
    PreconditionError,
    StudentNotFoundError,
    ValidationError,
)
from academics.core.identity import IdentityContext
from academics.domains.catalog.service import to_section_summary, to_subject_summary
from academics.domains.grading.standing import recompute_student_standing
from academics.infrastructure.database.models import (
    Enrollment,
    EnrollmentSubject,
    Grade,
    IncResolution,
    Section,
    Student,
)
from academics.models.academic_term import TermContext
from academics.models.common import GradeValue
from academics.models.inc_resolution import (
    BulkResolutionResponse,
    IncResolutionDetail,
    IncResolutionResponse,
    IncSubject,
    StudentIncSubjectsResponse,
)
from academics.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class ResolutionNotFoundError(NotFoundError):
    """Raised when INC resolution is not found."""

    pass


class NoIncOnRecordError(PreconditionError):
    """Raised when the student holds no INC grade for the subject."""

    pass


class DuplicateResolutionError(PreconditionError):
    """Raised when an open resolution already exists for the same professor."""

    pass


class AlreadyApprovedError(PreconditionError):
    """Raised when approving a resolution that is already approved."""

    pass


def _detail_options():
    return (
        selectinload(IncResolution.student),
        selectinload(IncResolution.subject),
        selectinload(IncResolution.professor),
    )


class IncResolutionService:
    """Service for resolving INC grades.

    Attributes:
        db: Async database session.
        clock: Source of submission and approval timestamps.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize INC resolution service.

        Args:
            db: Async database session.
            clock: Callable returning the current aware datetime.
        """
        self.db = db
        self.clock = clock

    async def create_resolution(
        self,
        professor_id: str,
        student_id: str,
        subject_id: str,
        new_grade: GradeValue | str,
        remarks: str | None = None,
    ) -> IncResolutionResponse:
        """Propose a replacement grade for a student's INC.

        Args:
            professor_id: Proposing professor.
            student_id: Student holding the INC.
            subject_id: Subject the INC was given in.
            new_grade: Numeric replacement grade.
            remarks: Optional remarks.

        Returns:
            The created resolution.

        Raises:
            InvalidGradeError: If new_grade is not a numeric grade.
            StudentNotFoundError: If student not found.
            NoIncOnRecordError: If the student has no INC for the subject.
            DuplicateResolutionError: If this professor already has an open
                resolution for the student and subject.
        """
        try:
            value = GradeValue.parse(new_grade)
        except ValueError as e:
            raise InvalidGradeError(
                f"Invalid grade value for INC resolution: {new_grade}",
                {
                    "new_grade": str(new_grade),
                    "allowed": [member.value for member in GradeValue.numeric_values()],
                },
            ) from e

        if not value.is_numeric:
            raise InvalidGradeError(
                f"Invalid grade value for INC resolution: {value.value}",
                {
                    "new_grade": value.value,
                    "allowed": [member.value for member in GradeValue.numeric_values()],
                },
            )

        result = await self.db.execute(select(Student.id).where(Student.id == student_id))
        if result.scalar_one_or_none() is None:
            raise StudentNotFoundError(f"Student {student_id} not found")

        if await self._find_inc_grade(student_id, subject_id) is None:
            raise NoIncOnRecordError(
                "Student does not have INC in this subject",
                {"student_id": student_id, "subject_id": subject_id},
            )

        query = select(IncResolution.id).where(
            IncResolution.student_id == student_id,
            IncResolution.subject_id == subject_id,
            IncResolution.professor_id == professor_id,
            IncResolution.approved_by_registrar.is_(False),
        )
        result = await self.db.execute(query)
        if result.scalars().first() is not None:
            raise DuplicateResolutionError(
                "INC resolution already exists for this subject",
                {"student_id": student_id, "subject_id": subject_id},
            )

        resolution = IncResolution(
            student_id=student_id,
            subject_id=subject_id,
            professor_id=professor_id,
            old_grade=GradeValue.INC,
            new_grade=value,
            remarks=remarks,
            approved_by_registrar=False,
            date_submitted=self.clock(),
        )

        try:
            self.db.add(resolution)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateResolutionError(
                "INC resolution already exists for this subject",
                {"student_id": student_id, "subject_id": subject_id},
            ) from e

        logger.info(
            "INC resolution %s created by professor %s for student %s subject %s (%s)",
            resolution.id,
            professor_id,
            student_id,
            subject_id,
            value.value,
        )

        return IncResolutionResponse.model_validate(resolution)

    async def approve_resolution(self, resolution_id: str) -> IncResolutionResponse:
        """Approve a resolution and replace the INC grade.

        Args:
            resolution_id: Resolution to approve.

        Returns:
            The approved resolution.

        Raises:
            ResolutionNotFoundError: If resolution not found.
            AlreadyApprovedError: If the resolution was already approved.
        """
        result = await self.db.execute(
            select(IncResolution)
            .where(IncResolution.id == resolution_id)
            .execution_options(populate_existing=True)
        )
        resolution = result.scalar_one_or_none()

        if not resolution:
            raise ResolutionNotFoundError(f"INC resolution {resolution_id} not found")

        if resolution.approved_by_registrar:
            raise AlreadyApprovedError(
                "INC resolution already approved",
                {"resolution_id": resolution_id},
            )

        try:
            if not await self._apply(resolution):
                raise AlreadyApprovedError(
                    "INC resolution already approved",
                    {"resolution_id": resolution_id},
                )
            await self.db.flush()
            await recompute_student_standing(self.db, resolution.student_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Approved INC resolution %s", resolution_id)

        return IncResolutionResponse.model_validate(resolution)

    async def bulk_approve_resolutions(self, resolution_ids: list[str]) -> BulkResolutionResponse:
        """Approve the unapproved resolutions among the given ids.

        Already-approved and unknown ids are skipped. Each distinct student
        is recomputed once.

        Args:
            resolution_ids: Resolutions to approve.

        Returns:
            Number of resolutions approved and the students recomputed.

        Raises:
            ValidationError: If resolution_ids is empty.
        """
        if not resolution_ids:
            raise ValidationError("Please provide resolution IDs to approve")

        query = (
            select(IncResolution)
            .where(
                IncResolution.id.in_(list(dict.fromkeys(resolution_ids))),
                IncResolution.approved_by_registrar.is_(False),
            )
            .order_by(IncResolution.date_submitted)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        resolutions = list(result.scalars().all())

        approved: list[IncResolution] = []
        try:
            for resolution in resolutions:
                if await self._apply(resolution):
                    approved.append(resolution)
            await self.db.flush()

            student_ids = sorted({resolution.student_id for resolution in approved})
            for student_id in student_ids:
                await recompute_student_standing(self.db, student_id)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Bulk approved %d INC resolutions for %d students",
            len(approved),
            len(student_ids),
        )

        return BulkResolutionResponse(approved_count=len(approved), student_ids=student_ids)

    async def student_inc_subjects(
        self,
        student_id: str | None = None,
        *,
        identity: IdentityContext | None = None,
    ) -> StudentIncSubjectsResponse:
        """List a student's INC subjects and resolutions filed for them.

        Args:
            student_id: Target student (optional for student callers).
            identity: Caller identity for ownership checks.

        Returns:
            INC subjects, newest first, and the student's resolutions.

        Raises:
            StudentNotFoundError: If student not found.
            NotAuthorizedError: If a student targets another student.
        """
        if identity is not None:
            student_id = identity.resolve_student_id(student_id)
        elif not student_id:
            raise ValidationError("Student ID is required to get INC subjects")

        result = await self.db.execute(select(Student.id).where(Student.id == student_id))
        if result.scalar_one_or_none() is None:
            raise StudentNotFoundError(f"Student {student_id} not found")

        query = (
            select(Grade)
            .join(EnrollmentSubject, EnrollmentSubject.id == Grade.enrollment_subject_id)
            .join(Enrollment, Enrollment.id == EnrollmentSubject.enrollment_id)
            .options(
                selectinload(Grade.enrollment_subject).selectinload(EnrollmentSubject.subject),
                selectinload(Grade.enrollment_subject)
                .selectinload(EnrollmentSubject.section)
                .selectinload(Section.professor),
                selectinload(Grade.enrollment_subject)
                .selectinload(EnrollmentSubject.enrollment)
                .selectinload(Enrollment.term),
            )
            .where(
                Enrollment.student_id == student_id,
                Grade.grade_value == GradeValue.INC,
            )
            .order_by(Grade.date_encoded.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        inc_grades = result.scalars().all()

        query = (
            select(IncResolution)
            .options(*_detail_options())
            .where(IncResolution.student_id == student_id)
            .order_by(IncResolution.date_submitted.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        resolutions = result.scalars().all()
        resolved_subject_ids = {resolution.subject_id for resolution in resolutions}

        inc_subjects = []
        for grade in inc_grades:
            line = grade.enrollment_subject
            inc_subjects.append(
                IncSubject(
                    grade_id=grade.id,
                    subject=to_subject_summary(line.subject),
                    section=to_section_summary(line.section),
                    term=TermContext.model_validate(line.enrollment.term),
                    date_encoded=grade.date_encoded,
                    remarks=grade.remarks,
                    has_resolution=line.subject_id in resolved_subject_ids,
                )
            )

        return StudentIncSubjectsResponse(
            inc_subjects=inc_subjects,
            existing_resolutions=[
                IncResolutionDetail.model_validate(resolution) for resolution in resolutions
            ],
        )

    async def professor_resolutions(self, professor_id: str) -> list[IncResolutionDetail]:
        """List resolutions filed by a professor, newest first."""
        query = (
            select(IncResolution)
            .options(*_detail_options())
            .where(IncResolution.professor_id == professor_id)
            .order_by(IncResolution.date_submitted.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return [IncResolutionDetail.model_validate(r) for r in result.scalars().all()]

    async def pending_resolutions(self) -> list[IncResolutionDetail]:
        """List resolutions awaiting the registrar, newest first."""
        query = (
            select(IncResolution)
            .options(*_detail_options())
            .where(IncResolution.approved_by_registrar.is_(False))
            .order_by(IncResolution.date_submitted.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return [IncResolutionDetail.model_validate(r) for r in result.scalars().all()]

    async def _find_inc_grade(self, student_id: str, subject_id: str) -> Grade | None:
        query = (
            select(Grade)
            .join(EnrollmentSubject, EnrollmentSubject.id == Grade.enrollment_subject_id)
            .join(Enrollment, Enrollment.id == EnrollmentSubject.enrollment_id)
            .where(
                Enrollment.student_id == student_id,
                EnrollmentSubject.subject_id == subject_id,
                Grade.grade_value == GradeValue.INC,
            )
            .order_by(Grade.date_encoded)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalars().first()

    async def _apply(self, resolution: IncResolution) -> bool:
        """Mark a resolution approved and overwrite the INC grade it resolves.

        The approval flag is flipped with a conditional UPDATE so that two
        registrars approving the same resolution cannot both apply it.

        Returns:
            False if the resolution was approved concurrently.
        """
        now = self.clock()
        result = await self.db.execute(
            update(IncResolution)
            .where(
                IncResolution.id == resolution.id,
                IncResolution.approved_by_registrar.is_(False),
            )
            .values(approved_by_registrar=True, date_approved=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False

        set_committed_value(resolution, "approved_by_registrar", True)
        set_committed_value(resolution, "date_approved", now)

        grade = await self._find_inc_grade(resolution.student_id, resolution.subject_id)
        if grade is None:
            logger.warning(
                "No INC grade left for student %s subject %s while approving resolution %s",
                resolution.student_id,
                resolution.subject_id,
                resolution.id,
            )
            return True

        grade.grade_value = resolution.new_grade
        grade.approved = True
        if not resolution.new_grade.is_failure:
            grade.repeat_eligible_date = None
        await self.db.flush()

        return True
