# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Repeat eligibility calculator.

This module provides:
- compute_repeat_eligible_date: cooldown end for a failing or INC grade
- RepeatEligibilityService: per-student and all-student reports on
  failed subjects, and the registrar override of a cooldown end date

Cooldown lengths come from EnrollmentPolicySettings (6 months for major
subjects, 12 for minor subjects by default).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from academics.core.config import EnrollmentPolicySettings, get_settings
from academics.core.exceptions import (
    GradeNotFoundError,
    PreconditionError,
    StudentNotFoundError,
    ValidationError,
)
from academics.core.identity import IdentityContext
from academics.domains.catalog.service import to_subject_summary
from academics.infrastructure.database.models import (
    Enrollment,
    EnrollmentSubject,
    Grade,
    Student,
)
from academics.models.catalog import ProgramSummary
from academics.models.common import GradeValue, SubjectType
from academics.models.grade import GradeResponse
from academics.models.repeat_eligibility import (
    AllStudentsEligibilityReport,
    FailedTerm,
    RepeatEligibilityItem,
    RepeatEligibilityReport,
    StudentRepeatSummary,
)
from academics.utils.datetime import add_months, days_until, ensure_utc, parse_iso, utc_now

logger = logging.getLogger(__name__)


class NotAFailureError(PreconditionError):
    """Raised when a cooldown override targets a grade other than 5.0."""

    pass


class InvalidDateError(ValidationError):
    """Raised when an override date cannot be parsed."""

    pass


def compute_repeat_eligible_date(
    grade_value: GradeValue,
    subject_type: SubjectType,
    now: datetime,
    policy: EnrollmentPolicySettings | None = None,
) -> datetime | None:
    """Compute when a subject may be retaken.

    Args:
        grade_value: Submitted grade.
        subject_type: Type of the graded subject.
        now: Submission time.
        policy: Cooldown lengths; defaults to the configured policy.

    Returns:
        now plus the cooldown for grade_5_0 and INC, otherwise None.
    """
    if not grade_value.starts_repeat_cooldown:
        return None

    policy = policy or get_settings().enrollment
    months = (
        policy.major_repeat_cooldown_months
        if subject_type == SubjectType.MAJOR
        else policy.minor_repeat_cooldown_months
    )
    return add_months(ensure_utc(now), months)


def _grade_options():
    return (
        selectinload(Grade.enrollment_subject).selectinload(EnrollmentSubject.subject),
        selectinload(Grade.enrollment_subject)
        .selectinload(EnrollmentSubject.enrollment)
        .selectinload(Enrollment.term),
    )


class RepeatEligibilityService:
    """Service reporting when failed subjects may be retaken.

    Attributes:
        db: Async database session.
        clock: Source of "now" for eligibility checks.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize repeat eligibility service.

        Args:
            db: Async database session.
            clock: Callable returning the current aware datetime.
        """
        self.db = db
        self.clock = clock

    async def check_eligibility(
        self,
        student_id: str | None = None,
        subject_id: str | None = None,
        *,
        identity: IdentityContext | None = None,
    ) -> RepeatEligibilityReport:
        """Report the student's failed subjects and their cooldowns.

        Args:
            student_id: Target student (optional for student callers).
            subject_id: Optional subject to narrow the report to.
            identity: Caller identity for ownership checks.

        Returns:
            Failed subjects with eligibility and days remaining.

        Raises:
            StudentNotFoundError: If student not found.
            NotAuthorizedError: If a student targets another student.
        """
        if identity is not None:
            student_id = identity.resolve_student_id(student_id)
        elif not student_id:
            raise ValidationError("Student ID is required to check repeat eligibility")

        result = await self.db.execute(select(Student.id).where(Student.id == student_id))
        if result.scalar_one_or_none() is None:
            raise StudentNotFoundError(f"Student {student_id} not found")

        query = (
            self._failed_grades_query()
            .where(Enrollment.student_id == student_id)
            .options(*_grade_options())
            .order_by(Grade.repeat_eligible_date)
        )
        if subject_id:
            query = query.where(EnrollmentSubject.subject_id == subject_id)

        result = await self.db.execute(query)
        now = self.clock()
        items = [self._to_item(grade, now) for grade in result.scalars().all()]

        total_eligible = sum(1 for item in items if item.is_eligible)
        return RepeatEligibilityReport(
            student_id=student_id,
            subjects=items,
            total_eligible=total_eligible,
            total_pending=len(items) - total_eligible,
        )

    async def all_students_eligibility(
        self,
        program_id: str | None = None,
        year_level: int | None = None,
    ) -> AllStudentsEligibilityReport:
        """Aggregate repeat eligibility across students.

        Students without failed subjects are left out.

        Args:
            program_id: Optional program filter.
            year_level: Optional year level filter.

        Returns:
            Per-student counts and overall totals.
        """
        query = (
            self._failed_grades_query()
            .join(Student, Student.id == Enrollment.student_id)
            .options(
                *_grade_options(),
                selectinload(Grade.enrollment_subject)
                .selectinload(EnrollmentSubject.enrollment)
                .selectinload(Enrollment.student)
                .selectinload(Student.program),
            )
            .order_by(Student.student_no, Grade.repeat_eligible_date)
        )
        if program_id:
            query = query.where(Student.program_id == program_id)
        if year_level is not None:
            query = query.where(Student.year_level == year_level)

        result = await self.db.execute(query)
        now = self.clock()

        summaries: dict[str, StudentRepeatSummary] = {}
        for grade in result.scalars().all():
            student = grade.enrollment_subject.enrollment.student
            item = self._to_item(grade, now)

            summary = summaries.get(student.id)
            if summary is None:
                summary = StudentRepeatSummary(
                    student_id=student.id,
                    student_no=student.student_no,
                    full_name=student.full_name,
                    year_level=student.year_level,
                    program=ProgramSummary.model_validate(student.program),
                    failed_subjects=0,
                    eligible_subjects=0,
                    pending_subjects=0,
                )
                summaries[student.id] = summary

            summary.subjects.append(item)
            summary.failed_subjects += 1
            if item.is_eligible:
                summary.eligible_subjects += 1
            else:
                summary.pending_subjects += 1

        students = list(summaries.values())
        return AllStudentsEligibilityReport(
            students=students,
            total_students=len(students),
            total_eligible=sum(s.eligible_subjects for s in students),
            total_pending=sum(s.pending_subjects for s in students),
        )

    async def update_eligibility_date(
        self,
        grade_id: str,
        new_date: datetime | date | str,
    ) -> GradeResponse:
        """Override the repeat-eligible date of a failing grade.

        Args:
            grade_id: Grade to update.
            new_date: New cooldown end as datetime, date or ISO 8601 string.

        Returns:
            Updated grade.

        Raises:
            InvalidDateError: If new_date cannot be parsed.
            GradeNotFoundError: If grade not found.
            NotAFailureError: If the grade is not grade_5_0.
        """
        try:
            eligible_date = parse_iso(new_date)
        except (AttributeError, TypeError, ValueError) as e:
            raise InvalidDateError(
                f"Invalid repeat eligible date: {new_date!r}",
                {"grade_id": grade_id},
            ) from e

        if eligible_date is None:
            raise InvalidDateError("Repeat eligible date is required", {"grade_id": grade_id})

        result = await self.db.execute(select(Grade).where(Grade.id == grade_id))
        grade = result.scalar_one_or_none()

        if not grade:
            raise GradeNotFoundError(f"Grade {grade_id} not found")

        if grade.grade_value != GradeValue.GRADE_5_0:
            raise NotAFailureError(
                "Can only update repeat eligibility for failed grades (5.0)",
                {"grade_id": grade_id, "grade_value": grade.grade_value.value},
            )

        grade.repeat_eligible_date = eligible_date
        await self.db.commit()

        logger.info("Updated repeat eligible date of grade %s to %s", grade_id, eligible_date)

        return GradeResponse.model_validate(grade)

    def _failed_grades_query(self) -> Select:
        return (
            select(Grade)
            .join(EnrollmentSubject, EnrollmentSubject.id == Grade.enrollment_subject_id)
            .join(Enrollment, Enrollment.id == EnrollmentSubject.enrollment_id)
            .where(
                Grade.grade_value == GradeValue.GRADE_5_0,
                Grade.repeat_eligible_date.is_not(None),
            )
            .execution_options(populate_existing=True)
        )

    def _to_item(self, grade: Grade, now: datetime) -> RepeatEligibilityItem:
        line = grade.enrollment_subject
        term = line.enrollment.term
        eligible_date = ensure_utc(grade.repeat_eligible_date)
        remaining = days_until(eligible_date, now)

        return RepeatEligibilityItem(
            grade_id=grade.id,
            subject=to_subject_summary(line.subject),
            failed_term=FailedTerm(school_year=term.school_year, semester=term.semester),
            date_failed=ensure_utc(grade.date_encoded),
            repeat_eligible_date=eligible_date,
            is_eligible=ensure_utc(now) >= eligible_date,
            days_until_eligible=remaining,
        )
