# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade lifecycle service.

This module provides the GradingService class for:
- Grade submission by the section's professor
- Registrar approval, single and bulk
- Pending grade listing for a term
- A professor's sections with enrolled students and grades

A grade moves from submitted (approved=False) to approved. Re-submitting
overwrites the value and clears approval. Every approval recomputes the
student's standing in the same transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from academics.core.config import EnrollmentPolicySettings, get_settings
from academics.core.exceptions import (
    GradeNotFoundError,
    InvalidGradeError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
)
from academics.domains.academic_term.service import AcademicTermService
from academics.domains.catalog.service import to_section_summary, to_subject_summary
from academics.domains.grading.standing import recompute_student_standing
from academics.domains.repeat_eligibility.service import compute_repeat_eligible_date
from academics.infrastructure.database.models import (
    Enrollment,
    EnrollmentSubject,
    Grade,
    Section,
    Student,
)
from academics.models.academic_term import TermContext
from academics.models.common import EnrollmentStatus, GradeValue
from academics.models.grade import (
    BulkApproveResponse,
    GradeResponse,
    PendingGrade,
    PendingGradesResponse,
    ProfessorSectionsResponse,
    RosterEntry,
    SectionRoster,
    StudentSummary,
)
from academics.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class EnrollmentSubjectNotFoundError(NotFoundError):
    """Raised when enrollment subject is not found."""

    pass


class GradingService:
    """Service for the grade lifecycle.

    Attributes:
        db: Async database session.
        policy: Repeat cooldown policy.
        terms: Term lookup.
        clock: Source of submission and approval timestamps.
    """

    def __init__(
        self,
        db: AsyncSession,
        policy: EnrollmentPolicySettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize grading service.

        Args:
            db: Async database session.
            policy: Enrollment policy; defaults to the configured one.
            clock: Callable returning the current aware datetime.
        """
        self.db = db
        self.policy = policy or get_settings().enrollment
        self.terms = AcademicTermService(db)
        self.clock = clock

    async def submit_grade(
        self,
        professor_id: str,
        enrollment_subject_id: str,
        grade_value: GradeValue | str,
        remarks: str | None = None,
    ) -> GradeResponse:
        """Submit or correct a grade.

        Creates the grade if the subject line has none, otherwise overwrites
        value, remarks, date and cooldown and clears approval.

        Args:
            professor_id: Professor submitting the grade.
            enrollment_subject_id: Subject line being graded.
            grade_value: Grade on the closed grading scale.
            remarks: Optional remarks.

        Returns:
            The stored grade.

        Raises:
            InvalidGradeError: If grade_value is not on the grading scale.
            EnrollmentSubjectNotFoundError: If the subject line does not exist.
            NotAuthorizedError: If the professor does not handle the section.
        """
        try:
            value = GradeValue.parse(grade_value)
        except ValueError as e:
            raise InvalidGradeError(
                f"Invalid grade value: {grade_value}",
                {
                    "grade_value": str(grade_value),
                    "allowed": [member.value for member in GradeValue.ordered()],
                },
            ) from e

        query = (
            select(EnrollmentSubject)
            .options(
                selectinload(EnrollmentSubject.section),
                selectinload(EnrollmentSubject.subject),
                selectinload(EnrollmentSubject.enrollment),
                selectinload(EnrollmentSubject.grade),
            )
            .where(EnrollmentSubject.id == enrollment_subject_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        line = result.scalar_one_or_none()

        if not line:
            raise EnrollmentSubjectNotFoundError(
                f"Enrollment subject {enrollment_subject_id} not found"
            )

        if line.section.professor_id != professor_id:
            raise NotAuthorizedError(
                "You are not authorized to grade this student",
                {"enrollment_subject_id": enrollment_subject_id},
            )

        now = self.clock()
        repeat_eligible_date = compute_repeat_eligible_date(
            value, line.subject.subject_type, now, self.policy
        )
        student_id = line.enrollment.student_id
        previous_value = line.grade.grade_value if line.grade else None

        try:
            grade = line.grade
            if grade is None:
                grade = Grade(enrollment_subject_id=line.id)
                self.db.add(grade)
                line.grade = grade

            grade.grade_value = value
            grade.remarks = remarks
            grade.encoded_by = professor_id
            grade.date_encoded = now
            grade.repeat_eligible_date = repeat_eligible_date
            grade.approved = False

            if value is GradeValue.INC:
                await self.db.execute(
                    update(Student)
                    .where(Student.id == student_id)
                    .values(has_inc=True)
                    .execution_options(synchronize_session=False)
                )
            elif previous_value is GradeValue.INC:
                # Replacing an INC may clear the flag
                await self.db.flush()
                await recompute_student_standing(self.db, student_id)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Grade %s submitted for enrollment subject %s by professor %s",
            value.value,
            enrollment_subject_id,
            professor_id,
        )

        return GradeResponse.model_validate(grade)

    async def approve_grade(self, grade_id: str) -> GradeResponse:
        """Approve a grade and recompute the student's standing.

        Approving an approved grade is a no-op.

        Args:
            grade_id: Grade to approve.

        Returns:
            The approved grade.

        Raises:
            GradeNotFoundError: If grade not found.
        """
        grades = await self._get_grades([grade_id])
        grade = grades[0]

        if grade.approved:
            logger.debug("Grade %s already approved", grade_id)
            return GradeResponse.model_validate(grade)

        try:
            grade.approved = True
            await self.db.flush()
            await recompute_student_standing(self.db, grade.enrollment_subject.enrollment.student_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Approved grade %s", grade_id)

        return GradeResponse.model_validate(grade)

    async def bulk_approve_grades(self, grade_ids: list[str]) -> BulkApproveResponse:
        """Approve several grades in one transaction.

        Either every grade is approved or none is. Each distinct student is
        recomputed once.

        Args:
            grade_ids: Grades to approve.

        Returns:
            Number of grades approved and the students recomputed.

        Raises:
            ValidationError: If grade_ids is empty.
            GradeNotFoundError: If any grade does not exist.
        """
        if not grade_ids:
            raise ValidationError("At least one grade ID is required")

        grades = await self._get_grades(grade_ids)
        student_ids = sorted({grade.enrollment_subject.enrollment.student_id for grade in grades})

        try:
            for grade in grades:
                grade.approved = True
            await self.db.flush()

            # Fixed lock order across concurrent bulk approvals
            for student_id in student_ids:
                await recompute_student_standing(self.db, student_id)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Bulk approved %d grades for %d students",
            len(grades),
            len(student_ids),
        )

        return BulkApproveResponse(approved_count=len(grades), student_ids=student_ids)

    async def pending_grades(
        self,
        term_id: str | None = None,
        term: TermContext | None = None,
    ) -> PendingGradesResponse:
        """List unapproved grades of a term, newest first.

        Args:
            term_id: Optional explicit term; defaults to the active term.
            term: Already-resolved term, overrides term_id.

        Returns:
            Pending grades with student, subject and section.

        Raises:
            NoActiveTermError: If no term was given and none is active.
        """
        resolved_term = await self.terms.resolve(term_id, term)

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
                .selectinload(Enrollment.student),
            )
            .where(
                Enrollment.term_id == resolved_term.id,
                Grade.approved.is_(False),
            )
            .order_by(Grade.date_encoded.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)

        pending = []
        for grade in result.scalars().all():
            line = grade.enrollment_subject
            pending.append(
                PendingGrade(
                    grade=GradeResponse.model_validate(grade),
                    student=StudentSummary.model_validate(line.enrollment.student),
                    subject=to_subject_summary(line.subject),
                    section=to_section_summary(line.section),
                )
            )

        return PendingGradesResponse(pending_grades=pending, term=resolved_term)

    async def professor_sections(
        self,
        professor_id: str,
        term_id: str | None = None,
        term: TermContext | None = None,
    ) -> ProfessorSectionsResponse:
        """List a professor's sections in a term with students and grades.

        Cancelled enrollments are left out of each roster.

        Args:
            professor_id: Professor whose sections to list.
            term_id: Optional explicit term; defaults to the active term.
            term: Already-resolved term, overrides term_id.

        Returns:
            Sections with their rosters.

        Raises:
            NoActiveTermError: If no term was given and none is active.
        """
        resolved_term = await self.terms.resolve(term_id, term)

        query = (
            select(Section)
            .options(
                selectinload(Section.subject),
                selectinload(Section.professor),
                selectinload(Section.enrollment_subjects)
                .selectinload(EnrollmentSubject.enrollment)
                .selectinload(Enrollment.student),
                selectinload(Section.enrollment_subjects).selectinload(EnrollmentSubject.grade),
            )
            .where(
                Section.professor_id == professor_id,
                Section.school_year == resolved_term.school_year,
                Section.semester == resolved_term.semester,
            )
            .order_by(Section.name)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)

        rosters = []
        for section in result.scalars().all():
            entries = [
                RosterEntry(
                    enrollment_subject_id=line.id,
                    student=StudentSummary.model_validate(line.enrollment.student),
                    grade=GradeResponse.model_validate(line.grade) if line.grade else None,
                )
                for line in section.enrollment_subjects
                if line.enrollment.status != EnrollmentStatus.CANCELLED
            ]
            entries.sort(key=lambda entry: entry.student.student_no)
            rosters.append(
                SectionRoster(
                    section=to_section_summary(section),
                    subject=to_subject_summary(section.subject),
                    students=entries,
                )
            )

        return ProfessorSectionsResponse(sections=rosters, term=resolved_term)

    async def _get_grades(self, grade_ids: list[str]) -> list[Grade]:
        """Load grades with their enrollment, in request order.

        Raises:
            GradeNotFoundError: If any id is unknown.
        """
        unique_ids = list(dict.fromkeys(grade_ids))
        query = (
            select(Grade)
            .options(
                selectinload(Grade.enrollment_subject).selectinload(EnrollmentSubject.enrollment)
            )
            .where(Grade.id.in_(unique_ids))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        by_id = {grade.id: grade for grade in result.scalars().all()}

        missing = [grade_id for grade_id in unique_ids if grade_id not in by_id]
        if missing:
            raise GradeNotFoundError(
                f"Grade {missing[0]} not found",
                {"missing_grade_ids": missing},
            )

        return [by_id[grade_id] for grade_id in unique_ids]
