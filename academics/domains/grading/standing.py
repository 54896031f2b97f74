# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student standing recompute.

Student.gpa and Student.has_inc are caches of the grade history. The GPA
counts approved grades only; the INC flag counts every INC still on record.

Apart from the INC flag raised when an INC is submitted,
recompute_student_standing is the only writer of both fields. It runs inside
every transaction that approves a grade or an INC resolution, after the
approval has been flushed, so it always sees the new state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academics.core.exceptions import StudentNotFoundError
from academics.infrastructure.database.models import (
    Enrollment,
    EnrollmentSubject,
    Grade,
    Student,
)
from academics.models.common import GradeValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Standing:
    """Recomputed GPA and INC flag.

    Attributes:
        gpa: Unit-weighted grade point average, 0.0 without graded units.
        has_inc: Whether any INC remains on record.
        graded_units: Units that contributed to the GPA.
    """

    gpa: float
    has_inc: bool
    graded_units: int


def compute_standing(grades: Iterable[tuple[GradeValue, int, bool]]) -> Standing:
    """Compute standing from (grade value, units, approved) triples.

    DRP is ignored. Every other approved value adds points x units to the
    point sum; unapproved numeric grades are skipped.

    Note: the approved-only rule covers the GPA, not the flag. Any INC,
    approved or not, raises has_inc without adding points, because
    submit_grade already flags the student when the INC is encoded.
    """
    point_sum = 0.0
    unit_sum = 0
    has_inc = False

    for grade_value, units, approved in grades:
        if grade_value is GradeValue.DRP:
            continue
        if grade_value is GradeValue.INC:
            has_inc = True
            continue
        if not approved:
            continue

        point_sum += grade_value.grade_points() * units
        unit_sum += units

    gpa = point_sum / unit_sum if unit_sum > 0 else 0.0
    return Standing(gpa=gpa, has_inc=has_inc, graded_units=unit_sum)


async def recompute_student_standing(db: AsyncSession, student_id: str) -> Standing:
    """Recompute and store a student's GPA and INC flag.

    Locks the student row (SELECT ... FOR UPDATE) so that concurrent
    approvals for the same student apply their recomputes one at a time.
    The row is reloaded even if the session already holds the student,
    because submit_grade raises has_inc with a bulk UPDATE.
    Does not commit; the caller owns the transaction.

    Args:
        db: Async database session of the approving transaction.
        student_id: Student to recompute.

    Returns:
        The stored standing.

    Raises:
        StudentNotFoundError: If student not found.
    """
    result = await db.execute(
        select(Student)
        .where(Student.id == student_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    student = result.scalar_one_or_none()

    if not student:
        raise StudentNotFoundError(f"Student {student_id} not found")

    query = (
        select(Grade.grade_value, EnrollmentSubject.units, Grade.approved)
        .select_from(Grade)
        .join(EnrollmentSubject, EnrollmentSubject.id == Grade.enrollment_subject_id)
        .join(Enrollment, Enrollment.id == EnrollmentSubject.enrollment_id)
        .where(
            Enrollment.student_id == student_id,
            Grade.grade_value != GradeValue.DRP,
        )
    )
    result = await db.execute(query)
    standing = compute_standing(
        (row.grade_value, row.units, row.approved) for row in result.all()
    )

    student.gpa = standing.gpa
    student.has_inc = standing.has_inc
    await db.flush()

    logger.info(
        "Recomputed standing for student %s: gpa=%.4f has_inc=%s",
        student_id,
        standing.gpa,
        standing.has_inc,
    )

    return standing
