# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment and EnrollmentSubject models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from academics.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    enum_column,
)
from academics.models.common import EnrollmentStatus
from academics.utils.datetime import utc_now

if TYPE_CHECKING:
    from academics.infrastructure.database.models.catalog import (
        AcademicTerm,
        Section,
        Subject,
    )
    from academics.infrastructure.database.models.grade import Grade
    from academics.infrastructure.database.models.student import Student

_NOT_CANCELLED = sa.text("status <> 'cancelled'")


class Enrollment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A student's enrollment for one term."""

    __tablename__ = "enrollments"
    __table_args__ = (
        # At most one non-cancelled enrollment per student per term
        sa.Index(
            "uq_enrollments_student_term_open",
            "student_id",
            "term_id",
            unique=True,
            postgresql_where=_NOT_CANCELLED,
            sqlite_where=_NOT_CANCELLED,
        ),
        sa.CheckConstraint("total_units >= 0", name="ck_enrollments_total_units"),
    )

    student_id: Mapped[str] = mapped_column(
        sa.ForeignKey("students.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    term_id: Mapped[str] = mapped_column(
        sa.ForeignKey("academic_terms.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    status: Mapped[EnrollmentStatus] = mapped_column(
        enum_column(EnrollmentStatus), default=EnrollmentStatus.PENDING, nullable=False
    )
    total_units: Mapped[int] = mapped_column(default=0, nullable=False)
    date_enrolled: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)

    student: Mapped[Student] = relationship(back_populates="enrollments")
    term: Mapped[AcademicTerm] = relationship()
    enrollment_subjects: Mapped[list[EnrollmentSubject]] = relationship(
        back_populates="enrollment",
        cascade="all, delete-orphan",
    )


class EnrollmentSubject(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One subject taken in one section within an enrollment.

    units is a snapshot of Subject.units at enrollment time.
    """

    __tablename__ = "enrollment_subjects"
    __table_args__ = (
        sa.UniqueConstraint("enrollment_id", "section_id", name="uq_enrollment_subjects_section"),
    )

    enrollment_id: Mapped[str] = mapped_column(
        sa.ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subject_id: Mapped[str] = mapped_column(
        sa.ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    section_id: Mapped[str] = mapped_column(
        sa.ForeignKey("sections.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    units: Mapped[int] = mapped_column(nullable=False)

    enrollment: Mapped[Enrollment] = relationship(back_populates="enrollment_subjects")
    subject: Mapped[Subject] = relationship()
    section: Mapped[Section] = relationship(back_populates="enrollment_subjects")
    grade: Mapped[Grade | None] = relationship(
        back_populates="enrollment_subject",
        uselist=False,
        cascade="all, delete-orphan",
    )
