# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade and IncResolution models."""

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
from academics.models.common import GradeValue
from academics.utils.datetime import utc_now

if TYPE_CHECKING:
    from academics.infrastructure.database.models.catalog import Professor, Subject
    from academics.infrastructure.database.models.enrollment import EnrollmentSubject
    from academics.infrastructure.database.models.student import Student

_UNAPPROVED = sa.text("approved_by_registrar = false")


class Grade(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Grade for one EnrollmentSubject (1:1)."""

    __tablename__ = "grades"

    enrollment_subject_id: Mapped[str] = mapped_column(
        sa.ForeignKey("enrollment_subjects.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    grade_value: Mapped[GradeValue] = mapped_column(enum_column(GradeValue), nullable=False)
    approved: Mapped[bool] = mapped_column(default=False, nullable=False)
    encoded_by: Mapped[str] = mapped_column(
        sa.ForeignKey("professors.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    date_encoded: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)
    remarks: Mapped[str | None] = mapped_column(sa.Text)
    repeat_eligible_date: Mapped[datetime | None] = mapped_column()

    enrollment_subject: Mapped[EnrollmentSubject] = relationship(back_populates="grade")
    professor: Mapped[Professor] = relationship()


class IncResolution(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A professor's proposed replacement for a student's INC grade."""

    __tablename__ = "inc_resolutions"
    __table_args__ = (
        # One open proposal per (student, subject, professor)
        sa.Index(
            "uq_inc_resolutions_open",
            "student_id",
            "subject_id",
            "professor_id",
            unique=True,
            postgresql_where=_UNAPPROVED,
            sqlite_where=_UNAPPROVED,
        ),
        sa.CheckConstraint("old_grade = 'INC'", name="ck_inc_resolutions_old_grade"),
        sa.CheckConstraint(
            "new_grade NOT IN ('INC', 'DRP')", name="ck_inc_resolutions_new_grade"
        ),
    )

    student_id: Mapped[str] = mapped_column(
        sa.ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subject_id: Mapped[str] = mapped_column(
        sa.ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    professor_id: Mapped[str] = mapped_column(
        sa.ForeignKey("professors.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    old_grade: Mapped[GradeValue] = mapped_column(
        enum_column(GradeValue, name="inc_old_grade_value"), default=GradeValue.INC, nullable=False
    )
    new_grade: Mapped[GradeValue] = mapped_column(
        enum_column(GradeValue, name="inc_new_grade_value"), nullable=False
    )
    remarks: Mapped[str | None] = mapped_column(sa.Text)
    approved_by_registrar: Mapped[bool] = mapped_column(default=False, nullable=False)
    date_submitted: Mapped[datetime] = mapped_column(default=utc_now, nullable=False)
    date_approved: Mapped[datetime | None] = mapped_column()

    student: Mapped[Student] = relationship()
    subject: Mapped[Subject] = relationship()
    professor: Mapped[Professor] = relationship()
