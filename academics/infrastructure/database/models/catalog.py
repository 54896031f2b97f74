# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Catalog and calendar models.

Programs, professors, academic terms, subjects and sections. These rows are
maintained by catalog administration; the engine reads them and mutates only
Section.available_slots.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from academics.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    enum_column,
)
from academics.models.common import Semester, SectionStatus, SubjectType

if TYPE_CHECKING:
    from academics.infrastructure.database.models.enrollment import EnrollmentSubject
    from academics.infrastructure.database.models.student import Student


class Program(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Degree program a student belongs to."""

    __tablename__ = "programs"

    code: Mapped[str] = mapped_column(sa.String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(sa.Text)

    subjects: Mapped[list[Subject]] = relationship(back_populates="program")
    students: Mapped[list[Student]] = relationship(back_populates="program")


class Professor(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Faculty member assigned to sections."""

    __tablename__ = "professors"

    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    department: Mapped[str | None] = mapped_column(sa.String(100))

    sections: Mapped[list[Section]] = relationship(back_populates="professor")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class AcademicTerm(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A school year and semester pair; exactly one is active at a time."""

    __tablename__ = "academic_terms"
    __table_args__ = (
        sa.UniqueConstraint("school_year", "semester", name="uq_academic_terms_year_semester"),
    )

    school_year: Mapped[str] = mapped_column(sa.String(9), nullable=False)
    semester: Mapped[Semester] = mapped_column(enum_column(Semester), nullable=False)
    is_active: Mapped[bool] = mapped_column(default=False, nullable=False)


class Subject(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Catalog subject, optionally gated by one prerequisite subject."""

    __tablename__ = "subjects"
    __table_args__ = (
        sa.CheckConstraint(
            "prerequisite_id IS NULL OR prerequisite_id <> id",
            name="ck_subjects_not_own_prerequisite",
        ),
        sa.CheckConstraint("units > 0", name="ck_subjects_units_positive"),
    )

    code: Mapped[str] = mapped_column(sa.String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    units: Mapped[int] = mapped_column(nullable=False)
    subject_type: Mapped[SubjectType] = mapped_column(
        enum_column(SubjectType), default=SubjectType.MAJOR, nullable=False
    )
    program_id: Mapped[str] = mapped_column(
        sa.ForeignKey("programs.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    prerequisite_id: Mapped[str | None] = mapped_column(
        sa.ForeignKey("subjects.id", ondelete="SET NULL"), index=True
    )
    year_standing: Mapped[int | None] = mapped_column()
    recommended_year: Mapped[int | None] = mapped_column()
    recommended_semester: Mapped[Semester | None] = mapped_column(enum_column(Semester))

    program: Mapped[Program] = relationship(back_populates="subjects")
    prerequisite: Mapped[Subject | None] = relationship(remote_side="Subject.id")
    sections: Mapped[list[Section]] = relationship(back_populates="subject")


class Section(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One offering of a subject in a term, with slot capacity."""

    __tablename__ = "sections"
    __table_args__ = (
        sa.CheckConstraint(
            "available_slots >= 0 AND available_slots <= max_slots",
            name="ck_sections_slot_bounds",
        ),
        sa.Index("ix_sections_term", "school_year", "semester"),
    )

    name: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    subject_id: Mapped[str] = mapped_column(
        sa.ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    professor_id: Mapped[str] = mapped_column(
        sa.ForeignKey("professors.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    school_year: Mapped[str] = mapped_column(sa.String(9), nullable=False)
    semester: Mapped[Semester] = mapped_column(enum_column(Semester), nullable=False)
    max_slots: Mapped[int] = mapped_column(nullable=False)
    available_slots: Mapped[int] = mapped_column(nullable=False)
    status: Mapped[SectionStatus] = mapped_column(
        enum_column(SectionStatus), default=SectionStatus.OPEN, nullable=False
    )

    subject: Mapped[Subject] = relationship(back_populates="sections")
    professor: Mapped[Professor] = relationship(back_populates="sections")
    enrollment_subjects: Mapped[list[EnrollmentSubject]] = relationship(
        back_populates="section"
    )
