# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student model.

gpa and has_inc are caches of the approved grade history. They are written
only by the standing recompute in the grading domain.
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
from academics.models.common import StudentStatus

if TYPE_CHECKING:
    from academics.infrastructure.database.models.catalog import Program
    from academics.infrastructure.database.models.enrollment import Enrollment


class Student(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Enrolled student record."""

    __tablename__ = "students"

    student_no: Mapped[str] = mapped_column(sa.String(20), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    program_id: Mapped[str] = mapped_column(
        sa.ForeignKey("programs.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    year_level: Mapped[int] = mapped_column(default=1, nullable=False)
    gpa: Mapped[float] = mapped_column(sa.Float, default=0.0, nullable=False)
    has_inc: Mapped[bool] = mapped_column(default=False, nullable=False)
    status: Mapped[StudentStatus] = mapped_column(
        enum_column(StudentStatus), default=StudentStatus.REGULAR, nullable=False
    )

    program: Mapped[Program] = relationship(back_populates="students")
    enrollments: Mapped[list[Enrollment]] = relationship(
        back_populates="student",
        passive_deletes="all",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
