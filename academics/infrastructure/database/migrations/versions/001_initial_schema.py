# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial registrar database schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-06-02
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

GRADE_VALUES = (
    "grade_1_0",
    "grade_1_25",
    "grade_1_5",
    "grade_1_75",
    "grade_2_0",
    "grade_2_25",
    "grade_2_5",
    "grade_2_75",
    "grade_3_0",
    "grade_4_0",
    "grade_5_0",
    "INC",
    "DRP",
)
SEMESTERS = ("first", "second", "summer")


def _choice(name: str, values: Sequence[str]) -> sa.Enum:
    """VARCHAR(20) limited to values by a named CHECK constraint."""
    return sa.Enum(*values, name=name, native_enum=False, create_constraint=True, length=20)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create registrar tables."""
    # =========================================================================
    # CATALOG
    # =========================================================================

    op.create_table(
        "programs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("code", sa.String(20), unique=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "professors",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("department", sa.String(100), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "academic_terms",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("school_year", sa.String(9), nullable=False),
        sa.Column("semester", _choice("semester", SEMESTERS), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("school_year", "semester", name="uq_academic_terms_year_semester"),
    )

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("code", sa.String(20), unique=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("units", sa.Integer, nullable=False),
        sa.Column("subject_type", _choice("subjecttype", ("major", "minor")), nullable=False),
        sa.Column(
            "program_id",
            sa.String(36),
            sa.ForeignKey("programs.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "prerequisite_id",
            sa.String(36),
            sa.ForeignKey("subjects.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("year_standing", sa.Integer, nullable=True),
        sa.Column("recommended_year", sa.Integer, nullable=True),
        sa.Column("recommended_semester", _choice("semester", SEMESTERS), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "prerequisite_id IS NULL OR prerequisite_id <> id",
            name="ck_subjects_not_own_prerequisite",
        ),
        sa.CheckConstraint("units > 0", name="ck_subjects_units_positive"),
    )
    op.create_index("ix_subjects_program_id", "subjects", ["program_id"])
    op.create_index("ix_subjects_prerequisite_id", "subjects", ["prerequisite_id"])

    op.create_table(
        "sections",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column(
            "subject_id",
            sa.String(36),
            sa.ForeignKey("subjects.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "professor_id",
            sa.String(36),
            sa.ForeignKey("professors.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("school_year", sa.String(9), nullable=False),
        sa.Column("semester", _choice("semester", SEMESTERS), nullable=False),
        sa.Column("max_slots", sa.Integer, nullable=False),
        sa.Column("available_slots", sa.Integer, nullable=False),
        sa.Column("status", _choice("sectionstatus", ("open", "closed")), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "available_slots >= 0 AND available_slots <= max_slots",
            name="ck_sections_slot_bounds",
        ),
    )
    op.create_index("ix_sections_subject_id", "sections", ["subject_id"])
    op.create_index("ix_sections_professor_id", "sections", ["professor_id"])
    op.create_index("ix_sections_term", "sections", ["school_year", "semester"])

    # =========================================================================
    # STUDENTS AND ENROLLMENT
    # =========================================================================

    op.create_table(
        "students",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("student_no", sa.String(20), unique=True, nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column(
            "program_id",
            sa.String(36),
            sa.ForeignKey("programs.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("year_level", sa.Integer, nullable=False),
        sa.Column("gpa", sa.Float, nullable=False),
        sa.Column("has_inc", sa.Boolean, nullable=False),
        sa.Column(
            "status",
            _choice("studentstatus", ("regular", "irregular", "inactive")),
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index("ix_students_program_id", "students", ["program_id"])

    op.create_table(
        "enrollments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "student_id",
            sa.String(36),
            sa.ForeignKey("students.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "term_id",
            sa.String(36),
            sa.ForeignKey("academic_terms.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "status",
            _choice("enrollmentstatus", ("pending", "confirmed", "cancelled")),
            nullable=False,
        ),
        sa.Column("total_units", sa.Integer, nullable=False),
        sa.Column("date_enrolled", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("total_units >= 0", name="ck_enrollments_total_units"),
    )
    op.create_index("ix_enrollments_student_id", "enrollments", ["student_id"])
    op.create_index("ix_enrollments_term_id", "enrollments", ["term_id"])
    op.create_index(
        "uq_enrollments_student_term_open",
        "enrollments",
        ["student_id", "term_id"],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'"),
        sqlite_where=sa.text("status <> 'cancelled'"),
    )

    op.create_table(
        "enrollment_subjects",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "enrollment_id",
            sa.String(36),
            sa.ForeignKey("enrollments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "subject_id",
            sa.String(36),
            sa.ForeignKey("subjects.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "section_id",
            sa.String(36),
            sa.ForeignKey("sections.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("units", sa.Integer, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("enrollment_id", "section_id", name="uq_enrollment_subjects_section"),
    )
    op.create_index("ix_enrollment_subjects_enrollment_id", "enrollment_subjects", ["enrollment_id"])
    op.create_index("ix_enrollment_subjects_subject_id", "enrollment_subjects", ["subject_id"])
    op.create_index("ix_enrollment_subjects_section_id", "enrollment_subjects", ["section_id"])

    # =========================================================================
    # GRADES
    # =========================================================================

    op.create_table(
        "grades",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "enrollment_subject_id",
            sa.String(36),
            sa.ForeignKey("enrollment_subjects.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        ),
        sa.Column("grade_value", _choice("gradevalue", GRADE_VALUES), nullable=False),
        sa.Column("approved", sa.Boolean, nullable=False),
        sa.Column(
            "encoded_by",
            sa.String(36),
            sa.ForeignKey("professors.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("date_encoded", sa.DateTime(timezone=True), nullable=False),
        sa.Column("remarks", sa.Text, nullable=True),
        sa.Column("repeat_eligible_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_grades_encoded_by", "grades", ["encoded_by"])

    op.create_table(
        "inc_resolutions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "student_id",
            sa.String(36),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "subject_id",
            sa.String(36),
            sa.ForeignKey("subjects.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "professor_id",
            sa.String(36),
            sa.ForeignKey("professors.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("old_grade", _choice("inc_old_grade_value", GRADE_VALUES), nullable=False),
        sa.Column("new_grade", _choice("inc_new_grade_value", GRADE_VALUES), nullable=False),
        sa.Column("remarks", sa.Text, nullable=True),
        sa.Column("approved_by_registrar", sa.Boolean, nullable=False),
        sa.Column("date_submitted", sa.DateTime(timezone=True), nullable=False),
        sa.Column("date_approved", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("old_grade = 'INC'", name="ck_inc_resolutions_old_grade"),
        sa.CheckConstraint("new_grade NOT IN ('INC', 'DRP')", name="ck_inc_resolutions_new_grade"),
    )
    op.create_index("ix_inc_resolutions_student_id", "inc_resolutions", ["student_id"])
    op.create_index("ix_inc_resolutions_subject_id", "inc_resolutions", ["subject_id"])
    op.create_index("ix_inc_resolutions_professor_id", "inc_resolutions", ["professor_id"])
    op.create_index(
        "uq_inc_resolutions_open",
        "inc_resolutions",
        ["student_id", "subject_id", "professor_id"],
        unique=True,
        postgresql_where=sa.text("approved_by_registrar = false"),
        sqlite_where=sa.text("approved_by_registrar = false"),
    )


def downgrade() -> None:
    """Drop registrar tables."""
    # Drop in reverse order to handle foreign keys
    op.drop_table("inc_resolutions")
    op.drop_table("grades")
    op.drop_table("enrollment_subjects")
    op.drop_table("enrollments")
    op.drop_table("students")
    op.drop_table("sections")
    op.drop_table("subjects")
    op.drop_table("academic_terms")
    op.drop_table("professors")
    op.drop_table("programs")
