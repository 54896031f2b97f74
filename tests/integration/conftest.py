# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for database integration tests.

Tests run against a throwaway SQLite file by default. Set TEST_DATABASE_URL
to an asyncpg URL to run the same suite against PostgreSQL (required for the
truly concurrent enrollment race).
"""

import os
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from academics.infrastructure.database.connection import build_sessionmaker
from academics.infrastructure.database.models import (
    AcademicTerm,
    Base,
    Enrollment,
    EnrollmentSubject,
    Grade,
    Professor,
    Program,
    Section,
    Student,
    Subject,
)
from academics.models.academic_term import TermContext
from academics.models.common import (
    EnrollmentStatus,
    GradeValue,
    SectionStatus,
    Semester,
    SubjectType,
)


@pytest.fixture
def database_url(tmp_path) -> str:
    """Get database URL for tests."""
    return os.environ.get(
        "TEST_DATABASE_URL",
        f"sqlite+aiosqlite:///{tmp_path / 'academics_test.db'}",
    )


@pytest.fixture
def is_postgres(database_url: str) -> bool:
    """Whether the suite runs against PostgreSQL."""
    return database_url.startswith("postgresql")


@pytest_asyncio.fixture(scope="function")
async def db_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine with a fresh schema."""
    engine = create_async_engine(database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessionmaker configured like the application's."""
    return build_sessionmaker(db_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create async session for service calls."""
    async with session_factory() as session:
        yield session


class Seeder:
    """Writes catalog and history rows through its own sessions.

    Every helper commits and returns plain ids, so the session under test
    starts with an empty identity map.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def _add(self, row):
        async with self.session_factory() as session:
            session.add(row)
            await session.commit()
        return row.id

    async def program(self, code: str = "BSCS", name: str = "BS Computer Science") -> str:
        return await self._add(Program(code=code, name=name))

    async def professor(self, first_name: str = "Ada", last_name: str = "Lovelace") -> str:
        return await self._add(
            Professor(first_name=first_name, last_name=last_name, department="CS")
        )

    async def term(
        self,
        school_year: str,
        semester: Semester = Semester.FIRST,
        is_active: bool = False,
    ) -> TermContext:
        term_id = await self._add(
            AcademicTerm(school_year=school_year, semester=semester, is_active=is_active)
        )
        return TermContext(
            id=term_id, school_year=school_year, semester=semester, is_active=is_active
        )

    async def subject(
        self,
        program_id: str,
        code: str,
        units: int = 3,
        subject_type: SubjectType = SubjectType.MAJOR,
        prerequisite_id: str | None = None,
        year_standing: int | None = None,
        recommended_year: int | None = None,
        recommended_semester: Semester | None = None,
    ) -> str:
        return await self._add(
            Subject(
                program_id=program_id,
                code=code,
                name=f"{code} subject",
                units=units,
                subject_type=subject_type,
                prerequisite_id=prerequisite_id,
                year_standing=year_standing,
                recommended_year=recommended_year,
                recommended_semester=recommended_semester,
            )
        )

    async def section(
        self,
        subject_id: str,
        professor_id: str,
        term: TermContext,
        max_slots: int = 40,
        available_slots: int | None = None,
        status: SectionStatus = SectionStatus.OPEN,
        name: str | None = None,
    ) -> str:
        return await self._add(
            Section(
                name=name or f"SEC-{self._next()}",
                subject_id=subject_id,
                professor_id=professor_id,
                school_year=term.school_year,
                semester=term.semester,
                max_slots=max_slots,
                available_slots=max_slots if available_slots is None else available_slots,
                status=status,
            )
        )

    async def student(
        self,
        program_id: str,
        student_no: str | None = None,
        year_level: int = 1,
        has_inc: bool = False,
        first_name: str = "Juan",
        last_name: str = "Dela Cruz",
    ) -> str:
        return await self._add(
            Student(
                program_id=program_id,
                student_no=student_no or f"2025-{self._next():04d}",
                first_name=first_name,
                last_name=last_name,
                year_level=year_level,
                has_inc=has_inc,
            )
        )

    async def enrollment_line(
        self,
        student_id: str,
        term: TermContext,
        section_id: str,
        status: EnrollmentStatus = EnrollmentStatus.CONFIRMED,
    ) -> str:
        """Enroll the student in one more section of the term's enrollment."""
        async with self.session_factory() as session:
            section = await session.get(Section, section_id)
            subject = await session.get(Subject, section.subject_id)

            result = await session.execute(
                select(Enrollment).where(
                    Enrollment.student_id == student_id,
                    Enrollment.term_id == term.id,
                    Enrollment.status != EnrollmentStatus.CANCELLED,
                )
            )
            enrollment = result.scalars().first()
            if enrollment is None:
                enrollment = Enrollment(
                    student_id=student_id,
                    term_id=term.id,
                    status=status,
                    total_units=0,
                )
                session.add(enrollment)
                await session.flush()

            line = EnrollmentSubject(
                enrollment_id=enrollment.id,
                subject_id=subject.id,
                section_id=section.id,
                units=subject.units,
            )
            session.add(line)
            enrollment.total_units += subject.units
            await session.commit()
            return line.id

    async def grade(
        self,
        enrollment_subject_id: str,
        grade_value: GradeValue,
        professor_id: str,
        approved: bool = True,
        date_encoded: datetime | None = None,
        repeat_eligible_date: datetime | None = None,
    ) -> str:
        row = Grade(
            enrollment_subject_id=enrollment_subject_id,
            grade_value=grade_value,
            approved=approved,
            encoded_by=professor_id,
            repeat_eligible_date=repeat_eligible_date,
        )
        if date_encoded is not None:
            row.date_encoded = date_encoded
        return await self._add(row)

    async def graded_subject(
        self,
        student_id: str,
        term: TermContext,
        section_id: str,
        grade_value: GradeValue,
        professor_id: str,
        approved: bool = True,
        date_encoded: datetime | None = None,
        repeat_eligible_date: datetime | None = None,
    ) -> tuple[str, str]:
        """Enroll and grade in one go; returns (enrollment_subject_id, grade_id)."""
        line_id = await self.enrollment_line(student_id, term, section_id)
        grade_id = await self.grade(
            line_id,
            grade_value,
            professor_id,
            approved=approved,
            date_encoded=date_encoded,
            repeat_eligible_date=repeat_eligible_date,
        )
        return line_id, grade_id

    async def fetch(self, model, row_id: str):
        """Read a row back through a fresh session."""
        async with self.session_factory() as session:
            return await session.get(model, row_id)


@pytest.fixture
def seed(session_factory: async_sessionmaker[AsyncSession]) -> Seeder:
    """Provide the row seeder."""
    return Seeder(session_factory)


@dataclass
class Campus:
    """Baseline catalog shared by most integration tests.

    Attributes:
        program_id: BSCS program.
        professor_id: Professor teaching every seeded section.
        term: Active term (2025-2026, first semester).
        prior_term: Earlier term (2024-2025, first semester).
    """

    program_id: str
    professor_id: str
    term: TermContext
    prior_term: TermContext


@pytest_asyncio.fixture
async def campus(seed: Seeder) -> Campus:
    """Seed a program, a professor and two terms."""
    program_id = await seed.program()
    professor_id = await seed.professor()
    prior_term = await seed.term("2024-2025", Semester.FIRST)
    term = await seed.term("2025-2026", Semester.FIRST, is_active=True)
    return Campus(
        program_id=program_id,
        professor_id=professor_id,
        term=term,
        prior_term=prior_term,
    )
