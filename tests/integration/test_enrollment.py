# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the enrollment transaction manager."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from academics.core.exceptions import NotAuthorizedError
from academics.core.identity import IdentityContext, Role
from academics.domains.enrollment import (
    DuplicateEnrollmentError,
    EnrollmentService,
    NotCancellableError,
    SectionsUnavailableError,
    UnitCapExceededError,
)
from academics.infrastructure.database.models import Enrollment, EnrollmentSubject, Section
from academics.models.common import EnrollmentStatus, SectionStatus

pytestmark = pytest.mark.integration


async def _slots(seed, section_id: str) -> int:
    section = await seed.fetch(Section, section_id)
    return section.available_slots


async def _enrollment_count(session_factory) -> int:
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(Enrollment))
        return result.scalar_one()


class TestEnroll:
    """Tests for EnrollmentService.enroll."""

    @pytest.mark.asyncio
    async def test_enroll_takes_one_slot_per_section(self, db_session, seed, campus):
        """Test a successful enrollment is pending and decrements every section."""
        cs101 = await seed.subject(campus.program_id, "CS101", units=3)
        math101 = await seed.subject(campus.program_id, "MATH101", units=4)
        sec_a = await seed.section(cs101, campus.professor_id, campus.term, max_slots=30)
        sec_b = await seed.section(math101, campus.professor_id, campus.term, max_slots=2)
        student_id = await seed.student(campus.program_id)

        response = await EnrollmentService(db_session).enroll(student_id, [sec_a, sec_b], 7)

        assert response.status == EnrollmentStatus.PENDING
        assert response.total_units == 7
        assert response.term.id == campus.term.id
        assert [line.section.id for line in response.subjects] == [sec_a, sec_b]
        assert [line.units for line in response.subjects] == [3, 4]
        assert response.subjects[1].section.available_slots == 1
        assert await _slots(seed, sec_a) == 29
        assert await _slots(seed, sec_b) == 1

    @pytest.mark.asyncio
    async def test_stored_units_come_from_catalog(self, db_session, seed, campus):
        """Test the declared total is replaced by the catalog sum."""
        cs101 = await seed.subject(campus.program_id, "CS101", units=5)
        section = await seed.section(cs101, campus.professor_id, campus.term)
        student_id = await seed.student(campus.program_id)

        response = await EnrollmentService(db_session).enroll(student_id, [section], 3)

        assert response.total_units == 5

    @pytest.mark.asyncio
    async def test_duplicate_enrollment(self, db_session, seed, campus):
        """Test a second enrollment in the same term is rejected."""
        cs101 = await seed.subject(campus.program_id, "CS101")
        section = await seed.section(cs101, campus.professor_id, campus.term)
        student_id = await seed.student(campus.program_id)
        service = EnrollmentService(db_session)
        await service.enroll(student_id, [section], 3)

        with pytest.raises(DuplicateEnrollmentError):
            await service.enroll(student_id, [section], 3)

        assert await _slots(seed, section) == 39

    @pytest.mark.asyncio
    async def test_reenroll_after_cancel(self, db_session, seed, campus):
        """Test a cancelled enrollment does not block a new one."""
        cs101 = await seed.subject(campus.program_id, "CS101")
        section = await seed.section(cs101, campus.professor_id, campus.term)
        student_id = await seed.student(campus.program_id)
        service = EnrollmentService(db_session)
        first = await service.enroll(student_id, [section], 3)
        await service.cancel(student_id, first.id)

        second = await service.enroll(student_id, [section], 3)

        assert second.id != first.id
        assert await _slots(seed, section) == 39

    @pytest.mark.asyncio
    async def test_unavailable_section_writes_nothing(
        self, db_session, seed, campus, session_factory
    ):
        """Test one unavailable section fails the request without side effects."""
        cs101 = await seed.subject(campus.program_id, "CS101")
        cs102 = await seed.subject(campus.program_id, "CS102")
        open_section = await seed.section(cs101, campus.professor_id, campus.term)
        closed = await seed.section(
            cs102, campus.professor_id, campus.term, status=SectionStatus.CLOSED
        )
        student_id = await seed.student(campus.program_id)

        with pytest.raises(SectionsUnavailableError):
            await EnrollmentService(db_session).enroll(student_id, [open_section, closed], 6)

        assert await _slots(seed, open_section) == 40
        assert await _enrollment_count(session_factory) == 0

    @pytest.mark.asyncio
    async def test_full_section(self, db_session, seed, campus):
        """Test a section without free slots is unavailable."""
        cs101 = await seed.subject(campus.program_id, "CS101")
        section = await seed.section(
            cs101, campus.professor_id, campus.term, max_slots=1, available_slots=0
        )
        student_id = await seed.student(campus.program_id)

        with pytest.raises(SectionsUnavailableError):
            await EnrollmentService(db_session).enroll(student_id, [section], 3)

    @pytest.mark.asyncio
    async def test_section_of_other_term(self, db_session, seed, campus):
        """Test sections outside the enrollment term are unavailable."""
        cs101 = await seed.subject(campus.program_id, "CS101")
        section = await seed.section(cs101, campus.professor_id, campus.prior_term)
        student_id = await seed.student(campus.program_id)

        with pytest.raises(SectionsUnavailableError):
            await EnrollmentService(db_session).enroll(student_id, [section], 3)

    @pytest.mark.asyncio
    async def test_repeated_section_id(self, db_session, seed, campus):
        """Test listing the same section twice is rejected."""
        cs101 = await seed.subject(campus.program_id, "CS101")
        section = await seed.section(cs101, campus.professor_id, campus.term)
        student_id = await seed.student(campus.program_id)

        with pytest.raises(SectionsUnavailableError):
            await EnrollmentService(db_session).enroll(student_id, [section, section], 6)

        assert await _slots(seed, section) == 40

    @pytest.mark.asyncio
    async def test_catalog_units_over_cap(self, db_session, seed, campus, policy):
        """Test the unit cap applies to the catalog total."""
        sections = []
        for index in range(4):
            subject = await seed.subject(campus.program_id, f"CS10{index}", units=8)
            sections.append(await seed.section(subject, campus.professor_id, campus.term))
        student_id = await seed.student(campus.program_id)

        with pytest.raises(UnitCapExceededError):
            await EnrollmentService(db_session, policy=policy).enroll(student_id, sections, 24)

        assert await _slots(seed, sections[0]) == 40


class TestEnrollRace:
    """The last slot goes to exactly one of two concurrent enrollments."""

    @pytest.mark.asyncio
    async def test_stale_read_loses_last_slot(self, seed, campus, session_factory):
        """Test an enrollment that saw a free slot fails once it is gone."""
        cs101 = await seed.subject(campus.program_id, "CS101")
        section = await seed.section(cs101, campus.professor_id, campus.term, max_slots=1)
        first_student = await seed.student(campus.program_id)
        second_student = await seed.student(campus.program_id)

        async with session_factory() as first_session, session_factory() as second_session:
            late = EnrollmentService(second_session)
            # The second caller reads the section while the slot is still free
            stale_sections = await late._get_enrollable_sections([section], campus.term)
            assert len(stale_sections) == 1

            await EnrollmentService(first_session).enroll(first_student, [section], 3)

            with patch.object(
                late, "_get_enrollable_sections", AsyncMock(return_value=stale_sections)
            ):
                with pytest.raises(SectionsUnavailableError):
                    await late.enroll(second_student, [section], 3)

        assert await _slots(seed, section) == 0
        async with session_factory() as session:
            result = await session.execute(
                select(func.count())
                .select_from(EnrollmentSubject)
                .where(EnrollmentSubject.section_id == section)
            )
            assert result.scalar_one() == 1

    @pytest.mark.asyncio
    @pytest.mark.slow
    async def test_concurrent_enrollments(self, seed, campus, session_factory, is_postgres):
        """Test two simultaneous enrollments for one slot on PostgreSQL."""
        if not is_postgres:
            pytest.skip("Concurrent writers need PostgreSQL")

        cs101 = await seed.subject(campus.program_id, "CS101")
        section = await seed.section(cs101, campus.professor_id, campus.term, max_slots=1)
        students = [await seed.student(campus.program_id) for _ in range(2)]

        async def attempt(student_id: str):
            async with session_factory() as session:
                return await EnrollmentService(session).enroll(student_id, [section], 3)

        results = await asyncio.gather(
            *(attempt(student_id) for student_id in students),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], SectionsUnavailableError)
        assert await _slots(seed, section) == 0


class TestCancel:
    """Tests for EnrollmentService.cancel."""

    @pytest.mark.asyncio
    async def test_cancel_restores_slots(self, db_session, seed, campus):
        """Test enroll then cancel leaves every section as it was."""
        cs101 = await seed.subject(campus.program_id, "CS101")
        cs102 = await seed.subject(campus.program_id, "CS102")
        sec_a = await seed.section(cs101, campus.professor_id, campus.term, max_slots=5)
        sec_b = await seed.section(cs102, campus.professor_id, campus.term, max_slots=1)
        student_id = await seed.student(campus.program_id)
        service = EnrollmentService(db_session)
        enrollment = await service.enroll(student_id, [sec_a, sec_b], 6)

        cancelled = await service.cancel(student_id, enrollment.id)

        assert cancelled.status == EnrollmentStatus.CANCELLED
        assert await _slots(seed, sec_a) == 5
        assert await _slots(seed, sec_b) == 1

    @pytest.mark.asyncio
    async def test_cancel_twice(self, db_session, seed, campus):
        """Test a cancelled enrollment cannot be cancelled again."""
        cs101 = await seed.subject(campus.program_id, "CS101")
        section = await seed.section(cs101, campus.professor_id, campus.term)
        student_id = await seed.student(campus.program_id)
        service = EnrollmentService(db_session)
        enrollment = await service.enroll(student_id, [section], 3)
        await service.cancel(student_id, enrollment.id)

        with pytest.raises(NotCancellableError):
            await service.cancel(student_id, enrollment.id)

        assert await _slots(seed, section) == 40

    @pytest.mark.asyncio
    async def test_confirmed_is_not_cancellable(self, db_session, seed, campus):
        """Test only pending enrollments can be cancelled."""
        cs101 = await seed.subject(campus.program_id, "CS101")
        section = await seed.section(cs101, campus.professor_id, campus.term)
        student_id = await seed.student(campus.program_id)
        line_id = await seed.enrollment_line(student_id, campus.term, section)
        line = await seed.fetch(EnrollmentSubject, line_id)

        with pytest.raises(NotCancellableError):
            await EnrollmentService(db_session).cancel(student_id, line.enrollment_id)

    @pytest.mark.asyncio
    async def test_other_students_enrollment(self, db_session, seed, campus):
        """Test a student cannot cancel someone else's enrollment."""
        cs101 = await seed.subject(campus.program_id, "CS101")
        section = await seed.section(cs101, campus.professor_id, campus.term)
        owner = await seed.student(campus.program_id)
        intruder = await seed.student(campus.program_id)
        service = EnrollmentService(db_session)
        enrollment = await service.enroll(owner, [section], 3)

        with pytest.raises(NotCancellableError):
            await service.cancel(intruder, enrollment.id)

        assert await _slots(seed, section) == 39


class TestEnrollmentHistory:
    """Tests for EnrollmentService.enrollment_history."""

    @pytest.mark.asyncio
    async def test_newest_first(self, db_session, seed, campus):
        """Test history lists enrollments newest first."""
        cs101 = await seed.subject(campus.program_id, "CS101")
        old_section = await seed.section(cs101, campus.professor_id, campus.prior_term)
        new_section = await seed.section(cs101, campus.professor_id, campus.term)
        student_id = await seed.student(campus.program_id)

        await EnrollmentService(
            db_session, clock=lambda: datetime(2024, 8, 1, tzinfo=timezone.utc)
        ).enroll(student_id, [old_section], 3, term=campus.prior_term)
        await EnrollmentService(
            db_session, clock=lambda: datetime(2025, 8, 1, tzinfo=timezone.utc)
        ).enroll(student_id, [new_section], 3)

        history = await EnrollmentService(db_session).enrollment_history(student_id)

        assert [e.term.school_year for e in history] == ["2025-2026", "2024-2025"]
        assert history[0].subjects[0].grade is None

    @pytest.mark.asyncio
    async def test_student_identity(self, db_session, seed, campus):
        """Test students may only read their own history."""
        student_id = await seed.student(campus.program_id)
        other_id = await seed.student(campus.program_id)
        service = EnrollmentService(db_session)

        own = await service.enrollment_history(
            identity=IdentityContext(role=Role.STUDENT, student_id=student_id)
        )
        assert own == []

        with pytest.raises(NotAuthorizedError):
            await service.enrollment_history(
                other_id, identity=IdentityContext(role=Role.STUDENT, student_id=student_id)
            )
