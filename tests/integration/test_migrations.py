# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for database migrations.

The db_engine fixture is overridden here so that every test runs against a
schema built by the revision scripts instead of metadata.create_all.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from academics.domains.enrollment import DuplicateEnrollmentError, EnrollmentService
from academics.infrastructure.database.migrations.runner import (
    MIGRATIONS,
    check_migrations_pending,
    get_migration_status,
    run_migrations,
)
from academics.infrastructure.database.models import Base
from academics.models.common import EnrollmentStatus

pytestmark = pytest.mark.integration


async def _reset(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.execute(sa.text("DROP TABLE IF EXISTS alembic_version"))


@pytest_asyncio.fixture(scope="function")
async def db_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine on a schema built by the migrations."""
    engine = create_async_engine(database_url, echo=False)
    await _reset(engine)
    await run_migrations(database_url)

    yield engine

    await _reset(engine)
    await engine.dispose()


class TestMigrationRunner:
    """Tests for applying and tracking revisions."""

    @pytest.mark.asyncio
    async def test_fresh_database_is_pending(self, tmp_path):
        """Test an empty database reports every revision as pending."""
        url = f"sqlite+aiosqlite:///{tmp_path / 'fresh.db'}"

        assert await check_migrations_pending(url) is True
        status = await get_migration_status(url)
        assert status["current_version"] is None
        assert status["pending_migrations"] == MIGRATIONS

    @pytest.mark.asyncio
    async def test_up_to_date_after_upgrade(self, db_engine, database_url):
        """Test the version table records the latest revision."""
        status = await get_migration_status(database_url)

        assert status["current_version"] == MIGRATIONS[-1]
        assert status["is_up_to_date"] is True
        assert await check_migrations_pending(database_url) is False
        assert await run_migrations(database_url) == []

    @pytest.mark.asyncio
    async def test_tables_match_models(self, db_engine):
        """Test the migrated schema has every mapped table and column."""

        def _columns(connection) -> dict[str, set[str]]:
            inspector = sa.inspect(connection)
            return {
                table: {column["name"] for column in inspector.get_columns(table)}
                for table in inspector.get_table_names()
            }

        async with db_engine.connect() as conn:
            columns = await conn.run_sync(_columns)

        for name, table in Base.metadata.tables.items():
            assert name in columns, f"Table {name} not found"
            assert columns[name] == {column.name for column in table.columns}


class TestMigratedSchema:
    """Tests running services and constraints on the migrated schema."""

    @pytest.mark.asyncio
    async def test_enrollment_round_trip(self, db_session, seed, campus):
        """Test enrollment works and the open-enrollment rule holds."""
        subject_id = await seed.subject(campus.program_id, "CS101")
        section_id = await seed.section(subject_id, campus.professor_id, campus.term)
        student_id = await seed.student(campus.program_id)
        service = EnrollmentService(db_session)

        response = await service.enroll(student_id, [section_id], 3)

        assert response.status == EnrollmentStatus.PENDING
        with pytest.raises(DuplicateEnrollmentError):
            await service.enroll(student_id, [section_id], 3)

    @pytest.mark.asyncio
    async def test_slot_bounds_are_enforced(self, seed, campus):
        """Test the database rejects more available slots than capacity."""
        subject_id = await seed.subject(campus.program_id, "CS101")

        with pytest.raises(IntegrityError):
            await seed.section(
                subject_id, campus.professor_id, campus.term, max_slots=1, available_slots=2
            )
