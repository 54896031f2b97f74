# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Programmatic schema migrations for the registrar database.

Revision scripts under ``versions/`` are alembic-style modules with an
``upgrade()`` function. They are applied in the order of ``MIGRATIONS``
and the last applied revision is kept in the ``alembic_version`` table,
so the alembic CLI can take over an existing database.

Example:
    from academics.infrastructure.database.migrations.runner import run_migrations

    applied = await run_migrations(settings.db.url)
"""

import importlib
import logging
from typing import Callable

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

logger = logging.getLogger(__name__)

VERSIONS_PACKAGE = "academics.infrastructure.database.migrations.versions"

# Revision modules in apply order
MIGRATIONS = [
    "001_initial_schema",
]


class MigrationError(Exception):
    """Raised when a revision cannot be loaded or applied."""

    pass


async def run_migrations(
    db_url: str,
    target_revision: str | None = None,
) -> list[str]:
    """Bring the schema up to date.

    Args:
        db_url: Async database connection URL.
        target_revision: Stop after this revision. Defaults to the latest.

    Returns:
        Revisions applied by this call, in order.

    Raises:
        MigrationError: If a revision cannot be loaded.
    """
    engine = create_async_engine(db_url, echo=False)
    try:
        current = await _read_version(engine)
        pending = _get_pending_migrations(current, target_revision)
        logger.info(
            "Schema at %s, %d revision(s) pending", current or "empty", len(pending)
        )

        for revision in pending:
            await _apply_migration(engine, revision)
            logger.info("Applied migration: %s", revision)
        return pending
    finally:
        await engine.dispose()


async def _read_version(engine: AsyncEngine) -> str | None:
    """Return the recorded revision, creating the version table on first use."""
    async with engine.begin() as conn:
        await conn.execute(
            text(
                "CREATE TABLE IF NOT EXISTS alembic_version ("
                " version_num VARCHAR(128) NOT NULL,"
                " CONSTRAINT alembic_version_pkc PRIMARY KEY (version_num))"
            )
        )
        result = await conn.execute(text("SELECT version_num FROM alembic_version"))
        return result.scalar_one_or_none()


def _get_pending_migrations(
    current_version: str | None,
    target_revision: str | None = None,
) -> list[str]:
    """Slice ``MIGRATIONS`` between the current and target revisions.

    Unknown revisions on either side yield an empty list so a database
    stamped by a newer release is never downgraded by accident.
    """
    known = set(MIGRATIONS)
    if current_version is not None and current_version not in known:
        logger.warning("Recorded revision %s is not known", current_version)
        return []
    if target_revision is not None and target_revision not in known:
        logger.warning("Target revision %s is not known", target_revision)
        return []

    start = 0 if current_version is None else MIGRATIONS.index(current_version) + 1
    stop = len(MIGRATIONS) if target_revision is None else MIGRATIONS.index(target_revision) + 1
    return MIGRATIONS[start:stop]


async def _apply_migration(engine: AsyncEngine, revision: str) -> None:
    """Run one revision and stamp it in the same transaction.

    Raises:
        MigrationError: If the revision module is missing or has no upgrade().
    """
    try:
        module = importlib.import_module(f"{VERSIONS_PACKAGE}.{revision}")
    except ImportError as e:
        raise MigrationError(f"Cannot import migration {revision}: {e}") from e

    upgrade: Callable[[], None] | None = getattr(module, "upgrade", None)
    if upgrade is None:
        raise MigrationError(f"Migration {revision} has no upgrade() function")

    async with engine.begin() as conn:
        await conn.run_sync(_run_upgrade_sync, upgrade)
        await conn.execute(text("DELETE FROM alembic_version"))
        await conn.execute(
            text("INSERT INTO alembic_version (version_num) VALUES (:revision)"),
            {"revision": revision},
        )


def _run_upgrade_sync(connection, upgrade: Callable[[], None]) -> None:
    # alembic.op resolves its context through a module-level proxy
    from alembic.operations import Operations
    from alembic.runtime.migration import MigrationContext

    context = MigrationContext.configure(connection)
    with context.begin_transaction(), Operations.context(context):
        upgrade()


async def check_migrations_pending(db_url: str) -> bool:
    """Return True when the database is behind the latest revision."""
    status = await get_migration_status(db_url)
    return not status["is_up_to_date"]


async def get_migration_status(db_url: str) -> dict:
    """Describe where the database stands against the known revisions.

    Args:
        db_url: Async database connection URL.

    Returns:
        Dict with ``current_version``, ``latest_version``, ``pending_count``,
        ``pending_migrations``, ``all_migrations`` and ``is_up_to_date``.
    """
    engine = create_async_engine(db_url, echo=False)
    try:
        current = await _read_version(engine)
    finally:
        await engine.dispose()

    pending = _get_pending_migrations(current)
    return {
        "current_version": current,
        "latest_version": MIGRATIONS[-1] if MIGRATIONS else None,
        "pending_count": len(pending),
        "pending_migrations": pending,
        "all_migrations": list(MIGRATIONS),
        "is_up_to_date": not pending,
    }
