# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic term lookup.

Term CRUD lives elsewhere. This module answers "which term are we in?"
and turns the answer into an explicit TermContext value that the other
services accept, so any term can be pinned by the caller.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academics.core.exceptions import NoActiveTermError, NotFoundError
from academics.infrastructure.database.models import AcademicTerm
from academics.models.academic_term import TermContext

logger = logging.getLogger(__name__)


class TermNotFoundError(NotFoundError):
    """Raised when an explicitly requested term does not exist."""

    pass


class AcademicTermService:
    """Read-only access to academic terms.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize academic term service.

        Args:
            db: Async database session.
        """
        self.db = db

    async def get_active_term(self) -> TermContext | None:
        """Get the active academic term.

        Returns:
            Active term or None if no term is active.
        """
        query = (
            select(AcademicTerm)
            .where(AcademicTerm.is_active.is_(True))
            .order_by(AcademicTerm.school_year.desc())
            .limit(1)
        )
        result = await self.db.execute(query)
        term = result.scalars().first()

        if not term:
            return None

        return TermContext.model_validate(term)

    async def get_term(self, term_id: str) -> TermContext:
        """Get academic term by ID.

        Args:
            term_id: Academic term identifier.

        Returns:
            Term context.

        Raises:
            TermNotFoundError: If term not found.
        """
        query = select(AcademicTerm).where(AcademicTerm.id == str(term_id))
        result = await self.db.execute(query)
        term = result.scalar_one_or_none()

        if not term:
            raise TermNotFoundError(f"Academic term {term_id} not found")

        return TermContext.model_validate(term)

    async def resolve(
        self,
        term_id: str | None = None,
        term: TermContext | None = None,
    ) -> TermContext:
        """Resolve the term an operation runs against.

        An explicit TermContext wins, then an explicit term id, then the
        active term.

        Args:
            term_id: Optional explicit term identifier.
            term: Optional already-resolved term.

        Returns:
            Term context.

        Raises:
            TermNotFoundError: If term_id does not exist.
            NoActiveTermError: If nothing was given and no term is active.
        """
        if term is not None:
            return term

        if term_id:
            return await self.get_term(term_id)

        active = await self.get_active_term()
        if active is None:
            raise NoActiveTermError("No active academic term found")

        return active
