# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pure eligibility filters applied to a student's grade history.

Each rule looks at one candidate subject and the student's GradeRecords,
and says whether the subject stays in the available list.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from academics.models.common import GradeValue
from academics.utils.datetime import ensure_utc


@dataclass(frozen=True)
class GradeRecord:
    """One graded subject in a student's history.

    Attributes:
        subject_id: Subject the grade was earned in.
        grade_value: Encoded grade.
        school_year: School year of the enrollment term.
        approved: Whether the registrar approved the grade.
        repeat_eligible_date: Cooldown end for failures and INCs.
    """

    subject_id: str
    grade_value: GradeValue
    school_year: str
    approved: bool = False
    repeat_eligible_date: datetime | None = None


def year_standing_allows(year_standing: int | None, year_level: int) -> bool:
    """Subjects without a standing restriction are open to every year."""
    return year_standing is None or year_standing == year_level


def prerequisite_satisfied(
    prerequisite_id: str | None,
    history: Iterable[GradeRecord],
    current_school_year: str,
) -> bool:
    """Check the prerequisite gate.

    The student needs a grade other than INC or DRP for the prerequisite,
    earned in a school year before the current one.
    """
    if prerequisite_id is None:
        return True

    return any(
        record.subject_id == prerequisite_id
        and record.grade_value not in (GradeValue.INC, GradeValue.DRP)
        and record.school_year < current_school_year
        for record in history
    )


def inc_subject_ids(history: Iterable[GradeRecord]) -> set[str]:
    """Subjects the student currently holds an INC for."""
    return {record.subject_id for record in history if record.grade_value is GradeValue.INC}


def blocked_by_inc(
    subject_id: str,
    prerequisite_id: str | None,
    incomplete_subject_ids: set[str],
) -> bool:
    """A subject is blocked if it is itself INC'd or builds on an INC'd subject."""
    return subject_id in incomplete_subject_ids or (
        prerequisite_id is not None and prerequisite_id in incomplete_subject_ids
    )


def repeat_cooldown_until(subject_id: str, history: Iterable[GradeRecord]) -> datetime | None:
    """Latest repeat-eligible date among failures of this exact subject."""
    dates = [
        ensure_utc(record.repeat_eligible_date)
        for record in history
        if record.subject_id == subject_id
        and record.grade_value is GradeValue.GRADE_5_0
        and record.repeat_eligible_date is not None
    ]
    return max(dates) if dates else None


def in_repeat_cooldown(subject_id: str, history: Iterable[GradeRecord], now: datetime) -> bool:
    """True while a failed subject may not be retaken yet."""
    until = repeat_cooldown_until(subject_id, history)
    return until is not None and ensure_utc(now) < until
