# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the repeat eligibility calculator."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from academics.core.config import EnrollmentPolicySettings
from academics.core.exceptions import GradeNotFoundError, StudentNotFoundError, ValidationError
from academics.domains.repeat_eligibility import (
    InvalidDateError,
    NotAFailureError,
    RepeatEligibilityService,
    compute_repeat_eligible_date,
)
from academics.models.common import GradeValue, SubjectType


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


@pytest.fixture
def repeat_service(mock_db: AsyncMock) -> RepeatEligibilityService:
    """Create repeat eligibility service with mock db."""
    return RepeatEligibilityService(db=mock_db)


def _scalar_result(value: object) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


class TestComputeRepeatEligibleDate:
    """Tests for compute_repeat_eligible_date."""

    def test_major_failure_six_months(self, policy: EnrollmentPolicySettings) -> None:
        """Test a failed major waits six months."""
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)

        result = compute_repeat_eligible_date(GradeValue.GRADE_5_0, SubjectType.MAJOR, now, policy)

        assert result == datetime(2025, 7, 1, tzinfo=timezone.utc)

    def test_minor_failure_twelve_months(self, policy: EnrollmentPolicySettings) -> None:
        """Test a failed minor waits twelve months."""
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)

        result = compute_repeat_eligible_date(GradeValue.GRADE_5_0, SubjectType.MINOR, now, policy)

        assert result == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_inc_starts_cooldown(self, policy: EnrollmentPolicySettings) -> None:
        """Test INC sets a cooldown like a failure."""
        now = datetime(2025, 3, 10, tzinfo=timezone.utc)

        result = compute_repeat_eligible_date(GradeValue.INC, SubjectType.MAJOR, now, policy)

        assert result == datetime(2025, 9, 10, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "grade_value",
        [GradeValue.GRADE_1_0, GradeValue.GRADE_3_0, GradeValue.GRADE_4_0, GradeValue.DRP],
    )
    def test_passing_and_drop_have_no_cooldown(
        self, grade_value: GradeValue, policy: EnrollmentPolicySettings
    ) -> None:
        """Test only failures and INC produce a date."""
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)

        assert compute_repeat_eligible_date(grade_value, SubjectType.MAJOR, now, policy) is None

    def test_custom_policy(self) -> None:
        """Test cooldown lengths follow the configured policy."""
        policy = EnrollmentPolicySettings(major_repeat_cooldown_months=3)
        now = datetime(2025, 1, 31, tzinfo=timezone.utc)

        result = compute_repeat_eligible_date(GradeValue.GRADE_5_0, SubjectType.MAJOR, now, policy)

        assert result == datetime(2025, 4, 30, tzinfo=timezone.utc)

    def test_defaults_to_configured_policy(self) -> None:
        """Test the configured policy is used when none is given."""
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)

        result = compute_repeat_eligible_date(GradeValue.GRADE_5_0, SubjectType.MAJOR, now)

        assert result == datetime(2025, 7, 1, tzinfo=timezone.utc)


class TestRepeatEligibilityServiceCheck:
    """Tests for RepeatEligibilityService.check_eligibility."""

    @pytest.mark.asyncio
    async def test_requires_student_id(self, repeat_service: RepeatEligibilityService) -> None:
        """Test a lookup without student or identity is rejected."""
        with pytest.raises(ValidationError):
            await repeat_service.check_eligibility()

    @pytest.mark.asyncio
    async def test_student_not_found(
        self,
        repeat_service: RepeatEligibilityService,
        mock_db: AsyncMock,
        sample_student_id: str,
    ) -> None:
        """Test an unknown student is reported."""
        mock_db.execute.return_value = _scalar_result(None)

        with pytest.raises(StudentNotFoundError):
            await repeat_service.check_eligibility(sample_student_id)


class TestRepeatEligibilityServiceUpdate:
    """Tests for RepeatEligibilityService.update_eligibility_date."""

    @pytest.mark.asyncio
    async def test_invalid_date_string(
        self, repeat_service: RepeatEligibilityService, mock_db: AsyncMock
    ) -> None:
        """Test a non-ISO date is rejected before any query."""
        with pytest.raises(InvalidDateError):
            await repeat_service.update_eligibility_date("grade-1", "next tuesday")

        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_date(self, repeat_service: RepeatEligibilityService) -> None:
        """Test a missing date is rejected."""
        with pytest.raises(InvalidDateError):
            await repeat_service.update_eligibility_date("grade-1", None)  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_grade_not_found(
        self, repeat_service: RepeatEligibilityService, mock_db: AsyncMock
    ) -> None:
        """Test an unknown grade is reported."""
        mock_db.execute.return_value = _scalar_result(None)

        with pytest.raises(GradeNotFoundError):
            await repeat_service.update_eligibility_date("grade-1", "2025-07-01")

    @pytest.mark.asyncio
    async def test_rejects_non_failing_grade(
        self, repeat_service: RepeatEligibilityService, mock_db: AsyncMock
    ) -> None:
        """Test only grade 5.0 may have its cooldown overridden."""
        grade = MagicMock()
        grade.grade_value = GradeValue.INC
        mock_db.execute.return_value = _scalar_result(grade)

        with pytest.raises(NotAFailureError):
            await repeat_service.update_eligibility_date("grade-1", "2025-07-01")

        mock_db.commit.assert_not_called()
