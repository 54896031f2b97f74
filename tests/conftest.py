# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from collections.abc import Callable, Generator
from datetime import datetime, timezone

import pytest

from academics.core.config import EnrollmentPolicySettings, clear_settings_cache
from academics.models.academic_term import TermContext
from academics.models.common import Semester


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Make every test read settings from a clean cache."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def policy() -> EnrollmentPolicySettings:
    """Provide the default enrollment policy (30 units, 6/12 month cooldowns)."""
    return EnrollmentPolicySettings(
        max_units_per_term=30,
        major_repeat_cooldown_months=6,
        minor_repeat_cooldown_months=12,
    )


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires a database)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Helper Fixtures
# =============================================================================


def _fixed_clock(year: int, month: int, day: int, hour: int = 0) -> Callable[[], datetime]:
    instant = datetime(year, month, day, hour, tzinfo=timezone.utc)
    return lambda: instant


@pytest.fixture
def clock_at() -> Callable[..., Callable[[], datetime]]:
    """Provide a builder of clocks frozen at a given UTC date.

    Example:
        service = GradingService(db, clock=clock_at(2025, 1, 1))
    """
    return _fixed_clock


@pytest.fixture
def sample_student_id() -> str:
    """Provide a sample student ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440001"


@pytest.fixture
def sample_professor_id() -> str:
    """Provide a sample professor ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440002"


@pytest.fixture
def sample_term() -> TermContext:
    """Provide an active first-semester term."""
    return TermContext(
        id="550e8400-e29b-41d4-a716-446655440010",
        school_year="2025-2026",
        semester=Semester.FIRST,
        is_active=True,
    )
