# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registrar engine configuration loaded from the environment.

Database settings read `DB_*` variables and policy settings read
`ENROLLMENT_*` variables. `Settings` nests both, and services that are not
handed a policy explicitly fall back to the cached `get_settings()` instance.

Example:
    >>> from academics.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> settings.enrollment.max_units_per_term
    30
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PASSWORD = "academics_password"


class DatabaseSettings(BaseSettings):
    """Registrar database configuration.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        dsn: Full connection URL; overrides the components when set.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        echo: Echo SQL statements.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "academics"
    password: SecretStr = SecretStr(DEFAULT_DB_PASSWORD)
    host: str = "localhost"
    port: int = 5432
    database: str = "academics"
    dsn: str | None = None
    pool_size: int = 10
    max_overflow: int = 20
    echo: bool = False

    @property
    def url(self) -> str:
        """Async SQLAlchemy URL, `dsn` when set, else built from the parts."""
        if self.dsn:
            return self.dsn
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def is_sqlite(self) -> bool:
        """Check whether the URL points at a SQLite database."""
        return self.url.startswith("sqlite")


class EnrollmentPolicySettings(BaseSettings):
    """Registrar policy knobs for enrollment and grading.

    Attributes:
        max_units_per_term: Hard unit cap for one enrollment.
        major_repeat_cooldown_months: Months before a failed major may be retaken.
        minor_repeat_cooldown_months: Months before a failed minor may be retaken.
    """

    model_config = SettingsConfigDict(
        env_prefix="ENROLLMENT_",
        extra="ignore",
    )

    max_units_per_term: int = Field(default=30, ge=1)
    major_repeat_cooldown_months: int = Field(default=6, ge=0)
    minor_repeat_cooldown_months: int = Field(default=12, ge=0)


class Settings(BaseSettings):
    """Top-level settings for the registrar engine.

    Attributes:
        environment: Deployment environment name.
        debug: Render logs for a console instead of JSON.
        log_level: Threshold for structlog and stdlib loggers.
        db: Database settings.
        enrollment: Enrollment and grading policy.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "test", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    enrollment: EnrollmentPolicySettings = Field(default_factory=EnrollmentPolicySettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Refuse the default database password in production.

        An explicit `dsn` carries its own credentials and is not checked.
        """
        if self.environment == "production" and not self.db.dsn:
            if self.db.password.get_secret_value() == DEFAULT_DB_PASSWORD:
                raise ValueError(
                    "Database password must be changed from default in production. "
                    "Set DB_PASSWORD environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """True for local development."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """True for production deployments."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, reading the environment once."""
    return Settings()


def clear_settings_cache() -> None:
    """Forget cached settings so the next call rereads the environment."""
    get_settings.cache_clear()
