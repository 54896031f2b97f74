# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer for storage integration.

This package contains:
- Database connections (PostgreSQL via asyncpg, any SQLAlchemy async dialect)
- ORM models for the enrollment and grading entities
"""
