# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Catalog domain package.

Read-only program, subject and section lookups plus DTO converters.
"""

from academics.domains.catalog.service import (
    CatalogService,
    ProgramNotFoundError,
    SectionNotFoundError,
    SelfPrerequisiteError,
    SubjectNotFoundError,
    to_section_summary,
    to_subject_offering,
    to_subject_summary,
)

__all__ = [
    "CatalogService",
    "ProgramNotFoundError",
    "SectionNotFoundError",
    "SelfPrerequisiteError",
    "SubjectNotFoundError",
    "to_section_summary",
    "to_subject_offering",
    "to_subject_summary",
]
