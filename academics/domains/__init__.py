# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the academics engine.

Each domain module provides a service that orchestrates reads and
transactional writes against the registrar database session.

Domains:
    academic_term: Active term lookup and explicit term context.
    catalog: Read-only program, subject and section lookups.
    eligibility: Subjects a student may enroll in this term.
    enrollment: Transactional enrollment and cancellation with slot accounting.
    grading: Grade submission, approval and GPA recomputation.
    repeat_eligibility: Cooldown dates for failed subjects.
    inc_resolution: Replacement grades for incomplete (INC) subjects.
"""
