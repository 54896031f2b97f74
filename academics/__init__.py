"""Academic enrollment and grade lifecycle engine.

Subject eligibility, transactional section enrollment, grade submission and
approval, repeat eligibility and INC resolution for a college registrar.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
