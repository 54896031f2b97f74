# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for the academics engine.

This package contains cross-domain building blocks:
- config: Application configuration and settings
- exceptions: Error taxonomy shared by every domain service
- identity: Caller identity passed into ownership-checked operations
"""
