# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database seed package.

This package contains seed data for initializing the database:
- Admin seed: bootstrap administrator account
"""

from src.infrastructure.database.seeds.admin import seed_admin, seed_from_settings

__all__ = ["seed_admin", "seed_from_settings"]
