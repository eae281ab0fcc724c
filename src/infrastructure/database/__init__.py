# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for PostgreSQL connections.

This package provides the Database engine handle, the ORM models, and
SQLAlchemyAuthStore, the relational implementation of the
authentication store protocols.

Example:
    from src.infrastructure.database import Database, SQLAlchemyAuthStore

    database = Database(settings.database)
    store = SQLAlchemyAuthStore(database.session)
    identity = await store.find_identity_by_email("a@x.com")
"""

from src.infrastructure.database.connection import Database
from src.infrastructure.database.store import SQLAlchemyAuthStore

__all__ = [
    "Database",
    "SQLAlchemyAuthStore",
]
