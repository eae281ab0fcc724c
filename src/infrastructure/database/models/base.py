# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy declarative base and shared column mixins.

All timestamps are stored timezone-aware (TIMESTAMPTZ on PostgreSQL) and
defaulted with utc_now.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.utils.datetime import utc_now

__all__ = ["Base", "TimestampMixin", "UUIDPrimaryKeyMixin", "utc_now"]


class Base(DeclarativeBase):
    """Declarative base for all storefront tables."""

    pass


class UUIDPrimaryKeyMixin:
    """UUID primary key, exposed to Python as a string."""

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )


class TimestampMixin:
    """created_at / updated_at columns maintained by the ORM."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )
