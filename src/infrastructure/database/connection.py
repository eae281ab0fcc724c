# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Storefront database handle.

One Database per process owns the async engine for the users and
api_keys tables. create_app builds it when no store is injected, hands
its session() to SQLAlchemyAuthStore and disposes of it at shutdown.

Example:
    db = Database(settings.database)
    store = SQLAlchemyAuthStore(db.session)
    await db.create_schema()
    ...
    await db.dispose()
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.core.config.settings import DatabaseSettings
from src.infrastructure.database.models import Base


class Database:
    """Async engine plus a session factory bound to it.

    The engine connects lazily, so building a Database never touches the
    network; the first query or create_schema() does.
    """

    def __init__(self, settings: DatabaseSettings, echo: bool = False) -> None:
        self._engine = create_async_engine(
            settings.url,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_pre_ping=True,
            echo=echo,
        )
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a unit of work: committed on exit, rolled back on error."""
        async with self._sessions() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_schema(self) -> None:
        """Create the users and api_keys tables when they are missing."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """Return whether a trivial query succeeds."""
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return False
        return True

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self._engine.dispose()
