# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database models and the relational store.

The store is exercised against a mocked AsyncSession, so no database is
needed.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from src.core.config import DatabaseSettings
from src.domains.auth.roles import Role
from src.domains.auth.store import DuplicateRecordError
from src.infrastructure.database.connection import Database
from src.infrastructure.database.models import APIKey, Base, TimestampMixin, User
from src.infrastructure.database.store import SQLAlchemyAuthStore

USER_ID = "6b1f9a52-2f1e-4c0e-9a53-7c1f4f8d2a10"
KEY_ID = "0d8e4c7a-51b2-4f7e-8c3d-2a9b6e1f0c44"


@pytest.fixture
def session() -> MagicMock:
    """Create a mocked async session."""
    mock = MagicMock()
    mock.get = AsyncMock(return_value=None)
    mock.execute = AsyncMock()
    mock.flush = AsyncMock()
    mock.scalar = AsyncMock(return_value=0)
    return mock


@pytest.fixture
def db_store(session: MagicMock) -> SQLAlchemyAuthStore:
    """Create a store whose sessions are the mock."""

    @asynccontextmanager
    async def factory():
        yield session

    return SQLAlchemyAuthStore(session_factory=factory)


@pytest.fixture
def database() -> Database:
    """Create a database handle; its engine never connects in these tests."""
    return Database(DatabaseSettings())


class TestModels:
    """Tests for table definitions."""

    def test_base_inherits_declarative_base(self) -> None:
        """Verify Base is a declarative base."""
        assert hasattr(Base, "metadata")
        assert hasattr(Base, "registry")

    def test_timestamp_mixin_fields(self) -> None:
        """Verify TimestampMixin declares both timestamps."""
        assert hasattr(TimestampMixin, "created_at")
        assert hasattr(TimestampMixin, "updated_at")

    def test_tables_registered(self) -> None:
        """Verify both tables are in the metadata."""
        assert set(Base.metadata.tables) >= {"users", "api_keys"}

    def test_user_columns(self) -> None:
        """Verify the user table layout."""
        columns = User.__table__.columns

        assert columns["email"].unique is True
        assert "password" in columns
        assert columns["role"].type.enums == ["customer", "staff", "admin"]

    def test_api_key_columns(self) -> None:
        """Verify the api key table layout."""
        columns = APIKey.__table__.columns

        assert columns["key"].unique is True
        assert columns["expires_at"].nullable is True
        assert {fk.column.table.name for fk in columns["created_by"].foreign_keys} == {"users"}


class TestDatabase:
    """Tests for the engine and session handle."""

    @staticmethod
    def _open_with(database: Database, session: MagicMock) -> None:
        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=session)
        context.__aexit__ = AsyncMock(return_value=False)
        database._sessions = MagicMock(return_value=context)

    @pytest.mark.asyncio
    async def test_session_commits_on_success(self, database: Database) -> None:
        """Test that a clean unit of work is committed."""
        session = MagicMock(commit=AsyncMock(), rollback=AsyncMock())
        self._open_with(database, session)

        async with database.session() as opened:
            assert opened is session

        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_session_rolls_back_on_error(self, database: Database) -> None:
        """Test that a failing unit of work is rolled back and re-raised."""
        session = MagicMock(commit=AsyncMock(), rollback=AsyncMock())
        self._open_with(database, session)

        with pytest.raises(RuntimeError):
            async with database.session():
                raise RuntimeError("boom")

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ping_unreachable(self, database: Database) -> None:
        """Test that connection errors make ping return False."""
        database._engine = MagicMock()
        database._engine.connect.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))

        assert await database.ping() is False


class TestIdentityOperations:
    """Tests for identity persistence."""

    @pytest.mark.asyncio
    async def test_find_identity_by_id_maps_row(
        self,
        db_store: SQLAlchemyAuthStore,
        session: MagicMock,
    ) -> None:
        """Test that rows become frozen identities with UTC timestamps."""
        session.get.return_value = User(
            id=USER_ID,
            email="a@x.com",
            password_hash="$2b$10$hash",
            role=Role.STAFF,
            is_active=True,
            email_verified=False,
            created_at=datetime(2025, 1, 1, 9, 30),
        )

        identity = await db_store.find_identity_by_id(USER_ID)

        assert identity.id == USER_ID
        assert identity.role == Role.STAFF
        assert identity.password_hash == "$2b$10$hash"
        assert identity.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_find_identity_by_id_missing(
        self,
        db_store: SQLAlchemyAuthStore,
    ) -> None:
        """Test that a missing row is None."""
        assert await db_store.find_identity_by_id(USER_ID) is None

    @pytest.mark.asyncio
    async def test_create_identity_duplicate(
        self,
        db_store: SQLAlchemyAuthStore,
        session: MagicMock,
    ) -> None:
        """Test that a unique violation surfaces as DuplicateRecordError."""
        session.flush.side_effect = IntegrityError("INSERT INTO users", {}, Exception("duplicate key"))

        with pytest.raises(DuplicateRecordError):
            await db_store.create_identity(
                email="a@x.com",
                password_hash="$2b$10$hash",
                role=Role.CUSTOMER,
            )

    @pytest.mark.asyncio
    async def test_set_identity_active_missing(
        self,
        db_store: SQLAlchemyAuthStore,
    ) -> None:
        """Test that an unknown id is None."""
        assert await db_store.set_identity_active(USER_ID, False) is None

    @pytest.mark.asyncio
    async def test_update_identity_password_hash(
        self,
        db_store: SQLAlchemyAuthStore,
        session: MagicMock,
    ) -> None:
        """Test that the new hash is written with one UPDATE."""
        await db_store.update_identity_password_hash(USER_ID, "$2b$10$newhash")

        session.execute.assert_awaited_once()
        sql = str(session.execute.await_args.args[0])
        assert sql.startswith("UPDATE users SET")
        assert "password=" in sql


class TestAPIKeyOperations:
    """Tests for API key persistence."""

    @pytest.mark.asyncio
    async def test_update_api_key_applies_changes(
        self,
        db_store: SQLAlchemyAuthStore,
        session: MagicMock,
    ) -> None:
        """Test that only the given fields change."""
        session.get.return_value = APIKey(
            id=KEY_ID,
            name="Old",
            key="zk_value",
            created_by=USER_ID,
            is_active=True,
        )

        record = await db_store.update_api_key(KEY_ID, {"name": "New", "expires_at": None})

        assert record.name == "New"
        assert record.key == "zk_value"
        assert record.expires_at is None
        assert record.updated_at is not None

    @pytest.mark.asyncio
    async def test_replace_api_key_value(
        self,
        db_store: SQLAlchemyAuthStore,
        session: MagicMock,
    ) -> None:
        """Test in-place value replacement."""
        session.get.return_value = APIKey(
            id=KEY_ID,
            name="Widget",
            key="zk_old",
            created_by=USER_ID,
            is_active=True,
        )

        record = await db_store.replace_api_key_value(KEY_ID, "zk_new")

        assert record.id == KEY_ID
        assert record.key == "zk_new"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("rowcount", "expected"), [(1, True), (0, False)])
    async def test_delete_api_key(
        self,
        db_store: SQLAlchemyAuthStore,
        session: MagicMock,
        rowcount: int,
        expected: bool,
    ) -> None:
        """Test that deletion reports whether a row was removed."""
        session.execute.return_value = MagicMock(rowcount=rowcount)

        assert await db_store.delete_api_key(KEY_ID) is expected

    @pytest.mark.asyncio
    async def test_find_api_key_by_value_missing(
        self,
        db_store: SQLAlchemyAuthStore,
        session: MagicMock,
    ) -> None:
        """Test that no active match is None."""
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        session.execute.return_value = result

        assert await db_store.find_api_key_by_value("zk_unknown") is None
