# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (services against an in-memory store)
- Integration tests (the FastAPI app through TestClient)
"""

from collections.abc import Generator
from dataclasses import replace
from datetime import datetime
from typing import Any
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import SecretStr

from src.api.app import create_app
from src.core.config import (
    BootstrapAdminSettings,
    JWTSettings,
    PasswordSettings,
    Settings,
)
from src.domains.auth.entities import APIKeyRecord, Identity
from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.domains.auth.roles import Role
from src.domains.auth.store import DuplicateRecordError
from src.utils.datetime import utc_now

TEST_JWT_SECRET = "test-secret-key-for-jwt-testing"
TEST_BCRYPT_ROUNDS = 4


# =============================================================================
# In-memory store
# =============================================================================


class InMemoryAuthStore:
    """Dictionary-backed implementation of the AuthStore protocol.

    Set ``failure`` to an exception to make every call raise it, which
    simulates the database being unreachable.
    """

    def __init__(self) -> None:
        self.identities: dict[str, Identity] = {}
        self.api_keys: dict[str, APIKeyRecord] = {}
        self.failure: Exception | None = None
        self.calls: list[str] = []

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if self.failure is not None:
            raise self.failure

    # Synchronous seeding helpers for tests

    def add_identity(
        self,
        email: str = "user@example.com",
        password_hash: str = "not-a-real-hash",
        role: Role = Role.CUSTOMER,
        is_active: bool = True,
        **extra: Any,
    ) -> Identity:
        now = utc_now()
        identity = Identity(
            id=str(uuid4()),
            email=email,
            password_hash=password_hash,
            role=role,
            is_active=is_active,
            created_at=now,
            updated_at=now,
            **extra,
        )
        self.identities[identity.id] = identity
        return identity

    def add_api_key(
        self,
        name: str = "Test key",
        key: str | None = None,
        created_by: str | None = None,
        is_active: bool = True,
        expires_at: datetime | None = None,
        **extra: Any,
    ) -> APIKeyRecord:
        now = utc_now()
        record = APIKeyRecord(
            id=str(uuid4()),
            name=name,
            key=key or f"zk_{uuid4().hex}{uuid4().hex}",
            created_by=created_by or str(uuid4()),
            is_active=is_active,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
            **extra,
        )
        self.api_keys[record.id] = record
        return record

    # IdentityStore

    async def find_identity_by_id(self, identity_id: str) -> Identity | None:
        self._record("find_identity_by_id")
        return self.identities.get(identity_id)

    async def find_identity_by_email(self, email: str) -> Identity | None:
        self._record("find_identity_by_email")
        return next((i for i in self.identities.values() if i.email == email), None)

    async def update_identity_last_login(self, identity_id: str, timestamp: datetime) -> None:
        self._record("update_identity_last_login")
        identity = self.identities.get(identity_id)
        if identity is not None:
            self.identities[identity_id] = replace(identity, last_login_at=timestamp)

    async def update_identity_password_hash(self, identity_id: str, password_hash: str) -> None:
        self._record("update_identity_password_hash")
        identity = self.identities.get(identity_id)
        if identity is not None:
            self.identities[identity_id] = replace(identity, password_hash=password_hash)

    async def create_identity(
        self,
        *,
        email: str,
        password_hash: str,
        role: Role,
        first_name: str | None = None,
        last_name: str | None = None,
        phone: str | None = None,
        is_active: bool = True,
        email_verified: bool = False,
    ) -> Identity:
        self._record("create_identity")
        if any(i.email == email for i in self.identities.values()):
            raise DuplicateRecordError("Email already registered")
        return self.add_identity(
            email=email,
            password_hash=password_hash,
            role=role,
            is_active=is_active,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            email_verified=email_verified,
        )

    async def list_identities(
        self,
        *,
        role: Role | None = None,
        search: str | None = None,
        sort_by: str = "created_at",
        descending: bool = True,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Identity], int]:
        self._record("list_identities")
        items = list(self.identities.values())
        if role is not None:
            items = [i for i in items if i.role == role]
        if search:
            needle = search.lower()
            items = [
                i
                for i in items
                if any(needle in (v or "").lower() for v in (i.first_name, i.last_name, i.email))
            ]
        items.sort(key=lambda i: getattr(i, sort_by) or "", reverse=descending)
        return items[offset : offset + limit], len(items)

    async def set_identity_active(self, identity_id: str, is_active: bool) -> Identity | None:
        self._record("set_identity_active")
        identity = self.identities.get(identity_id)
        if identity is None:
            return None
        updated = replace(identity, is_active=is_active, updated_at=utc_now())
        self.identities[identity_id] = updated
        return updated

    # APIKeyStore

    async def find_api_key_by_value(self, value: str) -> APIKeyRecord | None:
        self._record("find_api_key_by_value")
        return next(
            (k for k in self.api_keys.values() if k.key == value and k.is_active),
            None,
        )

    async def update_api_key_last_used(self, key_id: str, timestamp: datetime) -> None:
        self._record("update_api_key_last_used")
        record = self.api_keys.get(key_id)
        if record is not None:
            self.api_keys[key_id] = replace(record, last_used_at=timestamp)

    async def create_api_key(
        self,
        *,
        name: str,
        key: str,
        created_by: str,
        description: str | None = None,
        expires_at: datetime | None = None,
    ) -> APIKeyRecord:
        self._record("create_api_key")
        return self.add_api_key(
            name=name,
            key=key,
            created_by=created_by,
            description=description,
            expires_at=expires_at,
        )

    async def get_api_key(self, key_id: str) -> APIKeyRecord | None:
        self._record("get_api_key")
        return self.api_keys.get(key_id)

    async def list_api_keys(
        self,
        *,
        search: str | None = None,
        is_active: bool | None = None,
        sort_by: str = "created_at",
        descending: bool = True,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[APIKeyRecord], int]:
        self._record("list_api_keys")
        items = list(self.api_keys.values())
        if search:
            items = [k for k in items if search.lower() in k.name.lower()]
        if is_active is not None:
            items = [k for k in items if k.is_active is is_active]
        items.sort(key=lambda k: (getattr(k, sort_by) is not None, getattr(k, sort_by) or 0), reverse=descending)
        return items[offset : offset + limit], len(items)

    async def update_api_key(self, key_id: str, changes: dict[str, Any]) -> APIKeyRecord | None:
        self._record("update_api_key")
        record = self.api_keys.get(key_id)
        if record is None:
            return None
        updated = replace(record, **changes, updated_at=utc_now())
        self.api_keys[key_id] = updated
        return updated

    async def replace_api_key_value(self, key_id: str, value: str) -> APIKeyRecord | None:
        self._record("replace_api_key_value")
        record = self.api_keys.get(key_id)
        if record is None:
            return None
        updated = replace(record, key=value, updated_at=utc_now())
        self.api_keys[key_id] = updated
        return updated

    async def delete_api_key(self, key_id: str) -> bool:
        self._record("delete_api_key")
        return self.api_keys.pop(key_id, None) is not None


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr(TEST_JWT_SECRET)
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 7 * 24 * 60
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


@pytest.fixture
def password_hasher() -> PasswordHasher:
    """Create a fast password hasher."""
    return PasswordHasher(rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def store() -> InMemoryAuthStore:
    """Create an empty in-memory store."""
    return InMemoryAuthStore()


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Provide application settings for tests."""
    return Settings(
        environment="test",
        debug=False,
        log_level="WARNING",
        jwt=JWTSettings(secret_key=SecretStr(TEST_JWT_SECRET)),
        password=PasswordSettings(bcrypt_rounds=TEST_BCRYPT_ROUNDS),
        bootstrap_admin=BootstrapAdminSettings(enabled=False),
    )


@pytest.fixture
def app(settings: Settings, store: InMemoryAuthStore) -> FastAPI:
    """Create the application wired to the in-memory store."""
    return create_app(settings=settings, auth_store=store)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Create a test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def app_jwt_manager(app: FastAPI) -> JWTManager:
    """The JWT manager the application signs tokens with."""
    return app.state.jwt_manager


@pytest.fixture
def bearer(app_jwt_manager: JWTManager):
    """Build an Authorization header for an identity."""

    def _bearer(identity: Identity) -> dict[str, str]:
        return {"Authorization": f"Bearer {app_jwt_manager.issue_token(identity)}"}

    return _bearer
