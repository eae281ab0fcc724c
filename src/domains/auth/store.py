# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Store contracts consumed by the authentication core.

The core never talks to SQL directly. It reads and writes identities and
API keys through these protocols; the relational implementation lives in
src.infrastructure.database.store and tests use an in-memory one.

Every method is a suspension point: implementations must not block the
event loop.
"""

from datetime import datetime
from typing import Any, Protocol

from src.domains.auth.entities import APIKeyRecord, Identity
from src.domains.auth.roles import Role


class DuplicateRecordError(Exception):
    """Raised by a store when a write violates a uniqueness constraint."""

    pass


class IdentityStore(Protocol):
    """Persistence contract for identities."""

    async def find_identity_by_id(self, identity_id: str) -> Identity | None:
        """Return the identity with this id, or None."""
        ...

    async def find_identity_by_email(self, email: str) -> Identity | None:
        """Return the identity with exactly this email, or None."""
        ...

    async def update_identity_last_login(self, identity_id: str, timestamp: datetime) -> None:
        """Record a successful login."""
        ...

    async def update_identity_password_hash(self, identity_id: str, password_hash: str) -> None:
        """Replace the stored password hash."""
        ...

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
        """Insert a new identity and return it.

        Raises:
            DuplicateRecordError: If the email is already registered.
        """
        ...

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
        """List one page of identities with the total match count.

        search matches first name, last name or email case-insensitively.
        sort_by is one of "first_name", "email" or "created_at".
        """
        ...

    async def set_identity_active(self, identity_id: str, is_active: bool) -> Identity | None:
        """Activate or deactivate an identity; None if it does not exist."""
        ...


class APIKeyStore(Protocol):
    """Persistence contract for API keys."""

    async def find_api_key_by_value(self, value: str) -> APIKeyRecord | None:
        """Return the ACTIVE key with this secret value, or None."""
        ...

    async def update_api_key_last_used(self, key_id: str, timestamp: datetime) -> None:
        """Record a successful authentication (last write wins)."""
        ...

    async def create_api_key(
        self,
        *,
        name: str,
        key: str,
        created_by: str,
        description: str | None = None,
        expires_at: datetime | None = None,
    ) -> APIKeyRecord:
        """Insert a new key and return it."""
        ...

    async def get_api_key(self, key_id: str) -> APIKeyRecord | None:
        """Return the key with this id regardless of state, or None."""
        ...

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
        """List one page of keys with the total match count.

        sort_by is one of "name", "created_at" or "last_used_at".
        """
        ...

    async def update_api_key(self, key_id: str, changes: dict[str, Any]) -> APIKeyRecord | None:
        """Apply field changes; None if the key does not exist."""
        ...

    async def replace_api_key_value(self, key_id: str, value: str) -> APIKeyRecord | None:
        """Swap the secret value in place; None if the key does not exist."""
        ...

    async def delete_api_key(self, key_id: str) -> bool:
        """Hard-delete a key; False if it did not exist."""
        ...


class AuthStore(IdentityStore, APIKeyStore, Protocol):
    """Combined store used by the HTTP layer."""
