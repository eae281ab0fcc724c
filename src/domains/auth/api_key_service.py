# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API Key service for external catalog authentication.

This module provides the APIKeyService for managing API keys:
- Generate opaque key values
- Authenticate presented keys (active and not expired)
- Record last-use time
- Create, update, regenerate and delete keys

Example:
    >>> api_key_service = APIKeyService(store)
    >>> record = await api_key_service.create_key(
    ...     name="Storefront widget",
    ...     created_by=admin.id,
    ... )
    >>> authenticated = await api_key_service.authenticate(record.key)
    >>> await api_key_service.touch(authenticated)
"""

import logging
import secrets
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, NamedTuple

from src.domains.auth.entities import APIKeyRecord
from src.domains.auth.store import APIKeyStore
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class APIKeyError(Exception):
    """Base exception for API key operations."""

    pass


class APIKeyMissingError(APIKeyError):
    """Raised when no API key was presented."""

    pass


class InvalidAPIKeyError(APIKeyError):
    """Raised when API key is unknown or not active."""

    pass


class APIKeyExpiredError(APIKeyError):
    """Raised when an active API key is past its expiry."""

    pass


class APIKeyNotFoundError(APIKeyError):
    """Raised when a managed key id does not exist."""

    pass


class APIKeyPage(NamedTuple):
    """One page of API keys.

    Attributes:
        items: Keys on this page.
        total: Number of keys matching the filters.
    """

    items: list[APIKeyRecord]
    total: int


class APIKeyService:
    """Service for generating, authenticating and managing API keys.

    Keys are bearer secrets: possession alone grants access to the public
    catalog routes. The store is the single source of truth; every
    authentication re-reads it.

    Attributes:
        _store: API key persistence.
        _prefix: Recognizable prefix of generated values.
        _clock: Source of the current time.

    Example:
        >>> service = APIKeyService(store)
        >>> value = service.generate_key()
        >>> value.startswith("zk_")
        True
    """

    DEFAULT_PREFIX = "zk_"
    KEY_BYTES = 32
    UPDATABLE_FIELDS = frozenset({"name", "description", "is_active", "expires_at"})
    SORTABLE_FIELDS = frozenset({"name", "created_at", "last_used_at"})

    def __init__(
        self,
        store: APIKeyStore,
        prefix: str = DEFAULT_PREFIX,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the API Key service.

        Args:
            store: API key store.
            prefix: Prefix prepended to generated key values.
            clock: Callable returning the current UTC time.
        """
        self._store = store
        self._prefix = prefix
        self._clock = clock

    def generate_key(self) -> str:
        """Generate a new key value.

        Returns:
            Prefix followed by 64 hex characters (256 random bits).
        """
        return f"{self._prefix}{secrets.token_hex(self.KEY_BYTES)}"

    async def authenticate(self, presented_key: str | None) -> APIKeyRecord:
        """Validate a presented key value.

        The store lookup is restricted to active keys; expiry is then
        checked independently, so both conditions must hold.

        Args:
            presented_key: Key value taken from the request.

        Returns:
            The matching APIKeyRecord.

        Raises:
            APIKeyMissingError: If no key was presented.
            InvalidAPIKeyError: If no active key has this value.
            APIKeyExpiredError: If the key's expiry has been reached.
        """
        if not presented_key:
            raise APIKeyMissingError("API key required")

        record = await self._store.find_api_key_by_value(presented_key)
        if record is None:
            raise InvalidAPIKeyError("Invalid API key")

        if record.is_expired(self._clock()):
            logger.info("Expired API key presented: %s", record.id)
            raise APIKeyExpiredError("API key has expired")

        return record

    async def touch(self, record: APIKeyRecord) -> None:
        """Record the current time as the key's last use.

        Concurrent touches of the same key are last-write-wins.

        Args:
            record: Key that just authenticated.
        """
        await self._store.update_api_key_last_used(record.id, self._clock())

    async def create_key(
        self,
        name: str,
        created_by: str,
        description: str | None = None,
        expires_at: datetime | None = None,
    ) -> APIKeyRecord:
        """Create a new active key.

        Args:
            name: Descriptive name.
            created_by: Identity id of the staff member creating it.
            description: Optional description.
            expires_at: Optional expiry.

        Returns:
            The created record, including its value.
        """
        record = await self._store.create_api_key(
            name=name,
            key=self.generate_key(),
            created_by=created_by,
            description=description,
            expires_at=ensure_utc(expires_at),
        )

        logger.info("API key created: %s (%s) by %s", record.id, name, created_by)
        return record

    async def get_key(self, key_id: str) -> APIKeyRecord:
        """Fetch a key by id.

        Raises:
            APIKeyNotFoundError: If the key does not exist.
        """
        record = await self._store.get_api_key(key_id)
        if record is None:
            raise APIKeyNotFoundError("API key not found")
        return record

    async def list_keys(
        self,
        search: str | None = None,
        is_active: bool | None = None,
        sort_by: str = "created_at",
        descending: bool = True,
        page: int = 1,
        limit: int = 20,
    ) -> APIKeyPage:
        """List keys with filtering, sorting and pagination.

        Args:
            search: Substring match on the key name.
            is_active: Filter on the active flag.
            sort_by: One of name, created_at, last_used_at.
            descending: Sort direction.
            page: 1-based page number.
            limit: Page size.

        Returns:
            APIKeyPage with the keys and the total match count.

        Raises:
            ValueError: If sort_by is not a sortable field.
        """
        if sort_by not in self.SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort by {sort_by}")

        items, total = await self._store.list_api_keys(
            search=search,
            is_active=is_active,
            sort_by=sort_by,
            descending=descending,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return APIKeyPage(items=items, total=total)

    async def update_key(self, key_id: str, changes: Mapping[str, Any]) -> APIKeyRecord:
        """Update mutable key fields.

        The key value itself is never changed here; use regenerate_key.

        Args:
            key_id: Key identifier.
            changes: Field values to set. An explicit None expiry clears it.

        Returns:
            The updated record.

        Raises:
            ValueError: If changes names a field that cannot be updated.
            APIKeyNotFoundError: If the key does not exist.
        """
        unknown = set(changes) - self.UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        values = dict(changes)
        if "expires_at" in values:
            values["expires_at"] = ensure_utc(values["expires_at"])

        record = await self._store.update_api_key(key_id, values)
        if record is None:
            raise APIKeyNotFoundError("API key not found")

        logger.info("API key updated: %s (%s)", key_id, ", ".join(sorted(values)))
        return record

    async def regenerate_key(self, key_id: str) -> APIKeyRecord:
        """Replace a key's value in place.

        The old value stops authenticating immediately. Expiry and the
        active flag are left untouched.

        Raises:
            APIKeyNotFoundError: If the key does not exist.
        """
        record = await self._store.replace_api_key_value(key_id, self.generate_key())
        if record is None:
            raise APIKeyNotFoundError("API key not found")

        logger.info("API key regenerated: %s", key_id)
        return record

    async def delete_key(self, key_id: str) -> None:
        """Hard-delete a key.

        Raises:
            APIKeyNotFoundError: If the key does not exist.
        """
        if not await self._store.delete_api_key(key_id):
            raise APIKeyNotFoundError("API key not found")

        logger.info("API key deleted: %s", key_id)
