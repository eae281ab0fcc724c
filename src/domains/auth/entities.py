# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain entities.

These are immutable snapshots handed out by the store. The store remains
the single source of truth; nothing here is cached across requests.

Example:
    >>> identity = await store.find_identity_by_email("a@x.com")
    >>> identity.to_public()["email"]
    'a@x.com'
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from src.domains.auth.roles import Role
from src.utils.datetime import format_iso, is_past


@dataclass(frozen=True)
class Identity:
    """A registered subject.

    Attributes:
        id: Identity UUID (string form).
        email: Unique email, matched exactly as stored.
        password_hash: bcrypt hash of the password.
        role: Identity role.
        is_active: Whether the account may authenticate.
        first_name: Optional first name.
        last_name: Optional last name.
        phone: Optional phone number.
        email_verified: Whether the email address was verified.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
        last_login_at: Last successful login.
    """

    id: str
    email: str
    password_hash: str
    role: Role
    is_active: bool = True
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    email_verified: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login_at: datetime | None = None

    def to_public(self) -> dict[str, Any]:
        """Serialize without the password hash.

        Returns:
            JSON-ready dictionary.
        """
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "role": self.role.value,
            "is_active": self.is_active,
            "email_verified": self.email_verified,
            "last_login_at": format_iso(self.last_login_at),
            "created_at": format_iso(self.created_at),
            "updated_at": format_iso(self.updated_at),
        }


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """Identity attached to a request after the session gate succeeds.

    The role comes from the signed token claims, not from the store.
    """

    id: str
    email: str
    role: Role


@dataclass(frozen=True)
class APIKeyRecord:
    """A persistent API key.

    Attributes:
        id: Key UUID (string form).
        name: Human-readable name.
        key: Opaque secret value.
        created_by: Identity id of the creator.
        description: Optional description.
        is_active: Whether the key may be used.
        expires_at: Optional expiry.
        last_used_at: Last successful authentication.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    id: str
    name: str
    key: str
    created_by: str
    description: str | None = None
    is_active: bool = True
    expires_at: datetime | None = None
    last_used_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check whether the expiry (if any) has been reached.

        Args:
            now: Reference time (defaults to the current UTC time).

        Returns:
            True if expires_at is set and not in the future.
        """
        if self.expires_at is None:
            return False
        return is_past(self.expires_at, now)

    def to_public(self) -> dict[str, Any]:
        """Serialize for management responses.

        Returns:
            JSON-ready dictionary.
        """
        data = asdict(self)
        for field in ("expires_at", "last_used_at", "created_at", "updated_at"):
            data[field] = format_iso(data[field])
        return data
