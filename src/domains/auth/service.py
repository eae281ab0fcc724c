# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication service for account and session use cases.

This module provides the main AuthService that orchestrates:
- Customer registration
- Login with password verification
- Profile lookup and token refresh
- Back-office user listing and activation

Example:
    >>> auth_service = AuthService(store, password_hasher, jwt_manager)
    >>> result = await auth_service.login("a@x.com", "pw12345678")
    >>> result.token.access_token
    'eyJhbGciOi...'
"""

import logging
from typing import NamedTuple

from src.domains.auth.entities import Identity
from src.domains.auth.jwt import JWTManager, TokenResponse
from src.domains.auth.password import PasswordHasher
from src.domains.auth.roles import Role
from src.domains.auth.store import DuplicateRecordError, IdentityStore
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Base exception for authentication errors."""

    pass


class EmailAlreadyRegisteredError(AuthenticationError):
    """Raised when registering an email that already exists."""

    pass


class InvalidCredentialsError(AuthenticationError):
    """Raised when email or password does not match."""

    pass


class AccountInactiveError(AuthenticationError):
    """Raised when account is not active."""

    pass


class IdentityNotFoundError(AuthenticationError):
    """Raised when the identity no longer exists."""

    pass


class AuthResult(NamedTuple):
    """Identity plus a freshly issued token."""

    identity: Identity
    token: TokenResponse


class IdentityPage(NamedTuple):
    """One page of identities."""

    items: list[Identity]
    total: int


class AuthService:
    """Authentication service for account and session use cases.

    Password hashing runs off the event loop; every use case reads the
    identity from the store rather than trusting cached state.

    Attributes:
        _store: Identity persistence.
        _password_hasher: Credential hasher.
        _jwt_manager: Session token manager.

    Example:
        >>> auth_service = AuthService(store, hasher, jwt_manager)
        >>> result = await auth_service.register("a@x.com", "pw12345678")
        >>> result.identity.role
        <Role.CUSTOMER: 'customer'>
    """

    SORTABLE_FIELDS = frozenset({"first_name", "email", "created_at"})

    def __init__(
        self,
        store: IdentityStore,
        password_hasher: PasswordHasher,
        jwt_manager: JWTManager,
    ) -> None:
        """Initialize the authentication service.

        Args:
            store: Identity store.
            password_hasher: Password hasher.
            jwt_manager: JWT token manager.
        """
        self._store = store
        self._password_hasher = password_hasher
        self._jwt_manager = jwt_manager

    async def register(
        self,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
        phone: str | None = None,
    ) -> AuthResult:
        """Register a new customer account.

        Args:
            email: Account email, stored exactly as given.
            password: Plain text password.
            first_name: Optional first name.
            last_name: Optional last name.
            phone: Optional phone number.

        Returns:
            AuthResult with the new identity and its token.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken.
            PasswordTooLongError: If the password exceeds bcrypt's limit.
        """
        if await self._store.find_identity_by_email(email) is not None:
            raise EmailAlreadyRegisteredError("User already exists with this email")

        password_hash = await self._password_hasher.hash_async(password)

        try:
            identity = await self._store.create_identity(
                email=email,
                password_hash=password_hash,
                role=Role.CUSTOMER,
                first_name=first_name,
                last_name=last_name,
                phone=phone,
            )
        except DuplicateRecordError:
            # Lost a race with a concurrent registration of the same email
            raise EmailAlreadyRegisteredError("User already exists with this email")

        logger.info("Identity registered: %s", identity.id)

        return AuthResult(
            identity=identity,
            token=self._jwt_manager.create_token_response(identity),
        )

    async def login(self, email: str, password: str) -> AuthResult:
        """Authenticate with email and password.

        The password is checked before the active flag so the deactivation
        message is only shown to callers who know the password.

        Args:
            email: Account email.
            password: Plain text password.

        Returns:
            AuthResult with the identity and a fresh token.

        Raises:
            InvalidCredentialsError: If the email is unknown or the password is wrong.
            AccountInactiveError: If the account is deactivated.
        """
        identity = await self._store.find_identity_by_email(email)
        if identity is None:
            # Same bcrypt cost as a wrong password
            await self._password_hasher.verify_async(password, self._password_hasher.dummy_hash)
            logger.info("Login failed: unknown email")
            raise InvalidCredentialsError("Invalid credentials")

        if not await self._password_hasher.verify_async(password, identity.password_hash):
            logger.info("Login failed: bad password for %s", identity.id)
            raise InvalidCredentialsError("Invalid credentials")

        if not identity.is_active:
            logger.info("Login refused: identity %s is inactive", identity.id)
            raise AccountInactiveError("Account is deactivated")

        if self._password_hasher.needs_rehash(identity.password_hash):
            password_hash = await self._password_hasher.hash_async(password)
            await self._store.update_identity_password_hash(identity.id, password_hash)
            logger.info("Password hash upgraded for %s", identity.id)

        await self._store.update_identity_last_login(identity.id, utc_now())

        logger.info("Login succeeded: %s", identity.id)

        return AuthResult(
            identity=identity,
            token=self._jwt_manager.create_token_response(identity),
        )

    async def get_profile(self, identity_id: str) -> Identity:
        """Load the current identity.

        Raises:
            IdentityNotFoundError: If the identity no longer exists.
        """
        identity = await self._store.find_identity_by_id(identity_id)
        if identity is None:
            raise IdentityNotFoundError("User not found")
        return identity

    async def refresh(self, identity_id: str) -> TokenResponse:
        """Issue a fresh token from the identity's current store state.

        Unlike the session gate, this picks up role changes.

        Raises:
            IdentityNotFoundError: If the identity is missing or inactive.
        """
        identity = await self._store.find_identity_by_id(identity_id)
        if identity is None or not identity.is_active:
            raise IdentityNotFoundError("User not found or inactive")

        return self._jwt_manager.create_token_response(identity)

    async def list_identities(
        self,
        role: Role | None = None,
        search: str | None = None,
        sort_by: str = "created_at",
        descending: bool = True,
        page: int = 1,
        limit: int = 20,
    ) -> IdentityPage:
        """List identities for the back office.

        Raises:
            ValueError: If sort_by is not a sortable field.
        """
        if sort_by not in self.SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort by {sort_by}")

        items, total = await self._store.list_identities(
            role=role,
            search=search,
            sort_by=sort_by,
            descending=descending,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return IdentityPage(items=items, total=total)

    async def set_identity_active(self, identity_id: str, is_active: bool) -> Identity:
        """Activate or deactivate an identity.

        Deactivation takes effect on the identity's next request because
        the session gate re-reads the active flag every time.

        Raises:
            IdentityNotFoundError: If the identity does not exist.
        """
        identity = await self._store.set_identity_active(identity_id, is_active)
        if identity is None:
            raise IdentityNotFoundError("User not found")

        logger.info("Identity %s active=%s", identity_id, is_active)
        return identity
