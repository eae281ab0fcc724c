# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain services.

This module provides authentication and authorization services:
- Password hashing with bcrypt
- Session token creation and validation
- API key generation, authentication and management
- Account use cases (register, login, profile, refresh)

The domain depends only on the store protocols in
src.domains.auth.store; persistence lives in src.infrastructure.

Exports:
    PasswordHasher: Secure password hashing using bcrypt.
    JWTManager: Session token creation and validation.
    AuthService: Account and session use cases.
    APIKeyService: API key lifecycle and authentication.
    Role: Closed set of identity roles.
"""

from src.domains.auth.api_key_service import APIKeyService
from src.domains.auth.entities import APIKeyRecord, AuthenticatedIdentity, Identity
from src.domains.auth.jwt import JWTManager, TokenClaims, extract_token_from_header
from src.domains.auth.password import PasswordHasher
from src.domains.auth.roles import ADMIN_ONLY, STAFF_ROLES, Role
from src.domains.auth.service import AuthService
from src.domains.auth.store import APIKeyStore, AuthStore, IdentityStore

__all__ = [
    "PasswordHasher",
    "JWTManager",
    "TokenClaims",
    "extract_token_from_header",
    "AuthService",
    "APIKeyService",
    "Role",
    "ADMIN_ONLY",
    "STAFF_ROLES",
    "Identity",
    "AuthenticatedIdentity",
    "APIKeyRecord",
    "IdentityStore",
    "APIKeyStore",
    "AuthStore",
]
