# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get the process-wide components built at startup (settings, store,
  password hasher, JWT manager)
- Get service instances

The components live on app.state; create_app builds them once from
settings and nothing mutates them afterwards. Authentication gates live
in src.api.middleware.

Example:
    @router.post("/login")
    async def login(
        body: LoginRequest,
        auth_service: AuthServiceDep,
    ):
        ...
"""

from typing import Annotated

from fastapi import Depends, Request

from src.core.config import Settings
from src.domains.auth.api_key_service import APIKeyService
from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.domains.auth.service import AuthService
from src.domains.auth.store import AuthStore

# =========================================================================
# Component Dependencies
# =========================================================================


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was built with.

    Args:
        request: HTTP request.

    Returns:
        Settings.
    """
    return request.app.state.settings


def get_auth_store(request: Request) -> AuthStore:
    """Get the identity and API key store.

    Args:
        request: HTTP request.

    Returns:
        AuthStore.
    """
    return request.app.state.auth_store


def get_jwt_manager(request: Request) -> JWTManager:
    """Get JWT manager instance.

    Returns:
        JWTManager.
    """
    return request.app.state.jwt_manager


def get_password_hasher(request: Request) -> PasswordHasher:
    """Get password hasher instance.

    Returns:
        PasswordHasher.
    """
    return request.app.state.password_hasher


# =========================================================================
# Service Dependencies
# =========================================================================


def get_auth_service(
    store: AuthStore = Depends(get_auth_store),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
) -> AuthService:
    """Get AuthService instance.

    Args:
        store: Identity store.
        password_hasher: Password hasher.
        jwt_manager: JWT manager.

    Returns:
        AuthService.
    """
    return AuthService(store, password_hasher, jwt_manager)


def get_api_key_service(
    store: AuthStore = Depends(get_auth_store),
    settings: Settings = Depends(get_app_settings),
) -> APIKeyService:
    """Get APIKeyService instance.

    Args:
        store: API key store.
        settings: Application settings.

    Returns:
        APIKeyService.
    """
    return APIKeyService(store, prefix=settings.api_key.prefix)


# =========================================================================
# Type Aliases for Cleaner Endpoint Signatures
# =========================================================================

AppSettings = Annotated[Settings, Depends(get_app_settings)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
APIKeyServiceDep = Annotated[APIKeyService, Depends(get_api_key_service)]
