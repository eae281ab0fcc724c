# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific area.

Modules:
    auth: Account endpoints (register, login, me, refresh).
    admin: Back-office user endpoints.
    api_keys: API key management endpoints.
    public: API-key authenticated catalog endpoints.
"""

from fastapi import APIRouter

from src.api.v1 import admin, api_keys, auth, public


def build_router(prefix: str = "/api/v1") -> APIRouter:
    """Create the v1 router under a path prefix.

    Args:
        prefix: Path prefix for all v1 routes.

    Returns:
        APIRouter with every v1 router included.
    """
    router = APIRouter(prefix=prefix)

    router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    router.include_router(admin.router, prefix="/admin", tags=["Admin"])
    router.include_router(api_keys.router, prefix="/admin/api-keys", tags=["API Keys"])
    router.include_router(public.router, prefix="/public", tags=["Public"])

    return router


__all__ = ["build_router"]
