# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the Storefront API.
The process-wide components (settings, store, password hasher, JWT
manager) are built here once and attached to app.state; nothing mutates
them afterwards.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.errors import register_exception_handlers
from src.api.middleware.request_context import RequestContextMiddleware
from src.api.routes import health
from src.api.v1 import build_router
from src.core.config import Settings, get_settings
from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.domains.auth.store import AuthStore
from src.infrastructure.database.connection import Database
from src.infrastructure.database.seeds.admin import seed_from_settings
from src.infrastructure.database.store import SQLAlchemyAuthStore
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the application:
    - Database connection pool and schema (when the app owns the store)
    - Bootstrap admin account

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info(
        "Starting Storefront API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    # =========================================================================
    # Startup
    # =========================================================================

    database: Database | None = app.state.database

    if database is not None and settings.database.auto_create_schema:
        await database.create_schema()
        logger.info("Database schema ensured")

    if settings.bootstrap_admin.enabled:
        try:
            await seed_from_settings(app.state.auth_store, settings)
        except Exception as e:
            logger.warning("Failed to seed admin account: %s", str(e))

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    if database is not None:
        await database.dispose()
        logger.info("Database connection closed")

    logger.info("Shutting down Storefront API")


def create_app(
    settings: Settings | None = None,
    auth_store: AuthStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to get_settings()).
        auth_store: Store to use. When omitted the app owns a SQLAlchemy
            connection pool for its lifetime.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="Storefront API",
        description="E-commerce backend: accounts, API keys and public catalog",
        version="1.0.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Disable automatic redirects from /path to /path/
        # This prevents 307 redirects that lose Authorization headers
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.settings = settings
    if auth_store is None:
        app.state.database = Database(settings.database, echo=settings.debug)
        app.state.auth_store = SQLAlchemyAuthStore(app.state.database.session)
    else:
        app.state.database = None
        app.state.auth_store = auth_store
    app.state.password_hasher = PasswordHasher(rounds=settings.password.bcrypt_rounds)
    app.state.jwt_manager = JWTManager(settings.jwt)

    # =========================================================================
    # Exception handlers
    # =========================================================================
    register_exception_handlers(app)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================
    app.add_middleware(RequestContextMiddleware)

    # CORS middleware (should be last to execute first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(build_router(settings.api.prefix))

    return app
