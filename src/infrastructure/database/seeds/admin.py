# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial administrator seed.

Creates the bootstrap admin account when no identity with its email
exists. Safe to run repeatedly.

Usage:
    python -m src.infrastructure.database.seeds.admin
"""

import asyncio
import logging

from src.core.config import Settings, get_settings
from src.domains.auth.entities import Identity
from src.domains.auth.password import PasswordHasher
from src.domains.auth.roles import Role
from src.domains.auth.store import IdentityStore

logger = logging.getLogger(__name__)


async def seed_admin(
    store: IdentityStore,
    password_hasher: PasswordHasher,
    admin_email: str = "admin@zupp.store",
    admin_password: str = "admin123",
) -> Identity | None:
    """Create the admin account if it does not exist yet.

    Args:
        store: Identity store.
        password_hasher: Password hasher.
        admin_email: Admin email address.
        admin_password: Admin password.

    Returns:
        The created identity, or None if the email was already taken.
    """
    existing = await store.find_identity_by_email(admin_email)
    if existing is not None:
        logger.info("Admin user already exists: %s", admin_email)
        return None

    admin = await store.create_identity(
        email=admin_email,
        password_hash=await password_hasher.hash_async(admin_password),
        role=Role.ADMIN,
        first_name="Admin",
        last_name="User",
        is_active=True,
        email_verified=True,
    )

    logger.info("Admin user created: %s (%s)", admin_email, admin.id)
    return admin


async def seed_from_settings(store: IdentityStore, settings: Settings) -> Identity | None:
    """Seed the admin account configured in settings."""
    return await seed_admin(
        store,
        PasswordHasher(rounds=settings.password.bcrypt_rounds),
        admin_email=settings.bootstrap_admin.email,
        admin_password=settings.bootstrap_admin.password.get_secret_value(),
    )


if __name__ == "__main__":
    from src.infrastructure.database.connection import Database
    from src.infrastructure.database.store import SQLAlchemyAuthStore
    from src.utils.logging import setup_logging

    async def main():
        settings = get_settings()
        setup_logging(settings)
        database = Database(settings.database)
        try:
            await database.create_schema()
            await seed_from_settings(SQLAlchemyAuthStore(database.session), settings)
        finally:
            await database.dispose()

    asyncio.run(main())
