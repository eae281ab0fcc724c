# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Relational implementation of the authentication store.

SQLAlchemyAuthStore satisfies src.domains.auth.store.AuthStore. Each
operation runs in its own short session obtained from the session
factory, and rows are converted to frozen domain entities before they
leave this module, so no ORM object outlives its session.

Example:
    >>> store = SQLAlchemyAuthStore(database.session)
    >>> identity = await store.find_identity_by_email("a@x.com")
"""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Any

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.auth.entities import APIKeyRecord, Identity
from src.domains.auth.roles import Role
from src.domains.auth.store import DuplicateRecordError
from src.infrastructure.database.models import APIKey, User
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]

_USER_SORT_COLUMNS = {
    "first_name": User.first_name,
    "email": User.email,
    "created_at": User.created_at,
}

_API_KEY_SORT_COLUMNS = {
    "name": APIKey.name,
    "created_at": APIKey.created_at,
    "last_used_at": APIKey.last_used_at,
}


def _to_identity(user: User) -> Identity:
    return Identity(
        id=str(user.id),
        email=user.email,
        password_hash=user.password_hash,
        role=Role(user.role),
        is_active=user.is_active,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        email_verified=user.email_verified,
        created_at=ensure_utc(user.created_at),
        updated_at=ensure_utc(user.updated_at),
        last_login_at=ensure_utc(user.last_login_at),
    )


def _to_record(api_key: APIKey) -> APIKeyRecord:
    return APIKeyRecord(
        id=str(api_key.id),
        name=api_key.name,
        key=api_key.key,
        created_by=str(api_key.created_by),
        description=api_key.description,
        is_active=api_key.is_active,
        expires_at=ensure_utc(api_key.expires_at),
        last_used_at=ensure_utc(api_key.last_used_at),
        created_at=ensure_utc(api_key.created_at),
        updated_at=ensure_utc(api_key.updated_at),
    )


def _paginate(stmt: Select, column: Any, descending: bool, limit: int, offset: int) -> Select:
    order = column.desc() if descending else column.asc()
    return stmt.order_by(order).limit(limit).offset(offset)


class SQLAlchemyAuthStore:
    """Identity and API key store backed by SQLAlchemy async sessions.

    Attributes:
        _session_factory: Callable returning an async session context.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        """Initialize the store.

        Args:
            session_factory: Session context factory (commit on success,
                rollback on error).
        """
        self._session_factory = session_factory

    # Identities

    async def find_identity_by_id(self, identity_id: str) -> Identity | None:
        async with self._session_factory() as session:
            user = await session.get(User, identity_id)
            return _to_identity(user) if user else None

    async def find_identity_by_email(self, email: str) -> Identity | None:
        async with self._session_factory() as session:
            result = await session.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
            return _to_identity(user) if user else None

    async def update_identity_last_login(self, identity_id: str, timestamp: datetime) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(User).where(User.id == identity_id).values(last_login_at=timestamp)
            )

    async def update_identity_password_hash(self, identity_id: str, password_hash: str) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(User)
                .where(User.id == identity_id)
                .values(password_hash=password_hash, updated_at=utc_now())
            )

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
        async with self._session_factory() as session:
            user = User(
                email=email,
                password_hash=password_hash,
                role=role,
                first_name=first_name,
                last_name=last_name,
                phone=phone,
                is_active=is_active,
                email_verified=email_verified,
            )
            session.add(user)
            try:
                await session.flush()
            except IntegrityError as e:
                logger.info("Duplicate identity email rejected by database")
                raise DuplicateRecordError("Email already registered") from e
            return _to_identity(user)

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
        conditions = []
        if role is not None:
            conditions.append(User.role == role)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                    User.email.ilike(pattern),
                )
            )

        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(User).where(*conditions)
            )
            stmt = _paginate(
                select(User).where(*conditions),
                _USER_SORT_COLUMNS[sort_by],
                descending,
                limit,
                offset,
            )
            result = await session.execute(stmt)
            return [_to_identity(u) for u in result.scalars().all()], total or 0

    async def set_identity_active(self, identity_id: str, is_active: bool) -> Identity | None:
        async with self._session_factory() as session:
            user = await session.get(User, identity_id)
            if user is None:
                return None
            user.is_active = is_active
            user.updated_at = utc_now()
            await session.flush()
            return _to_identity(user)

    # API keys

    async def find_api_key_by_value(self, value: str) -> APIKeyRecord | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(APIKey).where(APIKey.key == value, APIKey.is_active.is_(True))
            )
            api_key = result.scalar_one_or_none()
            return _to_record(api_key) if api_key else None

    async def update_api_key_last_used(self, key_id: str, timestamp: datetime) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(APIKey).where(APIKey.id == key_id).values(last_used_at=timestamp)
            )

    async def create_api_key(
        self,
        *,
        name: str,
        key: str,
        created_by: str,
        description: str | None = None,
        expires_at: datetime | None = None,
    ) -> APIKeyRecord:
        async with self._session_factory() as session:
            api_key = APIKey(
                name=name,
                key=key,
                created_by=created_by,
                description=description,
                expires_at=expires_at,
            )
            session.add(api_key)
            try:
                await session.flush()
            except IntegrityError as e:
                raise DuplicateRecordError("API key value collision") from e
            return _to_record(api_key)

    async def get_api_key(self, key_id: str) -> APIKeyRecord | None:
        async with self._session_factory() as session:
            api_key = await session.get(APIKey, key_id)
            return _to_record(api_key) if api_key else None

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
        conditions = []
        if search:
            conditions.append(APIKey.name.ilike(f"%{search}%"))
        if is_active is not None:
            conditions.append(APIKey.is_active.is_(is_active))

        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(APIKey).where(*conditions)
            )
            stmt = _paginate(
                select(APIKey).where(*conditions),
                _API_KEY_SORT_COLUMNS[sort_by],
                descending,
                limit,
                offset,
            )
            result = await session.execute(stmt)
            return [_to_record(k) for k in result.scalars().all()], total or 0

    async def update_api_key(self, key_id: str, changes: dict[str, Any]) -> APIKeyRecord | None:
        async with self._session_factory() as session:
            api_key = await session.get(APIKey, key_id)
            if api_key is None:
                return None
            for field, value in changes.items():
                setattr(api_key, field, value)
            api_key.updated_at = utc_now()
            await session.flush()
            return _to_record(api_key)

    async def replace_api_key_value(self, key_id: str, value: str) -> APIKeyRecord | None:
        async with self._session_factory() as session:
            api_key = await session.get(APIKey, key_id)
            if api_key is None:
                return None
            api_key.key = value
            api_key.updated_at = utc_now()
            await session.flush()
            return _to_record(api_key)

    async def delete_api_key(self, key_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(delete(APIKey).where(APIKey.id == key_id))
            return result.rowcount > 0
