# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Back-office user endpoints.

This module provides user management for staff:
- GET /users - List users (staff)
- PUT /users/{user_id}/status - Activate or deactivate a user (admin only)
"""

import logging
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from src.api.dependencies import AuthServiceDep
from src.api.middleware.auth import AdminIdentity, require_staff
from src.api.v1.schemas import Pagination, UserResponse
from src.domains.auth.roles import Role
from src.domains.auth.service import IdentityNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_staff)])


class UserListResponse(BaseModel):
    """Paginated user list."""

    users: list[UserResponse]
    pagination: Pagination


class UserStatusRequest(BaseModel):
    """Activation change request."""

    is_active: bool = Field(..., description="New account status")


class UserStatusResponse(BaseModel):
    """Updated user."""

    user: UserResponse


@router.get(
    "/users",
    response_model=UserListResponse,
    summary="List users",
    description="List users with search, role filter, sorting and pagination.",
)
async def list_users(
    auth_service: AuthServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, min_length=1),
    role: Role | None = Query(None),
    sort_by: Literal["first_name", "email", "created_at"] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
) -> UserListResponse:
    """List users for staff."""
    result = await auth_service.list_identities(
        role=role,
        search=search,
        sort_by=sort_by,
        descending=sort_order == "desc",
        page=page,
        limit=limit,
    )

    return UserListResponse(
        users=[UserResponse.from_identity(identity) for identity in result.items],
        pagination=Pagination.build(page, limit, result.total),
    )


@router.put(
    "/users/{user_id}/status",
    response_model=UserStatusResponse,
    summary="Set user status",
    description="Activate or deactivate a user. Takes effect on the user's next request.",
)
async def set_user_status(
    user_id: UUID,
    data: UserStatusRequest,
    admin: AdminIdentity,
    auth_service: AuthServiceDep,
) -> UserStatusResponse:
    """Activate or deactivate a user.

    Raises:
        HTTPException: If the user does not exist or is the caller.
    """
    if str(user_id) == admin.id and not data.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot deactivate your own account",
        )

    try:
        identity = await auth_service.set_identity_active(str(user_id), data.is_active)
    except IdentityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    logger.info("User %s set active=%s by %s", user_id, data.is_active, admin.id)
    return UserStatusResponse(user=UserResponse.from_identity(identity))
