# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API key management endpoints.

All routes require a staff or admin session. Any staff member can manage
any key; the creator reference is informational.

- GET / - List keys
- GET /{key_id} - Get a key
- POST / - Create a key
- PUT /{key_id} - Update name, description, status or expiry
- DELETE /{key_id} - Delete a key
- POST /{key_id}/regenerate - Replace a key's value
"""

import logging
from datetime import datetime
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from src.api.dependencies import APIKeyServiceDep
from src.api.middleware.auth import StaffIdentity, require_staff
from src.api.v1.schemas import APIKeyResponse, MessageResponse, Pagination
from src.domains.auth.api_key_service import APIKeyNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_staff)])


class CreateAPIKeyRequest(BaseModel):
    """API key creation request."""

    name: str = Field(..., min_length=1, max_length=255, description="Key name")
    description: str | None = Field(None, description="Description")
    expires_at: datetime | None = Field(None, description="Optional expiry")


class UpdateAPIKeyRequest(BaseModel):
    """API key update request. Only fields that are sent are changed."""

    name: str | None = Field(None, min_length=1, max_length=255, description="Key name")
    description: str | None = Field(None, description="Description")
    is_active: bool | None = Field(None, description="Whether the key may be used")
    expires_at: datetime | None = Field(None, description="Expiry, null to clear")


class APIKeyDataResponse(BaseModel):
    """Single key response."""

    data: APIKeyResponse


class APIKeyListResponse(BaseModel):
    """Paginated key list."""

    data: list[APIKeyResponse]
    pagination: Pagination


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="API key not found")


@router.get(
    "",
    response_model=APIKeyListResponse,
    summary="List API keys",
)
async def list_api_keys(
    api_key_service: APIKeyServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, min_length=1),
    active: bool | None = Query(None),
    sort_by: Literal["name", "created_at", "last_used_at"] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
) -> APIKeyListResponse:
    """List API keys with filtering, sorting and pagination."""
    result = await api_key_service.list_keys(
        search=search,
        is_active=active,
        sort_by=sort_by,
        descending=sort_order == "desc",
        page=page,
        limit=limit,
    )

    return APIKeyListResponse(
        data=[APIKeyResponse.from_record(record) for record in result.items],
        pagination=Pagination.build(page, limit, result.total),
    )


@router.get(
    "/{key_id}",
    response_model=APIKeyDataResponse,
    summary="Get API key",
)
async def get_api_key(key_id: UUID, api_key_service: APIKeyServiceDep) -> APIKeyDataResponse:
    """Get a single API key."""
    try:
        record = await api_key_service.get_key(str(key_id))
    except APIKeyNotFoundError:
        raise _not_found()

    return APIKeyDataResponse(data=APIKeyResponse.from_record(record))


@router.post(
    "",
    response_model=APIKeyDataResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create API key",
)
async def create_api_key(
    data: CreateAPIKeyRequest,
    identity: StaffIdentity,
    api_key_service: APIKeyServiceDep,
) -> APIKeyDataResponse:
    """Create an API key owned by the calling staff member."""
    record = await api_key_service.create_key(
        name=data.name,
        created_by=identity.id,
        description=data.description,
        expires_at=data.expires_at,
    )

    return APIKeyDataResponse(data=APIKeyResponse.from_record(record))


@router.put(
    "/{key_id}",
    response_model=APIKeyDataResponse,
    summary="Update API key",
)
async def update_api_key(
    key_id: UUID,
    data: UpdateAPIKeyRequest,
    api_key_service: APIKeyServiceDep,
) -> APIKeyDataResponse:
    """Update an API key's mutable fields."""
    changes = data.model_dump(exclude_unset=True)
    for field in ("name", "is_active"):
        if field in changes and changes[field] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field} cannot be null",
            )

    try:
        record = await api_key_service.update_key(str(key_id), changes)
    except APIKeyNotFoundError:
        raise _not_found()

    return APIKeyDataResponse(data=APIKeyResponse.from_record(record))


@router.delete(
    "/{key_id}",
    response_model=MessageResponse,
    summary="Delete API key",
)
async def delete_api_key(key_id: UUID, api_key_service: APIKeyServiceDep) -> MessageResponse:
    """Delete an API key permanently."""
    try:
        await api_key_service.delete_key(str(key_id))
    except APIKeyNotFoundError:
        raise _not_found()

    return MessageResponse(message="API key deleted successfully")


@router.post(
    "/{key_id}/regenerate",
    response_model=APIKeyDataResponse,
    summary="Regenerate API key",
    description="Replace the key value. The old value stops working immediately.",
)
async def regenerate_api_key(key_id: UUID, api_key_service: APIKeyServiceDep) -> APIKeyDataResponse:
    """Regenerate an API key's value."""
    try:
        record = await api_key_service.regenerate_key(str(key_id))
    except APIKeyNotFoundError:
        raise _not_found()

    return APIKeyDataResponse(data=APIKeyResponse.from_record(record))
