# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Public catalog endpoints authenticated by API key.

- GET /store - Store information
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.api.dependencies import AppSettings
from src.api.middleware.api_key_auth import AuthenticatedAPIKey, api_key_gate

router = APIRouter(dependencies=[Depends(api_key_gate)])


class StoreInfo(BaseModel):
    """Store information."""

    name: str = Field(..., description="Store display name")
    description: str = Field(..., description="Store description")
    client: str = Field(..., description="Name of the API key used")


class StoreResponse(BaseModel):
    """Store information response."""

    data: StoreInfo


@router.get(
    "/store",
    response_model=StoreResponse,
    summary="Store information",
)
async def get_store(api_key: AuthenticatedAPIKey, settings: AppSettings) -> StoreResponse:
    """Describe the store to an authenticated API client."""
    return StoreResponse(
        data=StoreInfo(
            name=settings.store_name,
            description="Your modern e-commerce solution",
            client=api_key.name,
        )
    )
