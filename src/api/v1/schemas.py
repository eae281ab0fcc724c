# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Response models shared by the v1 routers."""

import math

from pydantic import BaseModel, Field

from src.domains.auth.entities import APIKeyRecord, Identity


class UserResponse(BaseModel):
    """Public identity profile. Never includes the password hash."""

    id: str = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    first_name: str | None = Field(None, description="First name")
    last_name: str | None = Field(None, description="Last name")
    phone: str | None = Field(None, description="Phone number")
    role: str = Field(..., description="Role (customer, staff, admin)")
    is_active: bool = Field(..., description="Account status")
    email_verified: bool = Field(..., description="Email verification status")
    last_login_at: str | None = Field(None, description="Last login timestamp")
    created_at: str | None = Field(None, description="Creation timestamp")
    updated_at: str | None = Field(None, description="Last update timestamp")

    @classmethod
    def from_identity(cls, identity: Identity) -> "UserResponse":
        return cls(**identity.to_public())


class APIKeyResponse(BaseModel):
    """API key as shown to staff."""

    id: str = Field(..., description="Key ID")
    name: str = Field(..., description="Key name")
    key: str = Field(..., description="Key value")
    description: str | None = Field(None, description="Description")
    created_by: str = Field(..., description="Creator user ID")
    is_active: bool = Field(..., description="Whether the key may be used")
    expires_at: str | None = Field(None, description="Expiry timestamp")
    last_used_at: str | None = Field(None, description="Last successful use")
    created_at: str | None = Field(None, description="Creation timestamp")
    updated_at: str | None = Field(None, description="Last update timestamp")

    @classmethod
    def from_record(cls, record: APIKeyRecord) -> "APIKeyResponse":
        return cls(**record.to_public())


class Pagination(BaseModel):
    """Pagination block of list responses."""

    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str
