# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication endpoints.

This module provides account endpoints:
- POST /register - Create a customer account
- POST /login - Authenticate with email and password
- GET /me - Get current user profile
- POST /refresh - Re-issue a token from the current account state
"""

import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from pydantic.networks import validate_email

from src.api.dependencies import AuthServiceDep
from src.api.middleware.auth import CurrentIdentity
from src.api.v1.schemas import UserResponse
from src.domains.auth.password import MAX_PASSWORD_BYTES, PasswordTooLongError
from src.domains.auth.service import (
    AccountInactiveError,
    EmailAlreadyRegisteredError,
    IdentityNotFoundError,
    InvalidCredentialsError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class RegisterRequest(BaseModel):
    """Customer registration request."""

    email: str = Field(..., description="Email address")
    password: str = Field(..., min_length=8, description="Password")
    first_name: str | None = Field(None, min_length=1, max_length=100, description="First name")
    last_name: str | None = Field(None, min_length=1, max_length=100, description="Last name")
    phone: str | None = Field(None, max_length=20, description="Phone number")

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        """Validate the address syntax and keep it as typed.

        Login compares emails exactly, so the normalized form is only used
        for the check and never stored.
        """
        _, normalized = validate_email(value)
        if normalized.lower() != value.lower():
            raise ValueError("value is not a valid email address")
        return value


class LoginRequest(BaseModel):
    """Login request."""

    email: str = Field(..., min_length=1, description="Email address")
    password: str = Field(..., min_length=1, description="Password")


class TokenFields(BaseModel):
    """Token attached to auth responses."""

    token: str = Field(..., description="Session token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Token lifetime in seconds")


class AuthResponse(TokenFields):
    """Register and login response."""

    message: str
    user: UserResponse


class ProfileResponse(BaseModel):
    """Current user profile."""

    user: UserResponse


class RefreshResponse(TokenFields):
    """Token refresh response."""

    message: str


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create a customer account and return a session token.",
)
async def register(data: RegisterRequest, auth_service: AuthServiceDep) -> AuthResponse:
    """Register a new customer.

    Raises:
        HTTPException: If the email is taken or the password is too long.
    """
    try:
        result = await auth_service.register(
            email=data.email,
            password=data.password,
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
        )
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PasswordTooLongError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password cannot exceed {MAX_PASSWORD_BYTES} bytes",
        )

    return AuthResponse(
        message="User registered successfully",
        user=UserResponse.from_identity(result.identity),
        token=result.token.access_token,
        expires_in=result.token.expires_in,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login",
    description="Authenticate with email and password.",
)
async def login(data: LoginRequest, auth_service: AuthServiceDep) -> AuthResponse:
    """Authenticate a user.

    Raises:
        HTTPException: If authentication fails.
    """
    try:
        result = await auth_service.login(email=data.email, password=data.password)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    except AccountInactiveError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is deactivated",
        )

    return AuthResponse(
        message="Login successful",
        user=UserResponse.from_identity(result.identity),
        token=result.token.access_token,
        expires_in=result.token.expires_in,
    )


@router.get(
    "/me",
    response_model=ProfileResponse,
    summary="Get current user",
    description="Get the authenticated user's profile.",
)
async def get_me(identity: CurrentIdentity, auth_service: AuthServiceDep) -> ProfileResponse:
    """Get current user profile.

    Raises:
        HTTPException: If the user no longer exists.
    """
    try:
        profile = await auth_service.get_profile(identity.id)
    except IdentityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return ProfileResponse(user=UserResponse.from_identity(profile))


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    summary="Refresh token",
    description="Issue a new token reflecting the account's current role.",
)
async def refresh_token(identity: CurrentIdentity, auth_service: AuthServiceDep) -> RefreshResponse:
    """Re-issue a session token.

    Raises:
        HTTPException: If the user is gone or inactive.
    """
    try:
        token = await auth_service.refresh(identity.id)
    except IdentityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return RefreshResponse(
        message="Token refreshed successfully",
        token=token.access_token,
        expires_in=token.expires_in,
    )
