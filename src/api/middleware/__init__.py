# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

This package provides request processing steps:
- RequestContextMiddleware: request id and structured access logging.
- SessionAuthGate: bearer token authentication.
- RoleGate: role-based authorization after the session gate.
- APIKeyGate: API key authentication for the public catalog.

Exports:
    RequestContextMiddleware: Request logging middleware.
    SessionAuthGate: Session authentication dependency.
    RoleGate: Role authorization dependency.
    APIKeyGate: API key authentication dependency.
"""

from src.api.middleware.api_key_auth import APIKeyGate, api_key_gate
from src.api.middleware.auth import (
    RoleGate,
    SessionAuthGate,
    require_admin,
    require_staff,
    session_auth_gate,
)
from src.api.middleware.request_context import RequestContextMiddleware

__all__ = [
    "RequestContextMiddleware",
    "SessionAuthGate",
    "session_auth_gate",
    "RoleGate",
    "require_admin",
    "require_staff",
    "APIKeyGate",
    "api_key_gate",
]
