# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API Key authentication gate.

This gate validates API keys presented by external catalog clients and
populates request.state.api_key with the validated record.

Headers:
    X-API-Key: The API key (preferred)

Query parameters:
    api_key: The API key (used only when the header is absent)

Example:
    GET /api/v1/public/store
    X-API-Key: zk_0f3a...
"""

import logging
from typing import Annotated

from fastapi import Depends, Request

from src.api.dependencies import get_api_key_service, get_app_settings
from src.api.errors import AuthenticationFailure, InternalFailure, ResourceStateFailure
from src.core.config import Settings
from src.domains.auth.api_key_service import (
    APIKeyExpiredError,
    APIKeyMissingError,
    APIKeyService,
    InvalidAPIKeyError,
)
from src.domains.auth.entities import APIKeyRecord
from src.utils.logging import bind_context

logger = logging.getLogger(__name__)


def extract_api_key(request: Request, header_name: str, query_param: str) -> str | None:
    """Read the presented key, preferring the header over the query string.

    Args:
        request: HTTP request.
        header_name: Header carrying the key.
        query_param: Query parameter carrying the key.

    Returns:
        The key value, or None if neither is present.
    """
    return request.headers.get(header_name) or request.query_params.get(query_param) or None


class APIKeyGate:
    """Dependency that authenticates a request by API key.

    On success the key's last-used time is recorded before the handler
    runs. An expired key is logged as such but rendered exactly like an
    unknown one.

    Example:
        >>> api_key_gate = APIKeyGate()
        >>> @router.get("/store")
        ... async def store(api_key = Depends(api_key_gate)): ...
    """

    async def __call__(
        self,
        request: Request,
        settings: Settings = Depends(get_app_settings),
        api_key_service: APIKeyService = Depends(get_api_key_service),
    ) -> APIKeyRecord:
        """Authenticate the request.

        Args:
            request: HTTP request.
            settings: Application settings.
            api_key_service: API key service.

        Returns:
            APIKeyRecord, also stored on request.state.api_key.

        Raises:
            AuthenticationFailure: If the key is missing or invalid.
            ResourceStateFailure: If the key has expired.
            InternalFailure: If the store cannot be read or written.
        """
        presented = extract_api_key(
            request,
            settings.api_key.header_name,
            settings.api_key.query_param,
        )

        try:
            record = await api_key_service.authenticate(presented)
            await api_key_service.touch(record)
        except APIKeyMissingError:
            raise AuthenticationFailure("API key is required", reason="MissingAPIKey")
        except InvalidAPIKeyError:
            raise AuthenticationFailure("Invalid API key", reason="InvalidAPIKey")
        except APIKeyExpiredError:
            raise ResourceStateFailure("Invalid API key", reason="APIKeyExpired")
        except Exception as e:
            raise InternalFailure(reason="APIKeyLookupFailed") from e

        request.state.api_key = record
        bind_context(api_key_id=record.id)

        return record


api_key_gate = APIKeyGate()

AuthenticatedAPIKey = Annotated[APIKeyRecord, Depends(api_key_gate)]
