# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session token management utilities.

This module provides session token creation and validation using
python-jose. Tokens are stateless: their validity is decided by the
signature and the expiry claim alone, and nothing is persisted.

Example:
    >>> from src.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> token = jwt_manager.issue_token(identity)
    >>> claims = jwt_manager.verify_token(token)
    >>> claims.role
    <Role.CUSTOMER: 'customer'>
"""

import binascii
import logging
from collections.abc import Callable
from datetime import datetime

from jose import JWTError as JoseJWTError, jwt
from jose.utils import base64url_decode, base64url_encode
from pydantic import BaseModel, ValidationError

from src.core.config.settings import JWTSettings
from src.domains.auth.entities import AuthenticatedIdentity, Identity
from src.domains.auth.roles import Role
from src.utils.datetime import utc_from_timestamp, utc_now

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class TokenClaims(BaseModel):
    """Session token payload structure.

    Attributes:
        sub: Subject (identity ID).
        email: Subject email at issue time.
        role: Subject role at issue time.
        iat: Issued at timestamp.
        exp: Expiration timestamp.
    """

    sub: str
    email: str
    role: Role
    iat: int
    exp: int

    @property
    def issued_at(self) -> datetime:
        """Issue time as a UTC datetime."""
        return utc_from_timestamp(self.iat)

    @property
    def expires_at(self) -> datetime:
        """Expiry time as a UTC datetime."""
        return utc_from_timestamp(self.exp)


class TokenResponse(BaseModel):
    """Token handed to clients after login, register, or refresh.

    Attributes:
        access_token: Signed session token.
        token_type: Token type (always "Bearer").
        expires_in: Seconds until expiry.
    """

    access_token: str
    token_type: str = "Bearer"
    expires_in: int


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTManager:
    """Session token creation and validation manager.

    The signing secret and TTL come from JWTSettings, which is built once at
    startup and never mutated. Rotating the secret invalidates every token
    issued before the rotation.

    Attributes:
        _settings: JWT configuration settings.
        _clock: Source of the current time.

    Example:
        >>> jwt_manager = JWTManager(settings)
        >>> token = jwt_manager.issue_token(identity)
        >>> jwt_manager.verify_token(token).sub == identity.id
        True
    """

    def __init__(
        self,
        settings: JWTSettings,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the JWT manager.

        Args:
            settings: JWT configuration settings.
            clock: Callable returning the current UTC time.
        """
        self._settings = settings
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        """Token lifetime in seconds."""
        return self._settings.access_token_expire_minutes * 60

    def issue_token(self, identity: Identity | AuthenticatedIdentity) -> str:
        """Create a signed session token for an identity.

        Args:
            identity: Identity whose id, email and role become the claims.

        Returns:
            Encoded token string.
        """
        issued_at = int(self._clock().timestamp())

        payload = {
            "sub": str(identity.id),
            "email": identity.email,
            "role": identity.role.value,
            "iat": issued_at,
            "exp": issued_at + self.ttl_seconds,
        }

        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )

    def create_token_response(self, identity: Identity | AuthenticatedIdentity) -> TokenResponse:
        """Issue a token and wrap it with its lifetime.

        Args:
            identity: Identity to issue the token for.

        Returns:
            TokenResponse for API responses.
        """
        return TokenResponse(
            access_token=self.issue_token(identity),
            expires_in=self.ttl_seconds,
        )

    def verify_token(self, token: str) -> TokenClaims:
        """Decode and validate a session token.

        Performs no store lookup; the caller re-checks the subject.

        Args:
            token: Encoded token string.

        Returns:
            TokenClaims exactly as signed.

        Raises:
            TokenExpiredError: If the current time is at or past the expiry.
            InvalidTokenError: If the token is malformed, tampered with,
                or carries missing or unknown claims.
        """
        if not token:
            raise InvalidTokenError("Token is empty")

        self._ensure_canonical(token)

        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
                options={"verify_exp": False},
            )
            claims = TokenClaims.model_validate(payload)
        except (JoseJWTError, ValidationError) as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}")

        # Expiry is checked here so the boundary (now == exp) counts as expired.
        if int(self._clock().timestamp()) >= claims.exp:
            raise TokenExpiredError("Token has expired")

        return claims

    @staticmethod
    def _ensure_canonical(token: str) -> None:
        """Reject tokens whose segments are not canonically encoded.

        The trailing base64url character of a segment can carry unused bits,
        so two different strings may decode to the same bytes. Requiring
        decode-then-encode to reproduce the segment makes every altered
        character fail verification.

        Raises:
            InvalidTokenError: If the token is not three canonical segments.
        """
        segments = token.split(".")
        if len(segments) != 3:
            raise InvalidTokenError("Invalid token: wrong number of segments")

        for segment in segments:
            raw = segment.encode("ascii", errors="replace")
            try:
                canonical = base64url_encode(base64url_decode(raw))
            except (binascii.Error, ValueError):
                raise InvalidTokenError("Invalid token: bad segment encoding")
            if canonical != raw:
                raise InvalidTokenError("Invalid token: non-canonical encoding")


def extract_token_from_header(authorization: str | None) -> str | None:
    """Extract a bearer token from an Authorization header value.

    Only the exact, case-sensitive "Bearer " prefix is accepted.

    Args:
        authorization: Raw header value, or None if absent.

    Returns:
        The token, or None if the header is absent or malformed.

    Example:
        >>> extract_token_from_header("Bearer abc")
        'abc'
        >>> extract_token_from_header("bearer abc") is None
        True
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None

    token = authorization[len(BEARER_PREFIX):]
    if not token or any(ch.isspace() for ch in token):
        return None

    return token
