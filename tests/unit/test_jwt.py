# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for session token management.

Tests the JWTManager class and the bearer header parser.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from jose import jwt
from pydantic import SecretStr

from src.domains.auth.entities import AuthenticatedIdentity, Identity
from src.domains.auth.jwt import (
    InvalidTokenError,
    JWTError,
    JWTManager,
    TokenClaims,
    TokenExpiredError,
    extract_token_from_header,
)
from src.domains.auth.roles import Role

TEST_SECRET = "test-secret-key-for-jwt-testing"
BASE_TIME = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for expiry tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: int) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Create a clock frozen at BASE_TIME."""
    return FakeClock(BASE_TIME)


@pytest.fixture
def clocked_manager(jwt_settings: MagicMock, clock: FakeClock) -> JWTManager:
    """Create a JWT manager driven by the fake clock."""
    return JWTManager(jwt_settings, clock=clock)


@pytest.fixture
def identity() -> Identity:
    """Create a sample identity."""
    return Identity(
        id="7f1c2a9e-0c4b-4d55-9a8e-1d2f3b4c5d6e",
        email="a@x.com",
        password_hash="$2b$04$irrelevant",
        role=Role.CUSTOMER,
    )


class TestTokenIssue:
    """Tests for token creation."""

    def test_issue_token_returns_three_segments(
        self,
        jwt_manager: JWTManager,
        identity: Identity,
    ) -> None:
        """Test that issue_token returns a compact JWS string."""
        token = jwt_manager.issue_token(identity)

        assert isinstance(token, str)
        assert token.count(".") == 2

    def test_issue_then_verify_returns_claims(
        self,
        clocked_manager: JWTManager,
        identity: Identity,
    ) -> None:
        """Test that verify returns exactly the signed claims."""
        token = clocked_manager.issue_token(identity)

        claims = clocked_manager.verify_token(token)

        assert claims.sub == identity.id
        assert claims.email == "a@x.com"
        assert claims.role == Role.CUSTOMER
        assert claims.iat == int(BASE_TIME.timestamp())
        assert claims.exp == claims.iat + 7 * 24 * 3600

    def test_claims_datetime_properties(
        self,
        clocked_manager: JWTManager,
        identity: Identity,
    ) -> None:
        """Test issued_at and expires_at helpers."""
        claims = clocked_manager.verify_token(clocked_manager.issue_token(identity))

        assert claims.issued_at == BASE_TIME
        assert claims.expires_at == BASE_TIME + timedelta(days=7)

    @pytest.mark.parametrize("role", list(Role))
    def test_role_round_trips(self, jwt_manager: JWTManager, role: Role) -> None:
        """Test that every role survives issue and verify."""
        subject = AuthenticatedIdentity(id="id-1", email="s@x.com", role=role)

        assert jwt_manager.verify_token(jwt_manager.issue_token(subject)).role == role

    def test_ttl_follows_settings(self, jwt_settings: MagicMock) -> None:
        """Test that the lifetime is read from settings."""
        jwt_settings.access_token_expire_minutes = 30

        assert JWTManager(jwt_settings).ttl_seconds == 1800

    def test_create_token_response(self, jwt_manager: JWTManager, identity: Identity) -> None:
        """Test token response creation."""
        response = jwt_manager.create_token_response(identity)

        assert response.token_type == "Bearer"
        assert response.expires_in == 7 * 24 * 3600
        assert jwt_manager.verify_token(response.access_token).sub == identity.id


class TestTokenExpiry:
    """Tests for expiry handling against the injected clock."""

    def test_token_valid_just_before_expiry(
        self,
        clocked_manager: JWTManager,
        clock: FakeClock,
        identity: Identity,
    ) -> None:
        """Test that a token still verifies one second before exp."""
        token = clocked_manager.issue_token(identity)
        clock.advance(days=7, seconds=-1)

        assert clocked_manager.verify_token(token).sub == identity.id

    def test_token_expired_at_exact_expiry(
        self,
        clocked_manager: JWTManager,
        clock: FakeClock,
        identity: Identity,
    ) -> None:
        """Test that now == exp counts as expired."""
        token = clocked_manager.issue_token(identity)
        clock.advance(days=7)

        with pytest.raises(TokenExpiredError):
            clocked_manager.verify_token(token)

    def test_token_expired_long_after(
        self,
        clocked_manager: JWTManager,
        clock: FakeClock,
        identity: Identity,
    ) -> None:
        """Test that a stale token is rejected."""
        token = clocked_manager.issue_token(identity)
        clock.advance(days=30)

        with pytest.raises(TokenExpiredError):
            clocked_manager.verify_token(token)

    def test_expired_error_is_jwt_error(self) -> None:
        """Test exception hierarchy."""
        assert issubclass(TokenExpiredError, JWTError)
        assert issubclass(InvalidTokenError, JWTError)


class TestTokenIntegrity:
    """Tests for tampered and foreign tokens."""

    def test_every_single_character_change_is_rejected(
        self,
        jwt_manager: JWTManager,
        identity: Identity,
    ) -> None:
        """Test that altering any one character invalidates the token."""
        token = jwt_manager.issue_token(identity)

        for index, char in enumerate(token):
            if char == ".":
                continue
            replacement = "A" if char != "A" else "B"
            tampered = token[:index] + replacement + token[index + 1:]

            with pytest.raises(InvalidTokenError):
                jwt_manager.verify_token(tampered)

    def test_wrong_secret_is_rejected(self, jwt_manager: JWTManager, identity: Identity) -> None:
        """Test that a token signed with another secret is invalid."""
        other_settings = MagicMock()
        other_settings.secret_key = SecretStr("a-different-secret")
        other_settings.algorithm = "HS256"
        other_settings.access_token_expire_minutes = 60
        token = JWTManager(other_settings).issue_token(identity)

        with pytest.raises(InvalidTokenError):
            jwt_manager.verify_token(token)

    def test_unknown_role_is_rejected(self, jwt_manager: JWTManager) -> None:
        """Test that a correctly signed token with an unknown role is invalid."""
        iat = int(datetime.now(timezone.utc).timestamp())
        token = jwt.encode(
            {"sub": "id-1", "email": "a@x.com", "role": "superuser", "iat": iat, "exp": iat + 60},
            TEST_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError):
            jwt_manager.verify_token(token)

    def test_missing_claim_is_rejected(self, jwt_manager: JWTManager) -> None:
        """Test that a token without an email claim is invalid."""
        iat = int(datetime.now(timezone.utc).timestamp())
        token = jwt.encode(
            {"sub": "id-1", "role": "customer", "iat": iat, "exp": iat + 60},
            TEST_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError):
            jwt_manager.verify_token(token)

    @pytest.mark.parametrize(
        "token",
        ["", "not-a-token", "a.b", "a.b.c.d", "!!!.@@@.###"],
    )
    def test_malformed_token_is_rejected(self, jwt_manager: JWTManager, token: str) -> None:
        """Test that malformed tokens raise InvalidTokenError."""
        with pytest.raises(InvalidTokenError):
            jwt_manager.verify_token(token)

    def test_claims_model_rejects_unknown_role(self) -> None:
        """Test TokenClaims validation directly."""
        with pytest.raises(ValueError):
            TokenClaims(sub="x", email="a@x.com", role="root", iat=0, exp=1)


class TestExtractTokenFromHeader:
    """Tests for the bearer header parser."""

    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            ("Bearer abc", "abc"),
            ("Bearer a.b.c", "a.b.c"),
            ("bearer abc", None),
            ("BEARER abc", None),
            ("Bearer ", None),
            ("Bearer", None),
            ("Bearer  abc", None),
            ("Bearer abc def", None),
            ("Basic dXNlcjpwYXNz", None),
            ("", None),
            (None, None),
        ],
    )
    def test_extract(self, header: str | None, expected: str | None) -> None:
        """Test that only the exact Bearer form yields a token."""
        assert extract_token_from_header(header) == expected
