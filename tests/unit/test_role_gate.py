# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for role-based authorization."""

import pytest

from src.api.errors import AuthenticationFailure, AuthorizationFailure
from src.api.middleware.auth import RoleGate, require_admin, require_staff
from src.domains.auth.entities import AuthenticatedIdentity
from src.domains.auth.roles import ADMIN_ONLY, STAFF_ROLES, Role


def _identity(role: Role) -> AuthenticatedIdentity:
    return AuthenticatedIdentity(id="id-1", email="a@x.com", role=role)


class TestRoles:
    """Tests for the role enum and presets."""

    def test_role_values(self) -> None:
        """Test the wire names of roles."""
        assert [r.value for r in Role] == ["customer", "staff", "admin"]

    def test_presets(self) -> None:
        """Test the preset role sets."""
        assert ADMIN_ONLY == {Role.ADMIN}
        assert STAFF_ROLES == {Role.ADMIN, Role.STAFF}


class TestRoleGate:
    """Tests for RoleGate.check."""

    @pytest.mark.parametrize(
        ("gate", "role", "allowed"),
        [
            (require_admin, Role.ADMIN, True),
            (require_admin, Role.STAFF, False),
            (require_admin, Role.CUSTOMER, False),
            (require_staff, Role.ADMIN, True),
            (require_staff, Role.STAFF, True),
            (require_staff, Role.CUSTOMER, False),
        ],
    )
    def test_role_matrix(self, gate: RoleGate, role: Role, allowed: bool) -> None:
        """Test every preset against every role."""
        identity = _identity(role)

        if allowed:
            assert gate.check(identity) is identity
        else:
            with pytest.raises(AuthorizationFailure) as exc_info:
                gate.check(identity)
            assert exc_info.value.status_code == 403
            assert exc_info.value.message == "Insufficient permissions"

    def test_missing_identity_is_authentication_failure(self) -> None:
        """Test that an absent identity is a 401, not a 403."""
        with pytest.raises(AuthenticationFailure) as exc_info:
            require_staff.check(None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Authentication required"

    def test_empty_role_set_denies_everyone(self) -> None:
        """Test a gate that allows no roles."""
        gate = RoleGate(())

        for role in Role:
            with pytest.raises(AuthorizationFailure):
                gate.check(_identity(role))

    @pytest.mark.asyncio
    async def test_call_returns_identity(self) -> None:
        """Test the dependency entry point."""
        identity = _identity(Role.STAFF)

        assert await require_staff(identity) is identity
