# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Identity roles and the role sets used by authorization gates."""

from enum import Enum


class Role(str, Enum):
    """Closed set of identity roles."""

    CUSTOMER = "customer"
    STAFF = "staff"
    ADMIN = "admin"


ADMIN_ONLY: frozenset[Role] = frozenset({Role.ADMIN})
STAFF_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.STAFF})
