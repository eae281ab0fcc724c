"""Storefront API Backend.

E-commerce HTTP backend: session and API-key authentication, role-based
access control, and the REST surface built on top of them.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
