# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the Storefront API.

This package contains domain services that encapsulate business logic
independently of HTTP wiring and of the concrete store implementation.

Domains:
    auth: Password hashing, session tokens, API keys, and account use cases.
"""
