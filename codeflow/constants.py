from __future__ import annotations

import logging

LOGGER = logging.getLogger("codeflow.auth")
HTTP_LOGGER = logging.getLogger("codeflow.http")
APP_VERSION = "0.1.0"
PROVIDER = "google"

INITIATE_PATH = "/auth/google"
CALLBACK_PATH = "/auth/google/callback"
LOGOUT_PATH = "/auth/logout"
DASHBOARD_PATH = "/dashboard"
HEALTH_PATH = "/health"

GENERIC_ERROR_CODE = "authentication_failed"
GENERIC_ERROR_DESCRIPTION = "Authentication failed. Please sign in again from /auth/google."
