"""Shared constants for the RMC client."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Resolve relative to the caller's working directory, the package may be installed anywhere.
ENV_CONFIG_FILE = os.getenv("NASDAQ_RMC_ENV_FILE", str(Path.cwd() / "config.env"))

# Prefer real environment variables; config.env only fills gaps.
USE_DOTENV = os.getenv("USE_DOTENV", "true").strip().lower() in {"1", "true", "yes", "y", "on"}
if USE_DOTENV:
    load_dotenv(ENV_CONFIG_FILE, override=False)

APP_NAME = "nasdaq_rmc"
LOGS_DIR = os.getenv("NASDAQ_RMC_LOG_DIR", "")
LOG_LEVEL = os.getenv("NASDAQ_RMC_LOG_LEVEL", "INFO")

# =============================================================================
# SESSION DEFAULTS
# =============================================================================
DEFAULT_TIMEOUT_MS = 200
DEFAULT_MEDIA_TYPE = "application/json; charset=UTF-8"
DEFAULT_DEBUG = False

# =============================================================================
# KEYCLOAK PASSWORD GRANT
# =============================================================================
AUTH_REALM = "nrmc"
AUTH_PATH = f"/keycloak/auth/realms/{AUTH_REALM}/protocol/openid-connect/token"
AUTH_CONTENT_TYPE = "application/x-www-form-urlencoded"
AUTH_GRANT_TYPE = "password"
AUTH_SCOPE = "openid"
AUTH_CLIENT_ID = "mapi"

# =============================================================================
# HTTP
# =============================================================================
ACCEPT_ANY = "*/*"
HTTP_POOL_SIZE = 10
HTTP_MAX_RETRIES = 0
SUPPORTED_URL_SCHEMES = frozenset(["http", "https"])
SLOW_CALL_WARNING_SEC = 5
METRICS_HISTORY_SIZE = 1000

# =============================================================================
# ENVIRONMENT VARIABLES
# =============================================================================
ENV_USERNAME = "NASDAQ_RMC_USERNAME"
ENV_PASSWORD = "NASDAQ_RMC_PASSWORD"
ENV_URL = "NASDAQ_RMC_URL"
ENV_TIMEOUT_MS = "NASDAQ_RMC_TIMEOUT_MS"
ENV_MEDIA_TYPE = "NASDAQ_RMC_MEDIA_TYPE"
ENV_DEBUG = "NASDAQ_RMC_DEBUG"
