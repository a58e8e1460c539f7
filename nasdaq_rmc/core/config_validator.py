"""Validation of session configuration."""

from __future__ import annotations

import math
import os
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from nasdaq_rmc.core.constants import (
    DEFAULT_DEBUG,
    DEFAULT_MEDIA_TYPE,
    DEFAULT_TIMEOUT_MS,
    ENV_DEBUG,
    ENV_MEDIA_TYPE,
    ENV_PASSWORD,
    ENV_TIMEOUT_MS,
    ENV_URL,
    ENV_USERNAME,
    SUPPORTED_URL_SCHEMES,
)
from nasdaq_rmc.core.exceptions import ConfigError
from nasdaq_rmc.core.logger import logger

_MEDIA_TYPE_RE = re.compile(r"^[\w.+-]+/[\w.+-]+(\s*;\s*[\w.+-]+=\S+)*$")
_TRUE_VALUES = {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class SessionSettings:
    """Arguments for ``create_session`` gathered from the environment."""

    username: str
    password: str
    url: str
    timeout: float = DEFAULT_TIMEOUT_MS
    media_type: str = DEFAULT_MEDIA_TYPE
    debug: bool = DEFAULT_DEBUG

    def __repr__(self) -> str:
        return (
            f"SessionSettings(username={self.username!r}, password='***', url={self.url!r}, "
            f"timeout={self.timeout!r}, media_type={self.media_type!r}, debug={self.debug!r})"
        )


def validate_credentials(username: str | None, password: str | None) -> None:
    """Raise ConfigError unless both credentials are non-empty strings."""
    if not isinstance(username, str) or not username.strip():
        raise ConfigError("Credentials required: username is missing")
    if not isinstance(password, str) or not password:
        raise ConfigError("Credentials required: password is missing")


def validate_base_url(url: str | None) -> str:
    """Check that url is an absolute http(s) URI.

    Returns:
        The URL without a trailing slash, ready for path concatenation.
    """
    if not isinstance(url, str) or not url.strip():
        raise ConfigError("URL required.")

    try:
        parts = urlsplit(url.strip())
    except ValueError as exc:
        raise ConfigError(f"Invalid URL {url!r}: {exc}") from exc

    if parts.scheme.lower() not in SUPPORTED_URL_SCHEMES or not parts.netloc:
        raise ConfigError(f"URL must be an absolute http(s) URI, got {url!r}")

    return url.strip().rstrip("/")


def validate_timeout(timeout: float | None) -> float:
    """Return the timeout in milliseconds, applying the default for None."""
    if timeout is None:
        return DEFAULT_TIMEOUT_MS
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise ConfigError(f"Timeout must be a number of milliseconds, got {timeout!r}")
    if not math.isfinite(timeout) or timeout <= 0:
        raise ConfigError(f"Timeout must be a positive finite number, got {timeout!r}")
    return timeout


def validate_media_type(media_type: str | None) -> str:
    if media_type is None or media_type == "":
        return DEFAULT_MEDIA_TYPE
    if not isinstance(media_type, str) or not _MEDIA_TYPE_RE.match(media_type.strip()):
        raise ConfigError(f"Invalid media type: {media_type!r}")
    return media_type.strip()


def validate_environment() -> bool:
    """Check the NASDAQ_RMC_* variables needed by ``Session.from_env``.

    Returns:
        True when every required variable is set, False otherwise.
    """
    required_vars = {
        ENV_USERNAME: "RMC user name",
        ENV_PASSWORD: "RMC password",
        ENV_URL: "RMC base URL",
    }
    optional_vars = {
        ENV_TIMEOUT_MS: "Request timeout in milliseconds",
        ENV_MEDIA_TYPE: "Content-Type for business requests",
        ENV_DEBUG: "Raw wire logging",
    }

    missing = [name for name in required_vars if not (os.getenv(name) or "").strip()]
    for name in missing:
        logger.error("Missing required variable %s: %s", name, required_vars[name])

    if missing:
        logger.error("Set the variables in the environment or in config.env")
        return False

    missing_optional = [name for name in optional_vars if not (os.getenv(name) or "").strip()]
    if missing_optional:
        logger.debug("Optional variables not set, using defaults: %s", ", ".join(missing_optional))

    return True


def load_settings_from_env() -> SessionSettings:
    """Build SessionSettings from NASDAQ_RMC_* variables.

    Raises:
        ConfigError: a required variable is missing or a value does not parse.
    """
    if not validate_environment():
        raise ConfigError("Missing required NASDAQ_RMC_* environment variables")

    raw_timeout = (os.getenv(ENV_TIMEOUT_MS) or "").strip()
    try:
        timeout = float(raw_timeout) if raw_timeout else None
    except ValueError as exc:
        raise ConfigError(f"{ENV_TIMEOUT_MS} is not numeric: {raw_timeout!r}") from exc

    raw_debug = (os.getenv(ENV_DEBUG) or "").strip().lower()

    return SessionSettings(
        username=os.environ[ENV_USERNAME].strip(),
        password=os.environ[ENV_PASSWORD],
        url=validate_base_url(os.environ[ENV_URL]),
        timeout=validate_timeout(timeout),
        media_type=validate_media_type(os.getenv(ENV_MEDIA_TYPE)),
        debug=raw_debug in _TRUE_VALUES,
    )
