"""Custom exceptions for the Nasdaq RMC client."""

from __future__ import annotations

import builtins
from typing import Any


class NasdaqRMCError(Exception):
    """Base exception for client errors."""


class ConfigError(NasdaqRMCError):
    """Missing or invalid session configuration."""


class ValidationError(NasdaqRMCError, ValueError):
    """Invalid request argument (method name, path)."""


class AuthError(NasdaqRMCError):
    """Token exchange failed or session has no token."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RequestError(NasdaqRMCError):
    """Non-2xx response on a business endpoint."""

    def __init__(self, message: str, status_code: int, response: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class TransportError(NasdaqRMCError):
    """Connection, DNS or TLS failure while talking to the service."""


class TimeoutError(TransportError, builtins.TimeoutError):
    """Connect or response timeout exceeded."""


class NormalizationError(NasdaqRMCError):
    """Response body could not be turned into a table."""
