"""Client for the Nasdaq Risk Modelling for Catastrophes (RMC) REST API."""

from nasdaq_rmc.api import (
    DispatchResult,
    HttpMethod,
    RMCRestClient,
    Session,
    build_request,
    create_session,
    dispatch,
)
from nasdaq_rmc.core.exceptions import (
    AuthError,
    ConfigError,
    NasdaqRMCError,
    NormalizationError,
    RequestError,
    TimeoutError,
    TransportError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "AuthError",
    "ConfigError",
    "DispatchResult",
    "HttpMethod",
    "NasdaqRMCError",
    "NormalizationError",
    "RMCRestClient",
    "RequestError",
    "Session",
    "TimeoutError",
    "TransportError",
    "ValidationError",
    "build_request",
    "create_session",
    "dispatch",
]
