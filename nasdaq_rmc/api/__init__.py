"""Session, dispatch and response normalization for the RMC REST API."""

from nasdaq_rmc.api.dispatcher import DispatchResult, HttpMethod, build_request, dispatch
from nasdaq_rmc.api.normalizer import normalize_response, tabularize
from nasdaq_rmc.api.rest_wrapper import RMCRestClient
from nasdaq_rmc.api.session import Session, create_session

__all__ = [
    "DispatchResult",
    "HttpMethod",
    "RMCRestClient",
    "Session",
    "build_request",
    "create_session",
    "dispatch",
    "normalize_response",
    "tabularize",
]
