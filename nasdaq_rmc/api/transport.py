"""Shared HTTP plumbing for the session and the dispatcher."""

from __future__ import annotations

import contextlib
import http.client
import logging
import threading
from typing import Iterator

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from nasdaq_rmc.core.constants import HTTP_MAX_RETRIES, HTTP_POOL_SIZE
from nasdaq_rmc.core.exceptions import TimeoutError, TransportError
from nasdaq_rmc.core.logger import logger

_HTTP_VERSIONS = {10: "HTTP/1.0", 11: "HTTP/1.1", 20: "HTTP/2"}


def build_http_session() -> requests.Session:
    """Create the requests session backing one RMC session.

    Retries are switched off explicitly; every dispatch is a single exchange.
    """
    session = requests.Session()

    # read=False makes urllib3 re-raise read timeouts, so requests reports ReadTimeout
    retry_strategy = Retry(total=HTTP_MAX_RETRIES, read=False, raise_on_status=False)
    adapter = HTTPAdapter(
        max_retries=retry_strategy,
        pool_connections=HTTP_POOL_SIZE,
        pool_maxsize=HTTP_POOL_SIZE,
    )

    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def timeout_seconds(timeout_ms: float) -> tuple[float, float]:
    """(connect, read) tuple for requests from a millisecond timeout."""
    seconds = timeout_ms / 1000.0
    return seconds, seconds


_wire_debug_lock = threading.Lock()
_wire_debug_users = 0
_wire_debug_saved: tuple[int, int] = (0, logging.NOTSET)


@contextlib.contextmanager
def wire_debug(enabled: bool) -> Iterator[None]:
    """Dump raw request/response lines through http.client and urllib3 while active.

    Both switches are process-wide, so they are restored once the last
    debug call in flight leaves the block.
    """
    global _wire_debug_users, _wire_debug_saved

    if not enabled:
        yield
        return

    urllib3_logger = logging.getLogger("urllib3")
    with _wire_debug_lock:
        if _wire_debug_users == 0:
            _wire_debug_saved = (http.client.HTTPConnection.debuglevel, urllib3_logger.level)
            http.client.HTTPConnection.debuglevel = 1
            urllib3_logger.setLevel(logging.DEBUG)
        _wire_debug_users += 1

    try:
        yield
    finally:
        with _wire_debug_lock:
            _wire_debug_users -= 1
            if _wire_debug_users == 0:
                debuglevel, level = _wire_debug_saved
                http.client.HTTPConnection.debuglevel = debuglevel
                urllib3_logger.setLevel(level)


def status_line(response: requests.Response) -> str:
    """Render the response status line, e.g. ``HTTP/1.1 401 Unauthorized``."""
    version = _HTTP_VERSIONS.get(getattr(response.raw, "version", None), "HTTP/1.1")
    reason = response.reason or http.client.responses.get(response.status_code, "")
    return f"{version} {response.status_code} {reason}".rstrip()


def send(
    http: requests.Session,
    prepared: requests.PreparedRequest,
    timeout_ms: float,
    debug: bool = False,
) -> requests.Response:
    """Send one prepared request, translating requests failures.

    Raises:
        TimeoutError: connect or read timeout exceeded.
        TransportError: any other failure before a response arrived.
    """
    settings = http.merge_environment_settings(prepared.url, {}, None, None, None)
    try:
        with wire_debug(debug):
            return http.send(prepared, timeout=timeout_seconds(timeout_ms), **settings)
    except requests.exceptions.Timeout as exc:
        logger.warning("%s %s timed out after %sms", prepared.method, prepared.url, timeout_ms)
        raise TimeoutError(f"{prepared.method} {prepared.url} timed out after {timeout_ms}ms") from exc
    except requests.exceptions.RequestException as exc:
        logger.error("%s %s failed: %s", prepared.method, prepared.url, exc)
        raise TransportError(f"{prepared.method} {prepared.url} failed: {exc}") from exc
