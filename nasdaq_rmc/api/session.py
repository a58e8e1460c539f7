"""Authenticated connection to a Nasdaq RMC deployment."""

from __future__ import annotations

from typing import Any

import requests

from nasdaq_rmc.api.transport import build_http_session, send, status_line
from nasdaq_rmc.core.config_validator import (
    load_settings_from_env,
    validate_base_url,
    validate_credentials,
    validate_media_type,
    validate_timeout,
)
from nasdaq_rmc.core.constants import (
    ACCEPT_ANY,
    AUTH_CLIENT_ID,
    AUTH_CONTENT_TYPE,
    AUTH_GRANT_TYPE,
    AUTH_PATH,
    AUTH_SCOPE,
    DEFAULT_DEBUG,
)
from nasdaq_rmc.core.exceptions import AuthError
from nasdaq_rmc.core.logger import logger
from nasdaq_rmc.core.metrics import timed


@timed
def request_token(
    http: requests.Session,
    url: str,
    username: str,
    password: str,
    timeout: float,
    debug: bool = False,
) -> str:
    """Run the Keycloak password grant and return the access token.

    Args:
        http: requests session used for the exchange.
        url: Validated base URL, without trailing slash.
        username: RMC user name.
        password: RMC password. Only used to build the form body.
        timeout: Connect and read timeout in milliseconds.
        debug: Enable raw wire logging.

    Returns:
        The ``access_token`` from the token endpoint.

    Raises:
        AuthError: status other than 200, or no token in the body.
        TimeoutError: the token endpoint did not answer in time.
        TransportError: the token endpoint could not be reached.
    """
    form = [
        ("grant_type", AUTH_GRANT_TYPE),
        ("scope", AUTH_SCOPE),
        ("client_id", AUTH_CLIENT_ID),
        ("username", username),
        ("password", password),
    ]
    prepared = http.prepare_request(
        requests.Request(
            "POST",
            f"{url}{AUTH_PATH}",
            headers={"Content-Type": AUTH_CONTENT_TYPE},
            data=form,
        )
    )

    logger.info("Requesting access token from %s", url)
    response = send(http, prepared, timeout, debug=debug)

    if response.status_code != 200:
        line = status_line(response)
        logger.error("Authentication failed for %s: %s", username, line)
        raise AuthError(line, status_code=response.status_code)

    try:
        token = response.json().get("access_token")
    except (ValueError, AttributeError) as exc:
        raise AuthError(f"Token endpoint returned an unreadable body: {exc}", status_code=200) from exc

    if not isinstance(token, str) or not token:
        raise AuthError("Token endpoint response has no access_token", status_code=200)

    logger.debug("Authenticated %s", username)
    return token


class Session:
    """Bearer-token session for the RMC REST API.

    The password is used once for the token exchange and never stored. The
    URL, token, timeout, user name and debug flag are read-only;
    ``content_type`` may be changed between calls (for example to switch to
    multipart uploads). Changing it from several threads at once is the
    caller's responsibility.

    Example:
        >>> session = create_session("user", "secret", "https://mysite.nrmc.nasdaq.com")
        >>> data, response = dispatch(session, "GET", "/api/v1/portfolios")
    """

    def __init__(
        self,
        url: str,
        token: str,
        username: str = "",
        timeout: float | None = None,
        content_type: str | None = None,
        debug: bool = DEFAULT_DEBUG,
        http: requests.Session | None = None,
    ) -> None:
        if not isinstance(token, str) or not token:
            raise AuthError("Session has no bearer token; authenticate first")

        self._url = validate_base_url(url)
        self._token = token
        self._username = username
        self._timeout = validate_timeout(timeout)
        self._debug = bool(debug)
        self._http = http if http is not None else build_http_session()
        self.content_type = content_type

    @classmethod
    def authenticate(
        cls,
        username: str,
        password: str,
        url: str,
        timeout: float | None = None,
        media_type: str | None = None,
        debug: bool | None = None,
        http: requests.Session | None = None,
    ) -> "Session":
        """Validate the arguments, exchange credentials for a token, build the session.

        Raises:
            ConfigError: missing credentials or invalid url, timeout or media type.
            AuthError: the token exchange was rejected.
            TimeoutError: the token endpoint did not answer in time.
            TransportError: the token endpoint could not be reached.
        """
        validate_credentials(username, password)
        base_url = validate_base_url(url)
        timeout_ms = validate_timeout(timeout)
        content_type = validate_media_type(media_type)
        debug = DEFAULT_DEBUG if debug is None else bool(debug)

        owns_http = http is None
        http = build_http_session() if owns_http else http
        try:
            token = request_token(http, base_url, username, password, timeout_ms, debug=debug)
        except Exception:
            if owns_http:
                http.close()
            raise

        return cls(
            base_url,
            token,
            username=username,
            timeout=timeout_ms,
            content_type=content_type,
            debug=debug,
            http=http,
        )

    @classmethod
    def from_env(cls, http: requests.Session | None = None) -> "Session":
        """Authenticate with the NASDAQ_RMC_* variables (config.env is honored)."""
        settings = load_settings_from_env()
        return cls.authenticate(
            settings.username,
            settings.password,
            settings.url,
            timeout=settings.timeout,
            media_type=settings.media_type,
            debug=settings.debug,
            http=http,
        )

    @property
    def url(self) -> str:
        return self._url

    @property
    def token(self) -> str:
        return self._token

    @property
    def username(self) -> str:
        return self._username

    @property
    def timeout(self) -> float:
        """Request timeout in milliseconds."""
        return self._timeout

    @property
    def debug(self) -> bool:
        return self._debug

    @property
    def http(self) -> requests.Session:
        return self._http

    @property
    def content_type(self) -> str:
        return self._content_type

    @content_type.setter
    def content_type(self, value: str | None) -> None:
        self._content_type = validate_media_type(value)

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def headers(self) -> dict[str, str]:
        """Headers sent with every business request."""
        return {
            "Accept": ACCEPT_ANY,
            "Authorization": f"Bearer {self._token}",
            "Content-Type": self._content_type,
        }

    def close(self) -> None:
        """Release pooled connections. The token is simply dropped, there is no logout."""
        self._http.close()

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"Session(url={self._url!r}, username={self._username!r}, "
            f"timeout={self._timeout!r}, content_type={self._content_type!r}, debug={self._debug!r})"
        )


def create_session(
    username: str,
    password: str,
    url: str,
    timeout: float | None = None,
    media_type: str | None = None,
    debug: bool | None = None,
    http: requests.Session | None = None,
) -> Session:
    """Authenticate and return a ready Session. See ``Session.authenticate``."""
    return Session.authenticate(
        username,
        password,
        url,
        timeout=timeout,
        media_type=media_type,
        debug=debug,
        http=http,
    )
