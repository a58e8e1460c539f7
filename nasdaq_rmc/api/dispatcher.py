"""Generic request dispatch for the RMC REST API."""

from __future__ import annotations

import contextlib
import mimetypes
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Mapping, Sequence, Tuple, Union

import requests

from nasdaq_rmc.api.normalizer import normalize_response
from nasdaq_rmc.api.session import Session
from nasdaq_rmc.api.transport import send, status_line
from nasdaq_rmc.core.exceptions import AuthError, RequestError, ValidationError
from nasdaq_rmc.core.logger import logger
from nasdaq_rmc.core.metrics import timed

Fields = Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]


class BodyPolicy(Enum):
    NONE = "none"
    RAW_OR_MULTIPART = "raw_or_multipart"
    RAW_IF_PRESENT = "raw_if_present"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, name: str | "HttpMethod") -> "HttpMethod":
        if isinstance(name, HttpMethod):
            return name
        try:
            return cls(str(name).strip().upper())
        except ValueError as exc:
            raise ValidationError(f"Unsupported HTTP method: {name!r}") from exc

    @property
    def body_policy(self) -> BodyPolicy:
        return _BODY_POLICIES[self]


# PUT bodies are dropped, matching the upstream wrapper; a warning is logged instead.
_BODY_POLICIES = {
    HttpMethod.GET: BodyPolicy.NONE,
    HttpMethod.PUT: BodyPolicy.NONE,
    HttpMethod.POST: BodyPolicy.RAW_OR_MULTIPART,
    HttpMethod.DELETE: BodyPolicy.RAW_IF_PRESENT,
}


@dataclass(frozen=True, eq=False)
class DispatchResult:
    """Outcome of one dispatched request.

    Any HTTP status lands here, 4xx and 5xx included; only transport
    failures raise. Unpacks as ``data, response``.
    """

    data: Any
    response: requests.Response

    def __iter__(self) -> Iterator[Any]:
        yield self.data
        yield self.response

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def status_line(self) -> str:
        return status_line(self.response)

    @property
    def ok(self) -> bool:
        return 200 <= self.response.status_code < 300

    def raise_for_status(self) -> "DispatchResult":
        """Raise RequestError for a non-2xx status, otherwise return self."""
        if not self.ok:
            raise RequestError(self.status_line, status_code=self.status_code, response=self.response)
        return self


def _field_items(fields: Fields) -> list[tuple[str, Any]]:
    if isinstance(fields, Mapping):
        return list(fields.items())
    return [(str(name), value) for name, value in fields]


def _encode(body: str | bytes) -> bytes:
    return body.encode("utf-8") if isinstance(body, str) else body


def _multipart_files(fields: Fields, stack: contextlib.ExitStack) -> list[tuple[str, tuple[Any, ...]]]:
    """requests ``files=`` entries: path-like and file objects as uploads, the rest as plain parts."""
    parts: list[tuple[str, tuple[Any, ...]]] = []
    for name, value in _field_items(fields):
        if isinstance(value, os.PathLike):
            path = os.fspath(value)
            handle = stack.enter_context(open(path, "rb"))
            filename = os.path.basename(path)
            mime = mimetypes.guess_type(filename)[0] or "application/octet-stream"
            parts.append((name, (filename, handle, mime)))
        elif hasattr(value, "read"):
            filename = os.path.basename(getattr(value, "name", name))
            mime = mimetypes.guess_type(filename)[0] or "application/octet-stream"
            parts.append((name, (filename, value, mime)))
        else:
            parts.append((name, (None, value if isinstance(value, bytes) else str(value))))
    return parts


def build_request(
    session: Session,
    method: str | HttpMethod,
    path: str,
    body: str | bytes | None = None,
    fields: Fields | None = None,
) -> requests.PreparedRequest:
    """Prepare the request that ``dispatch`` would send, without sending it.

    Raises:
        AuthError: the session carries no token.
        ValidationError: unknown method or malformed URI.
    """
    if not session.is_authenticated:
        raise AuthError("Session has no bearer token; authenticate first")

    verb = HttpMethod.parse(method)
    policy = verb.body_policy
    if not path.startswith("/"):
        path = f"/{path}"
    url = f"{session.url}{path}"
    headers = session.headers()

    data: bytes | None = None
    files: list[tuple[str, tuple[Any, ...]]] | None = None

    with contextlib.ExitStack() as stack:
        if policy is BodyPolicy.NONE:
            if body or fields:
                logger.warning("%s %s: body ignored, %s is sent without one", verb.value, path, verb.value)
        elif policy is BodyPolicy.RAW_OR_MULTIPART and fields:
            files = _multipart_files(fields, stack)
            # requests writes multipart/form-data with the boundary itself
            headers.pop("Content-Type")
            if body:
                logger.warning("POST %s: raw body ignored because multipart fields were given", path)
        elif policy is BodyPolicy.RAW_OR_MULTIPART:
            data = _encode(body) if body is not None else None
        else:
            if fields:
                logger.warning("DELETE %s: multipart fields ignored", path)
            data = _encode(body) if body else None

        try:
            return session.http.prepare_request(
                requests.Request(verb.value, url, headers=headers, data=data, files=files)
            )
        except (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema, ValueError) as exc:
            raise ValidationError(f"Invalid request URI {url!r}: {exc}") from exc


@timed
def dispatch(
    session: Session,
    method: str | HttpMethod,
    path: str,
    body: str | bytes | None = None,
    fields: Fields | None = None,
) -> DispatchResult:
    """Send one request to the RMC service and normalize the answer.

    Args:
        session: Authenticated session.
        method: GET, POST, PUT or DELETE, any case.
        path: Endpoint path appended to the session URL.
        body: Raw JSON string. Sent for POST and, when non-empty, DELETE.
        fields: Multipart fields for POST uploads, e.g.
            ``{"file": Path("exposure.zip"), "type": "application/zip"}``.

    Returns:
        DispatchResult, whatever the HTTP status.

    Raises:
        AuthError: the session carries no token.
        ValidationError: unknown method or malformed URI.
        TimeoutError: no answer within ``session.timeout``.
        TransportError: the request could not be delivered.
    """
    prepared = build_request(session, method, path, body=body, fields=fields)

    logger.debug("%s %s", prepared.method, prepared.url)
    response = send(session.http, prepared, session.timeout, debug=session.debug)
    logger.info("%s %s -> %s", prepared.method, prepared.url, response.status_code)

    return DispatchResult(normalize_response(response), response)
