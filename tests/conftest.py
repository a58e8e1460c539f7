"""Shared pytest fixtures."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any

import pytest
import requests

from nasdaq_rmc.api.session import Session
from nasdaq_rmc.core.metrics import MetricsCollector

BASE_URL = "https://mysite.nrmc.example.com"


def make_response(
    status: int = 200,
    body: Any = b"",
    content_type: str | None = "application/json",
    reason: str | None = None,
    url: str = BASE_URL,
) -> requests.Response:
    """Build a requests.Response without a network round trip."""
    response = requests.Response()
    response.status_code = status
    response.reason = reason if reason is not None else HTTPStatus(status).phrase
    if isinstance(body, (dict, list)):
        body = json.dumps(body).encode("utf-8")
    elif isinstance(body, str):
        body = body.encode("utf-8")
    response._content = body
    if content_type:
        response.headers["Content-Type"] = content_type
    response.encoding = "utf-8"
    response.url = url
    return response


class CapturingHttp(requests.Session):
    """requests.Session that records prepared requests instead of sending them."""

    def __init__(self) -> None:
        super().__init__()
        self.sent: list[requests.PreparedRequest] = []
        self.send_kwargs: list[dict[str, Any]] = []
        self.responses: list[requests.Response | Exception] = []

    def queue(self, item: requests.Response | Exception) -> None:
        self.responses.append(item)

    @property
    def last(self) -> requests.PreparedRequest:
        return self.sent[-1]

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:  # type: ignore[override]
        self.sent.append(request)
        self.send_kwargs.append(kwargs)
        item = self.responses.pop(0) if self.responses else make_response(204, content_type=None)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture()
def http() -> CapturingHttp:
    return CapturingHttp()


@pytest.fixture()
def session(http: CapturingHttp) -> Session:
    """Session that skipped the token exchange."""
    return Session(BASE_URL, "tok-123", username="alice", http=http)


@pytest.fixture(autouse=True)
def clean_metrics() -> None:
    MetricsCollector().reset()
