"""End-to-end tests against a throwaway local HTTP server."""

from __future__ import annotations

import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Iterator

import pandas as pd
import pytest

from nasdaq_rmc.api.dispatcher import dispatch
from nasdaq_rmc.api.session import create_session
from nasdaq_rmc.core.exceptions import AuthError, TimeoutError

TOKEN_PATH = "/keycloak/auth/realms/nrmc/protocol/openid-connect/token"
SLOW_SECONDS = 1.5


class FakeRMCHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"
    captured: list[dict[str, Any]] = []

    def log_message(self, format: str, *args: Any) -> None:
        pass

    def _read_body(self) -> bytes:
        length = int(self.headers.get("Content-Length") or 0)
        return self.rfile.read(length) if length else b""

    def _reply(self, status: int, body: bytes = b"", content_type: str = "application/json") -> None:
        try:
            self.send_response(status)
            if body:
                self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def _handle(self) -> None:
        body = self._read_body()
        self.captured.append({"method": self.command, "path": self.path, "headers": dict(self.headers), "body": body})

        if self.path == TOKEN_PATH:
            if b"username=alice" in body:
                self._reply(200, json.dumps({"access_token": "live-token"}).encode())
            else:
                self._reply(401, json.dumps({"error": "invalid_grant"}).encode())
        elif self.path == "/api/v1/slow":
            time.sleep(SLOW_SECONDS)
            self._reply(200, b"{}")
        elif self.path == "/api/v1/portfolios":
            self._reply(200, json.dumps([{"id": 1, "name": "A"}, {"id": 2, "name": "B"}]).encode())
        else:
            self._reply(204)

    do_GET = _handle
    do_POST = _handle
    do_PUT = _handle
    do_DELETE = _handle


@pytest.fixture()
def server(monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")
    monkeypatch.setenv("no_proxy", "127.0.0.1,localhost")
    FakeRMCHandler.captured = []
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), FakeRMCHandler)
    httpd.daemon_threads = True
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{httpd.server_address[1]}"
    finally:
        httpd.shutdown()
        httpd.server_close()


def test_login_and_list(server: str) -> None:
    with create_session("alice", "s3cret", server, timeout=2000) as session:
        data, response = dispatch(session, "GET", "/api/v1/portfolios")

    assert session.token == "live-token"
    assert response.status_code == 200
    assert isinstance(data, pd.DataFrame)
    assert data["name"].tolist() == ["A", "B"]

    business = FakeRMCHandler.captured[-1]
    assert business["headers"]["Authorization"] == "Bearer live-token"


def test_rejected_login_reports_status_line(server: str) -> None:
    with pytest.raises(AuthError) as excinfo:
        create_session("mallory", "guess", server, timeout=2000)

    assert str(excinfo.value) == "HTTP/1.1 401 Unauthorized"


def test_slow_endpoint_times_out(server: str) -> None:
    session = create_session("alice", "s3cret", server, timeout=2000)
    fast = type(session)(session.url, session.token, timeout=300, http=session.http)

    with pytest.raises(TimeoutError):
        dispatch(fast, "GET", "/api/v1/slow")


def test_bodies_on_the_wire(server: str) -> None:
    with create_session("alice", "s3cret", server, timeout=2000) as session:
        dispatch(session, "PUT", "/api/v1/jobs/1", body='{"ignored": true}')
        dispatch(session, "DELETE", "/api/v1/jobs", body="[1]")
        result = dispatch(session, "DELETE", "/api/v1/jobs/2")

    put, delete_with_body, delete_without_body = FakeRMCHandler.captured[-3:]
    assert put["body"] == b""
    assert delete_with_body["body"] == b"[1]"
    assert delete_without_body["body"] == b""
    assert result.data is None


def test_debug_session_does_not_leak_into_later_sessions(server: str, capfd: pytest.CaptureFixture[str]) -> None:
    with create_session("alice", "debug-pw", server, timeout=2000, debug=True) as noisy:
        dispatch(noisy, "GET", "/api/v1/portfolios")
    debug_out = capfd.readouterr().out
    assert "send:" in debug_out
    assert "Bearer live-token" in debug_out

    with create_session("alice", "TOPSECRETPW", server, timeout=2000) as quiet:
        dispatch(quiet, "GET", "/api/v1/portfolios")
    captured = capfd.readouterr()

    assert "TOPSECRETPW" not in captured.out + captured.err
    assert "Bearer" not in captured.out + captured.err
    assert "send:" not in captured.out
