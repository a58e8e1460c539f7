"""Verb-named wrapper over ``dispatch``."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from nasdaq_rmc.api.dispatcher import DispatchResult, dispatch
from nasdaq_rmc.api.session import Session


class RMCRestClient:
    """Thin client exposing one method per HTTP verb.

    Payloads that are not strings are serialized with ``json.dumps``.
    Nothing here raises on HTTP status; use ``DispatchResult.raise_for_status``.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    @staticmethod
    def _as_json(payload: Any) -> str | None:
        if payload is None or isinstance(payload, (str, bytes)):
            return payload
        return json.dumps(payload)

    def get(self, path: str) -> DispatchResult:
        return dispatch(self.session, "GET", path)

    def post(self, path: str, payload: Any = None) -> DispatchResult:
        """POST a JSON payload (dict, list or pre-encoded string)."""
        return dispatch(self.session, "POST", path, body=self._as_json(payload))

    def put(self, path: str) -> DispatchResult:
        """PUT without a body, the only form the service accepts through this client."""
        return dispatch(self.session, "PUT", path)

    def delete(self, path: str, payload: Any = None) -> DispatchResult:
        return dispatch(self.session, "DELETE", path, body=self._as_json(payload))

    def upload(self, path: str, file_path: str | Path, mime_type: str, **extra_fields: str) -> DispatchResult:
        """Multipart upload of one file.

        Args:
            path: Upload endpoint.
            file_path: Local file to send in the ``file`` field.
            mime_type: Value of the ``type`` field, e.g. ``application/zip``.
            extra_fields: Additional plain form fields.

        Returns:
            DispatchResult of the POST.
        """
        fields: dict[str, Any] = {"file": Path(file_path), "type": mime_type}
        fields.update(extra_fields)
        return dispatch(self.session, "POST", path, fields=fields)
