"""Conversion of RMC response bodies into pandas tables."""

from __future__ import annotations

import io
from typing import Any

import pandas as pd
import requests

from nasdaq_rmc.core.exceptions import NormalizationError
from nasdaq_rmc.core.logger import logger

_SCALARS = (str, int, float, bool, type(None))


def _media_type(response: requests.Response) -> str:
    return response.headers.get("Content-Type", "").split(";")[0].strip().lower()


def _is_json(media_type: str) -> bool:
    return media_type == "" or media_type.endswith("/json") or media_type.endswith("+json")


def _is_flat_value(value: Any) -> bool:
    if isinstance(value, _SCALARS):
        return True
    if isinstance(value, list):
        return all(isinstance(item, _SCALARS) for item in value)
    return False


def tabularize(payload: Any) -> pd.DataFrame:
    """Turn a decoded JSON value into a DataFrame.

    An object becomes a one-row table. An array becomes one row per element,
    provided every element is an object with the same keys. Column values
    must be scalars or lists of scalars.

    Raises:
        NormalizationError: the payload can not be flattened.
    """
    rows = [payload] if isinstance(payload, dict) else payload
    if not isinstance(rows, list) or not rows:
        raise NormalizationError(f"Cannot tabularize {type(payload).__name__} payload")

    if not all(isinstance(row, dict) for row in rows):
        raise NormalizationError("Array elements are not all objects")

    columns = list(rows[0])
    expected = set(columns)
    for position, row in enumerate(rows):
        if set(row) != expected:
            raise NormalizationError(f"Row {position} has different fields than row 0")
        for key, value in row.items():
            if not _is_flat_value(value):
                raise NormalizationError(f"Field {key!r} in row {position} is nested")

    return pd.DataFrame.from_records(rows, columns=columns)


def normalize_response(response: requests.Response) -> Any:
    """Best-effort structured view of a response body.

    Returns:
        None for an empty body (or an empty JSON array), a DataFrame for CSV
        and flat JSON, raw bytes for binary or text payloads, or the response
        itself when JSON can not be tabularized.
    """
    content = response.content
    if not content:
        return None

    media_type = _media_type(response)

    if media_type == "text/csv":
        try:
            return pd.read_csv(io.BytesIO(content))
        except (ValueError, pd.errors.ParserError) as exc:
            logger.debug("CSV body could not be parsed, returning response: %s", exc)
            return response

    if not _is_json(media_type):
        return content

    try:
        payload = response.json()
        if payload is None or payload == []:
            return None
        return tabularize(payload)
    except (NormalizationError, ValueError) as exc:
        logger.debug("Returning raw response for %s: %s", response.url, exc)
        return response
