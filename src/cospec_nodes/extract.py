"""User-facing message extraction for failed coSPEC API calls.

The host HTTP layer replaces the exception message with generic status text, so
the real reason has to be recovered from the response body. The body can sit in
two places depending on how far the request got:

1. ``error.context["data"]``, the copy kept by the host wrapper.
2. ``error.__cause__.response``, the original httpx exception's response.

The coSPEC API answers with RFC 9457 problem bodies.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

UNKNOWN_API_ERROR = "Unknown API error"


def extract_api_error_message(error: object) -> str:
    """Return the most specific message available for ``error``. Never raises."""

    context_data = _as_mapping(_field(_field(error, "context"), "data"))
    if context_data is not None:
        message = extract_problem_message(context_data)
        if message:
            return message

    cause_data = _as_mapping(_response_data(_field(_cause_of(error), "response")))
    if cause_data is not None:
        message = extract_problem_message(cause_data)
        if message:
            return message

    description = _field(error, "description")
    if isinstance(description, str) and description:
        return description

    message = _field(error, "message")
    if message is None and isinstance(error, BaseException):
        message = str(error)
    if isinstance(message, str) and message:
        return message
    return UNKNOWN_API_ERROR


def extract_problem_message(body: Mapping[str, Any]) -> str | None:
    """Pick ``detail``, then the first validation error, then ``title``."""

    detail = body.get("detail")
    if isinstance(detail, str):
        return detail

    errors = body.get("errors")
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, Mapping) and isinstance(first.get("message"), str):
            return str(first["message"])

    title = body.get("title")
    if isinstance(title, str):
        return title

    return None


def _field(source: object, name: str) -> Any:
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(name)
    try:
        return getattr(source, name, None)
    except Exception:
        return None


def _cause_of(error: object) -> Any:
    cause = _field(error, "cause")
    if cause is None and isinstance(error, BaseException):
        cause = error.__cause__
    return cause


def _response_data(response: object) -> Any:
    data = _field(response, "data")
    if data is not None:
        return data
    if isinstance(response, httpx.Response):
        try:
            return response.json()
        except ValueError:
            return None
    return None


def _as_mapping(value: object) -> Mapping[str, Any] | None:
    if isinstance(value, Mapping):
        return value
    return None
