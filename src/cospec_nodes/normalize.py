"""Run record normalization."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from cospec_nodes.types import DataObject

INTERNAL_FIELDS = frozenset(
    {
        "callbackUrl",
        "callbackStatus",
        "cancelRequestedAt",
        "templateId",
    }
)


def flatten_run_output(run: Mapping[str, Any]) -> DataObject:
    """Strip internal fields and lift the first output of each type to the top level.

    Only the first output of a given type is used. When a record has no output of
    a type, an already lifted value is kept, so normalizing twice is harmless.
    """

    filtered: DataObject = {key: value for key, value in run.items() if key not in INTERNAL_FIELDS}
    outputs = _output_records(filtered.get("outputs"))

    pr = _first_of_type(outputs, "pr")
    issue = _first_of_type(outputs, "issue")
    branch = _first_of_type(outputs, "branch")
    text = _first_of_type(outputs, "text")

    return {
        **filtered,
        "pr": _link(pr) if pr is not None else _carried_mapping(filtered, "pr"),
        "issue": _link(issue) if issue is not None else _carried_mapping(filtered, "issue"),
        "branch": {"name": branch.get("name")} if branch is not None else _carried_mapping(filtered, "branch"),
        "summary": text.get("content") if text is not None else _carried_text(filtered, "summary"),
    }


def _output_records(value: object) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _first_of_type(outputs: list[Mapping[str, Any]], output_type: str) -> Mapping[str, Any] | None:
    return next((output for output in outputs if output.get("type") == output_type), None)


def _link(output: Mapping[str, Any]) -> DataObject:
    return {"url": output.get("url"), "title": output.get("title"), "number": output.get("number")}


def _carried_mapping(record: Mapping[str, Any], key: str) -> DataObject | None:
    value = record.get(key)
    return dict(value) if isinstance(value, Mapping) else None


def _carried_text(record: Mapping[str, Any], key: str) -> str | None:
    value = record.get(key)
    return value if isinstance(value, str) else None
