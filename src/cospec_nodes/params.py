"""Resolved node parameters.

Host parameter forms arrive as plain mappings with camelCase keys. They are
validated once per item, before any request is made.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cospec_nodes.poller import DEFAULT_TIMEOUT_SECONDS
from cospec_nodes.types import DataObject

ModelName = Literal["sonnet", "opus", "haiku"]
RunEvent = Literal["run.completed", "run.failed", "run.cancelled"]

RUN_EVENTS: tuple[RunEvent, ...] = ("run.completed", "run.failed", "run.cancelled")


class _Parameters(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)


class Guardrails(_Parameters):
    """Limits enforced by the service while the run executes."""

    timeout_seconds: int | None = Field(None, ge=30, le=3600, alias="timeoutSeconds")
    max_turns: int | None = Field(None, ge=1, le=1000, alias="maxTurns")
    max_cost_usd: float | None = Field(None, ge=0.01, le=1000, alias="maxCostUsd")

    def to_payload(self) -> DataObject:
        return self.model_dump(by_alias=True, exclude_none=True)


class EnvironmentVariable(_Parameters):
    key: str = Field(min_length=1)
    value: str = ""


class CreateRunParameters(_Parameters):
    repo: str = Field(min_length=1)
    prompt: str = Field(min_length=1)
    template: str = Field(default="node", min_length=1)
    model: ModelName = "sonnet"
    branch: str = ""
    wait_for_completion: bool = Field(default=True, alias="waitForCompletion")
    guardrails: Guardrails = Field(default_factory=Guardrails)
    env: list[EnvironmentVariable] = Field(default_factory=list)

    @field_validator("guardrails", mode="before")
    @classmethod
    def _empty_guardrails(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("env", mode="before")
    @classmethod
    def _env_entries(cls, value: Any) -> Any:
        # Accepts {"values": [...]} collections and plain {KEY: value} mappings.
        if value is None:
            return []
        if isinstance(value, Mapping):
            if "values" in value:
                return value["values"] or []
            return [{"key": key, "value": item} for key, item in value.items()]
        return value

    @property
    def timeout_seconds(self) -> int:
        return self.guardrails.timeout_seconds or DEFAULT_TIMEOUT_SECONDS

    def to_request_body(self) -> DataObject:
        """Build the POST /v1/runs payload."""

        body: DataObject = {
            "repo": self.repo,
            "prompt": self.prompt,
            "template": self.template,
            "model": self.model,
        }
        if self.branch:
            body["branch"] = self.branch

        guardrails = self.guardrails.to_payload()
        if guardrails:
            body["guardrails"] = guardrails

        if self.env:
            body["env"] = {entry.key: entry.value for entry in self.env}
        return body


class GetRunParameters(_Parameters):
    run_id: str = Field(min_length=1, alias="runId")


class TriggerParameters(_Parameters):
    events: list[RunEvent] = Field(default_factory=lambda: list(RUN_EVENTS), min_length=1)
