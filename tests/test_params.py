from __future__ import annotations

import pytest
from pydantic import ValidationError

from cospec_nodes.params import RUN_EVENTS, CreateRunParameters, GetRunParameters, Guardrails, TriggerParameters
from cospec_nodes.poller import DEFAULT_TIMEOUT_SECONDS


def test_minimal_body_uses_defaults() -> None:
    parameters = CreateRunParameters.model_validate({"repo": "acme/widgets", "prompt": "Fix the bug"})

    assert parameters.to_request_body() == {
        "repo": "acme/widgets",
        "prompt": "Fix the bug",
        "template": "node",
        "model": "sonnet",
    }
    assert parameters.wait_for_completion is True
    assert parameters.timeout_seconds == DEFAULT_TIMEOUT_SECONDS


def test_full_body_includes_optional_sections() -> None:
    parameters = CreateRunParameters.model_validate(
        {
            "repo": "https://github.com/acme/widgets",
            "prompt": "Add tests",
            "template": "python-3.12",
            "model": "opus",
            "branch": "develop",
            "waitForCompletion": False,
            "guardrails": {"timeoutSeconds": 600, "maxCostUsd": 2.5},
            "env": {"values": [{"key": "DEBUG", "value": "1"}, {"key": "REGION", "value": "eu"}]},
        }
    )

    assert parameters.to_request_body() == {
        "repo": "https://github.com/acme/widgets",
        "prompt": "Add tests",
        "template": "python-3.12",
        "model": "opus",
        "branch": "develop",
        "guardrails": {"timeoutSeconds": 600, "maxCostUsd": 2.5},
        "env": {"DEBUG": "1", "REGION": "eu"},
    }
    assert parameters.wait_for_completion is False
    assert parameters.timeout_seconds == 600


def test_env_accepts_plain_mapping_and_list() -> None:
    from_mapping = CreateRunParameters.model_validate({"repo": "r", "prompt": "p", "env": {"A": "1"}})
    from_list = CreateRunParameters.model_validate({"repo": "r", "prompt": "p", "env": [{"key": "A", "value": "1"}]})

    assert from_mapping.to_request_body()["env"] == {"A": "1"}
    assert from_list.to_request_body()["env"] == {"A": "1"}


def test_empty_env_collection_is_omitted() -> None:
    parameters = CreateRunParameters.model_validate({"repo": "r", "prompt": "p", "env": {"values": []}})

    assert "env" not in parameters.to_request_body()


@pytest.mark.parametrize(
    "guardrails",
    [
        {"timeoutSeconds": 29},
        {"timeoutSeconds": 3601},
        {"maxTurns": 0},
        {"maxTurns": 1001},
        {"maxCostUsd": 0.001},
        {"maxCostUsd": 1000.5},
    ],
)
def test_guardrail_bounds_are_enforced(guardrails: dict[str, float]) -> None:
    with pytest.raises(ValidationError):
        Guardrails.model_validate(guardrails)


def test_guardrail_bounds_are_inclusive() -> None:
    low = Guardrails.model_validate({"timeoutSeconds": 30, "maxTurns": 1, "maxCostUsd": 0.01})
    high = Guardrails.model_validate({"timeoutSeconds": 3600, "maxTurns": 1000, "maxCostUsd": 1000})

    assert low.to_payload() == {"timeoutSeconds": 30, "maxTurns": 1, "maxCostUsd": 0.01}
    assert high.to_payload() == {"timeoutSeconds": 3600, "maxTurns": 1000, "maxCostUsd": 1000}


@pytest.mark.parametrize("missing", ["repo", "prompt"])
def test_required_fields_must_not_be_blank(missing: str) -> None:
    values = {"repo": "acme/widgets", "prompt": "Fix it", missing: "   "}

    with pytest.raises(ValidationError):
        CreateRunParameters.model_validate(values)


def test_unknown_model_is_rejected() -> None:
    with pytest.raises(ValidationError):
        CreateRunParameters.model_validate({"repo": "r", "prompt": "p", "model": "gpt-4"})


def test_get_run_requires_run_id() -> None:
    assert GetRunParameters.model_validate({"runId": "run_abc123"}).run_id == "run_abc123"
    with pytest.raises(ValidationError):
        GetRunParameters.model_validate({})


def test_trigger_events_default_and_validation() -> None:
    assert TriggerParameters.model_validate({}).events == list(RUN_EVENTS)
    assert TriggerParameters.model_validate({"events": ["run.failed"]}).events == ["run.failed"]
    with pytest.raises(ValidationError):
        TriggerParameters.model_validate({"events": []})
    with pytest.raises(ValidationError):
        TriggerParameters.model_validate({"events": ["run.started"]})
