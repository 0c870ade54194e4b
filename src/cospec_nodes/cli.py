"""coSPEC nodes command line."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

import typer

from cospec_nodes.client import CospecClient
from cospec_nodes.config import get_settings
from cospec_nodes.errors import CospecError
from cospec_nodes.host import NodeHost
from cospec_nodes.logging_utils import configure_logging
from cospec_nodes.nodes.cospec import CREATE_RUN, GET_RUN

app = typer.Typer(name="cospec-nodes", help="Run coSPEC coding agents from the command line", add_completion=False)


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Log level, defaults to the COSPEC_LOG_LEVEL setting"),
) -> None:
    configure_logging(log_level or get_settings().log_level, profile="cli")


@app.command("nodes")
def list_nodes() -> None:
    """Show registered node types."""

    host = NodeHost()
    for name, node in sorted(host.node_types.items()):
        operations = ", ".join(node.description.operations) or "-"
        typer.echo(f"{name} ({node.description.group}) {node.description.display_name}: operations={operations}")


@app.command("create")
def create_run(
    repo: str = typer.Argument(..., help="GitHub repository, owner/repo or full URL"),
    prompt: str = typer.Argument(..., help="Instruction for the agent"),
    template: str = typer.Option("node", "--template", "-t", help="Template slug or ID"),
    model: str = typer.Option("sonnet", "--model", "-m", help="sonnet, opus or haiku"),
    branch: str = typer.Option("", "--branch", "-b", help="Branch to clone"),
    wait: bool = typer.Option(True, "--wait/--no-wait", help="Poll until the run finishes"),
    timeout_seconds: int | None = typer.Option(None, "--timeout", help="Run timeout in seconds (30-3600)"),
    max_turns: int | None = typer.Option(None, "--max-turns", help="Max agent turns (1-1000)"),
    max_cost_usd: float | None = typer.Option(None, "--max-cost", help="Max cost in USD (0.01-1000)"),
    env: list[str] = typer.Option([], "--env", "-e", help="KEY=VALUE environment variable"),  # noqa: B008
) -> None:
    """Create a run and, by default, wait for it to finish."""

    guardrails = {
        "timeoutSeconds": timeout_seconds,
        "maxTurns": max_turns,
        "maxCostUsd": max_cost_usd,
    }
    parameters: dict[str, Any] = {
        "operation": CREATE_RUN,
        "repo": repo,
        "prompt": prompt,
        "template": template,
        "model": model,
        "branch": branch,
        "waitForCompletion": wait,
        "guardrails": {key: value for key, value in guardrails.items() if value is not None},
        "env": _parse_env(env),
    }
    _echo_json(_run(lambda client: _execute(client, parameters)))


@app.command("get")
def get_run(run_id: str = typer.Argument(..., help="The ID of the run to fetch")) -> None:
    """Fetch run details by ID."""

    _echo_json(_run(lambda client: _execute(client, {"operation": GET_RUN, "runId": run_id})))


@app.command("whoami")
def whoami() -> None:
    """Check the configured API key."""

    _echo_json(_run(lambda client: client.verify_credentials()))


def build_client() -> CospecClient:
    return CospecClient.from_settings(get_settings())


async def _execute(client: CospecClient, parameters: dict[str, Any]) -> Any:
    items = await NodeHost().execute_node("cospec", [parameters], client=client)
    return items[0].json


def _run(operation: Callable[[CospecClient], Awaitable[Any]]) -> Any:
    async def _main() -> Any:
        async with build_client() as client:
            return await operation(client)

    try:
        return asyncio.run(_main())
    except CospecError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(1) from exc


def _parse_env(entries: list[str]) -> dict[str, str]:
    env: dict[str, str] = {}
    for entry in entries:
        key, separator, value = entry.partition("=")
        if not separator or not key.strip():
            raise typer.BadParameter(f"expected KEY=VALUE, got {entry!r}", param_hint="--env")
        env[key.strip()] = value
    return env


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
