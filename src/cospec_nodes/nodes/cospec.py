"""Action node: create coSPEC runs and fetch them by ID."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger
from pydantic import ValidationError

from cospec_nodes.errors import NodeOperationError
from cospec_nodes.nodes.base import NodeDescription
from cospec_nodes.normalize import flatten_run_output
from cospec_nodes.params import CreateRunParameters, GetRunParameters
from cospec_nodes.poller import RunPoller
from cospec_nodes.types import DataObject, ExecutionContext, NodeExecutionItem

CREATE_RUN = "Create Run"
GET_RUN = "Get Run"
OPERATIONS = (CREATE_RUN, GET_RUN)


class CospecNode:
    description = NodeDescription(
        name="cospec",
        display_name="coSPEC",
        description="Create, run, and manage AI coding agents on repositories",
        group="transform",
        operations=OPERATIONS,
    )

    async def execute(self, context: ExecutionContext) -> list[NodeExecutionItem]:
        """Run the selected operation for every input item, in order."""

        results: list[NodeExecutionItem] = []
        for index, parameters in enumerate(context.items):
            try:
                result = await self._run_operation(context, parameters)
            except Exception as exc:
                if context.continue_on_fail:
                    logger.warning("node.item_failed node={} item={} error={}", self.description.name, index, exc)
                    results.append(NodeExecutionItem(json={"error": _error_message(exc)}, paired_item=index))
                    continue
                if isinstance(exc, NodeOperationError):
                    exc.item_index = index
                    raise
                raise NodeOperationError(_error_message(exc), item_index=index) from exc

            results.append(NodeExecutionItem(json=result, paired_item=index))
        return results

    async def _run_operation(self, context: ExecutionContext, parameters: Mapping[str, Any]) -> DataObject:
        operation = parameters.get("operation", CREATE_RUN)
        if operation == CREATE_RUN:
            return await self._create_run(context, CreateRunParameters.model_validate(parameters))
        if operation == GET_RUN:
            return await self._get_run(context, GetRunParameters.model_validate(parameters))
        raise NodeOperationError(f"Unknown operation {operation!r}, expected one of: {', '.join(OPERATIONS)}")

    async def _create_run(self, context: ExecutionContext, parameters: CreateRunParameters) -> DataObject:
        response = await context.client.create_run(parameters.to_request_body())
        logger.info("run.created run_id={} repo={}", response.get("id"), parameters.repo)
        if not parameters.wait_for_completion:
            return response

        run_id = response.get("id")
        if not isinstance(run_id, str) or not run_id:
            raise NodeOperationError("coSPEC API did not return a run id")
        poller = RunPoller(context.client, clock=context.clock, sleep=context.sleep)
        return await poller.poll_until_complete(run_id, parameters.timeout_seconds)

    async def _get_run(self, context: ExecutionContext, parameters: GetRunParameters) -> DataObject:
        run = await context.client.get_run(parameters.run_id)
        return flatten_run_output(run)


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        return "; ".join(_describe_validation_error(error) for error in exc.errors())
    return str(exc) or type(exc).__name__


def _describe_validation_error(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = str(error.get("msg", "invalid value"))
    return f"{location}: {message}" if location else message
