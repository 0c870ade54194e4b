"""Trigger node: receive coSPEC run events through a registered webhook."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger

from cospec_nodes.errors import ApiError, WebhookRegistrationError
from cospec_nodes.nodes.base import NodeDescription, WebhookDescription
from cospec_nodes.normalize import flatten_run_output
from cospec_nodes.params import TriggerParameters
from cospec_nodes.types import DataObject, HookContext, NodeExecutionItem, WebhookResponse

WEBHOOK_ID_KEY = "webhookId"


class CospecTrigger:
    description = NodeDescription(
        name="cospecTrigger",
        display_name="coSPEC Trigger",
        description="Triggers when a coSPEC agent run completes, fails, or is cancelled",
        group="trigger",
        webhooks=(WebhookDescription(),),
    )

    async def check_exists(self, context: HookContext) -> bool:
        """Check the stored webhook against the service, forgetting it when stale."""

        webhook_id = context.store.get(context.instance_key, WEBHOOK_ID_KEY)
        if not webhook_id:
            return False

        try:
            webhooks = await context.client.list_webhooks()
        except ApiError as exc:
            logger.warning("webhook.check_failed instance={} error={}", context.instance_key, exc)
            context.store.delete(context.instance_key, WEBHOOK_ID_KEY)
            return False

        exists = any(webhook.get("id") == webhook_id for webhook in webhooks)
        if not exists:
            logger.info("webhook.missing instance={} webhook_id={}", context.instance_key, webhook_id)
            context.store.delete(context.instance_key, WEBHOOK_ID_KEY)
        return exists

    async def create(self, context: HookContext) -> bool:
        parameters = TriggerParameters.model_validate(context.parameters)
        try:
            response = await context.client.create_webhook(context.webhook_url, parameters.events)
        except ApiError as exc:
            raise WebhookRegistrationError(f"Failed to register webhook: {exc.message or 'Unknown error'}") from exc

        webhook_id = response.get("id")
        if not webhook_id:
            raise WebhookRegistrationError("Failed to register webhook: response did not include a webhook id")

        context.store.set(context.instance_key, WEBHOOK_ID_KEY, webhook_id)
        logger.info("webhook.created instance={} webhook_id={} events={}", context.instance_key, webhook_id, parameters.events)
        return True

    async def delete(self, context: HookContext) -> bool:
        webhook_id = context.store.get(context.instance_key, WEBHOOK_ID_KEY)
        if not webhook_id:
            return True

        try:
            await context.client.delete_webhook(str(webhook_id))
        except ApiError as exc:
            # Already removed on the service side.
            logger.debug("webhook.delete_failed instance={} webhook_id={} error={}", context.instance_key, webhook_id, exc)
        context.store.delete(context.instance_key, WEBHOOK_ID_KEY)
        return True

    def webhook(self, body: DataObject) -> WebhookResponse:
        output = build_trigger_output(body)
        return WebhookResponse(workflow_data=[[NodeExecutionItem(json=output)]])


def build_trigger_output(body: Mapping[str, Any]) -> DataObject:
    """Shape one inbound event; run payloads are normalized like action node output."""

    run = body.get("run")
    if not isinstance(run, Mapping):
        return {"event": body.get("event"), "timestamp": body.get("timestamp")}
    return {"event": body.get("event"), "timestamp": body.get("timestamp"), **flatten_run_output(run)}
