"""Webhook subscriptions."""

from __future__ import annotations

import logging

from ..errors import EmptyResponseError
from ..models import Webhook
from .base import BaseService, parse_list_page

logger = logging.getLogger(__name__)


class WebhooksService(BaseService):
    async def list(self) -> list[Webhook]:
        payload = await self.client.get_json("/webhooks")
        return parse_list_page(payload, "webhooks", Webhook).items

    async def subscribe(self, webhook: Webhook) -> Webhook:
        """Register `webhook.destination` for the events in `webhook.settings`."""
        if not webhook.settings:
            raise ValueError("webhook settings must name at least one event")
        body = {"destination": webhook.destination, "settings": webhook.settings}
        if webhook.sort is not None:
            body["sort"] = webhook.sort
        payload = await self.client.post_json("/webhooks", body)
        if payload is None:
            raise EmptyResponseError("no webhook returned from API")
        logger.info(f"Subscribed amoCRM webhook {webhook.destination}")
        return Webhook.model_validate(payload)

    async def unsubscribe(self, destination: str) -> None:
        await self.client.delete("/webhooks", {"destination": destination})
        logger.info(f"Unsubscribed amoCRM webhook {destination}")
