"""Webhook notifications for status events."""

from __future__ import annotations

import logging

import httpx

from .models.events import EventKind, StatusEvent

logger = logging.getLogger(__name__)

NOTIFY_KINDS = {EventKind.PURCHASE_OUTCOME, EventKind.MONITOR_ERROR, EventKind.FLASH_SALE}


class WebhookNotifier:
    """POSTs selected events as JSON to a webhook URL. Never raises."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        kinds: set[EventKind] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = url
        self._timeout = timeout
        self._transport = transport
        self._kinds = kinds if kinds is not None else NOTIFY_KINDS

    def wants(self, event: StatusEvent) -> bool:
        return event.kind in self._kinds

    async def notify(self, event: StatusEvent) -> bool:
        if not self.wants(event):
            return False
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(self._url, json=event.model_dump(mode="json"))
            if resp.status_code >= 400:
                logger.warning(f"Webhook returned HTTP {resp.status_code} for {event.kind.value}")
                return False
            return True
        except httpx.TimeoutException:
            logger.warning(f"Webhook timed out for {event.kind.value}")
        except httpx.HTTPError as e:
            logger.warning(f"Webhook failed for {event.kind.value}: {e}")
        return False
