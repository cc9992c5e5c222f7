"""Structured status events: logged, kept in memory, journaled, and pushed.

One event is emitted per state transition so an operator can reconstruct a
run from the log or the journal alone. Emission is best-effort and never
raises into the caller. Webhook delivery runs in background tasks so a slow
endpoint never holds up the poll loops; ``aclose`` drains them on shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Optional

from .models.events import EventKind, StatusEvent
from .models.purchase import PurchaseAttempt

logger = logging.getLogger("livestream_bot.events")

_WARNING_KINDS = {EventKind.MONITOR_ERROR}


class EventRecorder:
    """Fans status events out to the log, a ring buffer, SQLite and a webhook."""

    def __init__(self, repository=None, notifier=None, history: int = 500):
        self._repository = repository
        self._notifier = notifier
        self._history: deque[StatusEvent] = deque(maxlen=history)
        self._pending: set[asyncio.Task] = set()

    async def emit(
        self,
        kind: EventKind,
        message: str = "",
        stream_id: Optional[int] = None,
        **data: Any,
    ) -> StatusEvent:
        event = StatusEvent(kind=kind, message=message, stream_id=stream_id, data=data)
        self._history.append(event)

        prefix = f"[Stream {stream_id}] " if stream_id is not None else ""
        level = logging.WARNING if kind in _WARNING_KINDS else logging.INFO
        logger.log(level, f"{prefix}{kind.value}: {message}")

        if self._repository is not None:
            try:
                await self._repository.insert_event(event)
            except Exception as e:
                logger.warning(f"Could not journal {kind.value} event: {e}")

        if self._notifier is not None:
            task = asyncio.create_task(self._notify(event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        return event

    async def _notify(self, event: StatusEvent):
        try:
            await self._notifier.notify(event)
        except Exception as e:
            logger.warning(f"Could not notify {event.kind.value} event: {e}")

    @property
    def pending_notifications(self) -> int:
        return len(self._pending)

    async def aclose(self, timeout: float = 2.0):
        """Wait up to ``timeout`` for in-flight notifications, then cancel the rest."""
        if not self._pending:
            return
        pending = set(self._pending)
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(f"Dropped {len(still_running)} pending notification(s) on shutdown")
            await asyncio.gather(*still_running, return_exceptions=True)

    async def record_purchase(self, attempt: PurchaseAttempt):
        """Journal one purchase attempt row alongside its event."""
        if self._repository is None:
            return
        try:
            await self._repository.insert_purchase_attempt(attempt)
        except Exception as e:
            logger.warning(f"Could not journal purchase attempt: {e}")

    def recent(self, limit: int = 50, kind: Optional[EventKind] = None) -> list[StatusEvent]:
        """Most recent events first."""
        events = [e for e in reversed(self._history) if kind is None or e.kind == kind]
        return events[:limit]
