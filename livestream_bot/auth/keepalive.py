"""Background session keep-alive while the monitors run."""

from __future__ import annotations

import logging
from typing import Optional

from ..errors import BotError, OperationCancelled
from ..events import EventRecorder
from ..models.events import EventKind
from ..scheduling import CancelToken, Ticker
from .manager import SessionManager

logger = logging.getLogger(__name__)


class SessionKeepAlive:
    """Calls ``refresh_session`` every ``interval`` seconds until cancelled.

    Refresh failures are counted and reported but never stop the loop; the
    stream monitors keep running on whatever cookies the context holds.
    """

    def __init__(
        self,
        manager: SessionManager,
        interval: float,
        token: CancelToken,
        events: Optional[EventRecorder] = None,
    ):
        self._manager = manager
        self._interval = interval
        self._token = token
        self._events = events or EventRecorder()
        self.refreshes = 0
        self.failures = 0

    async def run(self):
        logger.info(f"Session keep-alive started (every {self._interval:.0f}s)")
        ticker = Ticker(self._interval, self._token)
        while await ticker.wait():
            try:
                await self._manager.refresh_session()
            except OperationCancelled:
                break
            except BotError as e:
                self.failures += 1
                await self._events.emit(
                    EventKind.KEEPALIVE,
                    f"session refresh failed ({self.failures} so far): {e}",
                    ok=False,
                    failures=self.failures,
                )
                continue
            self.refreshes += 1
            await self._events.emit(
                EventKind.KEEPALIVE,
                "session checked",
                ok=True,
                authenticated=self._manager.is_authenticated,
            )
        logger.info("Session keep-alive stopped")
