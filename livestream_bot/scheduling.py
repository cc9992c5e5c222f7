"""Cancellation tokens and fixed-interval tick sources for the poll loops."""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional


class CancelToken:
    """A cancellation signal that can be observed by many tasks.

    Tokens form a tree: cancelling a token cancels every child derived from
    it, while cancelling a child leaves the parent untouched.
    """

    def __init__(self, parent: Optional[CancelToken] = None):
        self._event = asyncio.Event()
        self._children: list[CancelToken] = []
        self.reason: str = ""
        if parent is not None:
            parent._children.append(self)
            if parent.cancelled:
                self.cancel(parent.reason)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled"):
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()
        for child in self._children:
            child.cancel(reason)

    def child(self) -> CancelToken:
        return CancelToken(parent=self)

    async def wait(self):
        await self._event.wait()

    async def sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``. Returns False if the token fired first."""
        if self.cancelled:
            return False
        if seconds <= 0:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return True
        return False


class Ticker:
    """Fixed-interval tick source bound to a cancel token.

    ``await ticker.wait()`` suspends until the next tick and returns True, or
    returns False as soon as the token is cancelled. An optional ``deadline``
    (seconds from creation) bounds the total run time of the loop that owns it.
    """

    def __init__(
        self,
        interval: float,
        token: CancelToken,
        deadline: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.interval = interval
        self.token = token
        self.ticks = 0
        self._clock = clock
        self._started = clock()
        self._deadline = deadline

    @property
    def elapsed(self) -> float:
        return self._clock() - self._started

    @property
    def expired(self) -> bool:
        return self._deadline is not None and self.elapsed > self._deadline

    async def wait(self) -> bool:
        if not await self.token.sleep(self.interval):
            return False
        self.ticks += 1
        return True
