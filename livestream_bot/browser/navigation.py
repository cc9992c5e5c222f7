"""Navigation with bounded retries and linear backoff."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..errors import DriverError, NavigationError, OperationCancelled
from ..models.events import EventKind
from ..scheduling import CancelToken
from .driver import BrowserDriver

logger = logging.getLogger(__name__)


async def navigate_with_retry(
    driver: BrowserDriver,
    url: str,
    *,
    attempts: int = 3,
    timeout: Optional[float] = None,
    backoff: float = 1.0,
    token: Optional[CancelToken] = None,
    events=None,
    stream_id: Optional[int] = None,
) -> None:
    """Navigate to ``url``, retrying up to ``attempts`` times.

    After failed attempt ``n`` (1-based) waits ``n * backoff`` seconds before the
    next one. Raises NavigationError once every attempt has failed, or
    OperationCancelled if ``token`` fires during a backoff wait.
    """
    attempts = max(1, attempts)
    last_error: Optional[BaseException] = None
    for attempt in range(1, attempts + 1):
        if events is not None:
            await events.emit(
                EventKind.NAVIGATION_ATTEMPT,
                f"navigating to {url} ({attempt}/{attempts})",
                stream_id=stream_id,
                url=url,
                attempt=attempt,
            )
        try:
            await driver.navigate(url, timeout=timeout)
            return
        except DriverError as e:
            last_error = e
            logger.warning(f"Navigation attempt {attempt}/{attempts} to {url} failed: {e}")

        if attempt < attempts:
            delay = attempt * backoff
            if token is not None:
                if not await token.sleep(delay):
                    raise OperationCancelled(f"navigation to {url} cancelled")
            else:
                await asyncio.sleep(delay)

    raise NavigationError(url, attempts, last_error)
