"""Stream monitor: one poll loop per livestream, supervised as a group.

Supervision is "first error wins, drain the rest": the first task to fail
cancels the group token, the other tasks notice it at their next tick
boundary and stop, and ``start`` raises that first error once every task
has returned.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

from ..browser import scripts
from ..browser.driver import BrowserDriver
from ..browser.navigation import navigate_with_retry
from ..config import MonitorSettings
from ..constants import (
    FLASH_SALE_SELECTOR,
    PRODUCT_NAME_SELECTOR,
    PRODUCT_PRICE_SELECTOR,
    PRODUCT_STOCK_SELECTOR,
)
from ..errors import DriverError, MonitorError, NavigationError, OperationCancelled, PurchaseError
from ..events import EventRecorder
from ..models.events import EventKind
from ..models.stream import FlashSale, MonitorStatus, MonitorTask, ProductInfo, StreamTarget
from ..purchase.executor import PurchaseExecutor
from ..scheduling import CancelToken, Ticker

logger = logging.getLogger(__name__)

DriverFactory = Callable[[StreamTarget], Awaitable[BrowserDriver]]
ExecutorFactory = Callable[[BrowserDriver, StreamTarget, CancelToken], PurchaseExecutor]


class StreamMonitor:
    """Watches every stream target concurrently and buys when a window opens.

    Each target gets its own driver page from ``open_driver`` and its own
    executor from ``executor_factory``; tasks share nothing else.
    """

    def __init__(
        self,
        settings: MonitorSettings,
        open_driver: DriverFactory,
        executor_factory: ExecutorFactory,
        events: Optional[EventRecorder] = None,
    ):
        self._settings = settings
        self._open_driver = open_driver
        self._executor_factory = executor_factory
        self._events = events or EventRecorder()
        self.tasks: dict[int, MonitorTask] = {}

    def snapshot(self) -> list[dict]:
        return [task.model_dump(mode="json") for task in self.tasks.values()]

    async def start(self, targets: list[StreamTarget], token: CancelToken):
        """Run one poll loop per target until cancelled or one fails.

        Returns normally when every task stopped because of cancellation.
        Raises the first MonitorError otherwise.
        """
        if not targets:
            logger.warning("No livestream targets to monitor")
            return

        logger.info(f"Monitoring {len(targets)} livestream(s)")
        group = token.child()
        errors: list[MonitorError] = []

        async def supervise(target: StreamTarget):
            try:
                await self.monitor_stream(target, group)
            except OperationCancelled:
                pass
            except Exception as e:
                if isinstance(e, MonitorError):
                    error = e
                else:
                    error = MonitorError(target.stream_id, str(e))
                    error.__cause__ = e
                await self._events.emit(
                    EventKind.MONITOR_ERROR, str(error), stream_id=target.stream_id
                )
                if not errors:
                    errors.append(error)
                    group.cancel(f"stream {target.stream_id} failed")

        tasks = [
            asyncio.create_task(supervise(target), name=f"stream-{target.stream_id}")
            for target in targets
        ]
        try:
            await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            group.cancel("monitor cancelled")
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        if errors:
            raise errors[0]

    async def monitor_stream(self, target: StreamTarget, token: CancelToken):
        """Navigate to one stream and poll it until ``token`` fires."""
        s = self._settings
        task = MonitorTask(target=target)
        self.tasks[target.stream_id] = task
        await self._events.emit(
            EventKind.MONITOR_STATUS,
            f"starting monitor: {target.url}",
            stream_id=target.stream_id,
            status=task.status.value,
        )

        try:
            driver = await self._open_driver(target)
            executor = self._executor_factory(driver, target, token)

            try:
                await navigate_with_retry(
                    driver,
                    target.url,
                    attempts=s.nav_retries,
                    timeout=s.nav_timeout,
                    backoff=s.nav_backoff,
                    token=token,
                    events=self._events,
                    stream_id=target.stream_id,
                )
            except NavigationError as e:
                task.last_error = str(e)
                raise MonitorError(target.stream_id, f"failed to navigate to stream: {e}") from e

            await self._set_status(task, MonitorStatus.POLLING, "livestream loaded, polling")
            ticker = Ticker(s.check_interval, token)
            flash_sale_seen = False
            while await ticker.wait():
                task.last_check_at = datetime.now()
                task.checks += 1

                if s.watch_flash_sales:
                    sale = await self.check_flash_sale(driver, target.stream_id)
                    if sale is not None and not flash_sale_seen:
                        await self._events.emit(
                            EventKind.FLASH_SALE,
                            f"flash sale countdown: {sale.countdown}",
                            stream_id=target.stream_id,
                            countdown=sale.countdown,
                        )
                    flash_sale_seen = sale is not None

                selector = await self.check_product_availability(driver)
                if selector is None:
                    continue
                await self._attempt_purchase(task, driver, executor, selector)
        finally:
            task.status = MonitorStatus.STOPPED

        logger.info(f"[Stream {target.stream_id}] Stopping monitor")
        await self._events.emit(
            EventKind.MONITOR_STATUS,
            "monitor stopped",
            stream_id=target.stream_id,
            status=MonitorStatus.STOPPED.value,
            checks=task.checks,
        )

    async def _set_status(self, task: MonitorTask, status: MonitorStatus, message: str):
        task.status = status
        await self._events.emit(
            EventKind.MONITOR_STATUS,
            message,
            stream_id=task.target.stream_id,
            status=status.value,
        )

    async def _attempt_purchase(
        self,
        task: MonitorTask,
        driver: BrowserDriver,
        executor: PurchaseExecutor,
        selector: str,
    ):
        stream_id = task.target.stream_id
        task.purchase_attempts += 1
        await self._set_status(task, MonitorStatus.PURCHASE_ATTEMPT, f"product available on {selector}")

        data = {"selector": selector}
        if self._settings.capture_product_info:
            data["product"] = (await self.get_product_info(driver)).model_dump()
        await self._events.emit(
            EventKind.PURCHASE_DETECTED, "product available, attempting purchase", stream_id=stream_id, **data
        )

        try:
            attempt = await executor.retry_purchase(selector)
        except OperationCancelled:
            logger.info(f"[Stream {stream_id}] Purchase on {selector} cancelled")
        except PurchaseError as e:
            task.last_error = str(e)
            await self._events.emit(
                EventKind.PURCHASE_OUTCOME,
                f"purchase failed: {e}",
                stream_id=stream_id,
                selector=selector,
                outcome="failed",
                error=str(e),
            )
        else:
            task.purchases_succeeded += 1
            await self._events.emit(
                EventKind.PURCHASE_OUTCOME,
                f"purchase successful after {attempt.attempt_number} attempt(s)",
                stream_id=stream_id,
                selector=selector,
                outcome=attempt.outcome.value,
                attempts=attempt.attempt_number,
            )

        await self._set_status(task, MonitorStatus.POLLING, "back to polling")

    async def check_product_availability(self, driver: BrowserDriver) -> Optional[str]:
        """Return the first enabled purchase control, in priority order."""
        for selector in self._settings.purchase_selectors:
            try:
                if await driver.evaluate(scripts.element_enabled(selector)):
                    return selector
            except DriverError as e:
                logger.debug(f"Availability check for '{selector}' failed: {e}")
        return None

    async def check_flash_sale(self, driver: BrowserDriver, stream_id: int) -> Optional[FlashSale]:
        """Return the flash-sale countdown on the page, or None when absent."""
        try:
            if not await driver.evaluate(scripts.element_exists(FLASH_SALE_SELECTOR)):
                return None
            countdown = await driver.evaluate(scripts.element_text(FLASH_SALE_SELECTOR))
        except DriverError:
            return None
        if not countdown:
            return None
        return FlashSale(stream_id=stream_id, countdown=str(countdown))

    async def get_product_info(self, driver: BrowserDriver) -> ProductInfo:
        """Read product name, price and stock. Missing fields stay None."""
        info = ProductInfo()
        for field, selector in (
            ("name", PRODUCT_NAME_SELECTOR),
            ("price", PRODUCT_PRICE_SELECTOR),
            ("stock", PRODUCT_STOCK_SELECTOR),
        ):
            try:
                value = await driver.evaluate(scripts.element_text(selector))
            except DriverError:
                continue
            if value:
                setattr(info, field, str(value))
        return info
