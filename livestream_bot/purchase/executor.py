"""Purchase executor: click a detected reserve control, retrying with linear backoff."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Optional

from ..browser import scripts
from ..browser.driver import BrowserDriver
from ..browser.navigation import navigate_with_retry
from ..config import PurchaseSettings
from ..constants import (
    CART_CONFIRM_SELECTOR,
    CART_COUNT_SELECTOR,
    CART_DELETE_SELECTOR,
    CART_PATH,
    CART_SELECT_ALL_SELECTOR,
    CHECKOUT_SELECTORS,
    ORDER_SUCCESS_SELECTORS,
    ORDER_SUCCESS_URL_MARKERS,
    PLACE_ORDER_SELECTORS,
)
from ..errors import DriverError, OperationCancelled, PurchaseError, PurchaseExhaustedError
from ..events import EventRecorder
from ..models.events import EventKind
from ..models.purchase import PurchaseAttempt, PurchaseOutcome
from ..scheduling import CancelToken, Ticker

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class PurchaseExecutor:
    """Drives purchase actions on one driver page.

    The storefront confirms the reservation as soon as the control is
    triggered, so a successful click is a successful purchase.
    """

    def __init__(
        self,
        driver: BrowserDriver,
        settings: PurchaseSettings,
        events: Optional[EventRecorder] = None,
        stream_id: Optional[int] = None,
        token: Optional[CancelToken] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._driver = driver
        self._settings = settings
        self._events = events or EventRecorder()
        self._stream_id = stream_id
        self._token = token
        self._sleep = sleep

    async def execute_purchase(self, selector: str):
        """Wait for the control, click it, and let the page settle.

        With ``auto_checkout`` on, continues through checkout and order
        placement; otherwise the storefront's own auto-confirm is trusted.
        """
        try:
            await self._driver.wait_visible(selector, timeout=self._settings.action_timeout)
            await self._driver.click(selector)
        except DriverError as e:
            raise PurchaseError(f"failed to click '{selector}': {e}") from e
        await self._sleep(self._settings.settle_delay)

        if self._settings.auto_checkout:
            await self.proceed_to_checkout()
            await self.place_order()

    async def retry_purchase(self, selector: str) -> PurchaseAttempt:
        """Run ``execute_purchase`` up to ``max_retries`` times.

        Before retry ``i`` (1-based) waits ``retry_delay * i`` seconds.
        Returns the successful attempt, or raises PurchaseExhaustedError
        carrying the last error. Raises OperationCancelled as soon as the
        token fires, including in the middle of a backoff wait; no attempt
        starts after that.
        """
        max_retries = max(1, self._settings.max_retries)
        last_error: Optional[BaseException] = None

        for i in range(max_retries):
            if i > 0:
                wait = self._settings.retry_delay * i
                logger.info(f"Retry {i + 1}/{max_retries} after {wait:.1f}s...")
                await self._backoff(wait, selector, i)
            if self._token is not None and self._token.cancelled:
                raise OperationCancelled(f"purchase on {selector} cancelled after {i} attempts")

            attempt = PurchaseAttempt(selector=selector, attempt_number=i + 1, stream_id=self._stream_id)
            await self._events.emit(
                EventKind.PURCHASE_ATTEMPT,
                f"attempt {i + 1}/{max_retries} on {selector}",
                stream_id=self._stream_id,
                selector=selector,
                attempt=i + 1,
            )
            try:
                await self.execute_purchase(selector)
            except PurchaseError as e:
                last_error = e
                attempt.error = str(e)
                await self._events.record_purchase(attempt)
                logger.warning(f"Attempt {i + 1} failed: {e}")
                continue

            attempt.outcome = PurchaseOutcome.SUCCESS
            await self._events.record_purchase(attempt)
            return attempt

        await self._capture_failure(selector)
        raise PurchaseExhaustedError(max_retries, last_error)

    async def _backoff(self, seconds: float, selector: str, attempts: int):
        if self._token is None:
            await self._sleep(seconds)
            return
        if not await self._token.sleep(seconds):
            raise OperationCancelled(f"purchase on {selector} cancelled after {attempts} attempts")

    # ── Checkout ─────────────────────────────────────────────────────────────

    async def _click_first_enabled(self, selectors: list[str], what: str) -> str:
        """Poll ``selectors`` until one is enabled and click it.

        Gives up with PurchaseError after ``checkout_timeout`` seconds.
        """
        s = self._settings
        ticker = Ticker(s.checkout_poll_interval, self._token or CancelToken(), deadline=s.checkout_timeout)
        while True:
            for selector in selectors:
                try:
                    if await self._driver.evaluate(scripts.element_enabled(selector)):
                        await self._driver.click(selector)
                        return selector
                except DriverError as e:
                    logger.debug(f"{what} candidate '{selector}' failed: {e}")
            if ticker.expired:
                raise PurchaseError(f"{what} button not found")
            if not await ticker.wait():
                raise OperationCancelled(f"{what} cancelled")

    async def proceed_to_checkout(self):
        selector = await self._click_first_enabled(CHECKOUT_SELECTORS, "checkout")
        logger.info(f"Proceeded to checkout via {selector}")
        await self._sleep(self._settings.settle_delay)

    async def place_order(self):
        """Click place-order and confirm the order went through."""
        await self._click_first_enabled(PLACE_ORDER_SELECTORS, "place order")
        await self._sleep(self._settings.settle_delay)
        if not await self.verify_order_success():
            raise PurchaseError("order placement failed - no confirmation")
        logger.info("Order placed successfully!")

    async def verify_order_success(self) -> bool:
        """A success marker on the page, or a success/complete URL."""
        for selector in ORDER_SUCCESS_SELECTORS:
            try:
                if await self._driver.evaluate(scripts.element_exists(selector)):
                    return True
            except DriverError:
                continue
        try:
            url = await self._driver.current_url()
        except DriverError as e:
            logger.warning(f"Could not read URL after placing order: {e}")
            return False
        return any(marker in url for marker in ORDER_SUCCESS_URL_MARKERS)

    async def quick_purchase(self, selector: str):
        """Click through reserve, checkout and place-order without waiting for each control.

        Assumes payment method and address are already set on the account.
        """
        started = time.monotonic()
        try:
            await self._driver.click(selector)
            await self._sleep(self._settings.step_delay)
            await self._driver.click(CHECKOUT_SELECTORS[0])
            await self._sleep(self._settings.step_delay)
            await self._driver.click(PLACE_ORDER_SELECTORS[0])
        except DriverError as e:
            logger.warning(f"Quick purchase failed in {time.monotonic() - started:.2f}s: {e}")
            raise PurchaseError(f"quick purchase failed: {e}") from e
        logger.info(f"Quick purchase completed in {time.monotonic() - started:.2f}s!")

    async def _capture_failure(self, selector: str):
        if not self._settings.screenshot_dir:
            return
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        stream = f"stream{self._stream_id}" if self._stream_id is not None else "purchase"
        path = Path(self._settings.screenshot_dir) / f"{stream}-{stamp}.png"
        try:
            await self._driver.screenshot(str(path))
            logger.info(f"Saved failure screenshot for '{selector}' to {path}")
        except DriverError as e:
            logger.warning(f"Could not capture failure screenshot: {e}")

    async def get_cart_item_count(self) -> int:
        """Read the cart badge. Returns 0 when it is absent or unreadable."""
        try:
            value = await self._driver.evaluate(scripts.element_int(CART_COUNT_SELECTOR))
        except DriverError as e:
            logger.debug(f"Cart count unavailable: {e}")
            return 0
        try:
            return int(value or 0)
        except (TypeError, ValueError):
            return 0

    async def clear_cart(self):
        """Open the cart page and delete every item. Any failed step aborts."""
        s = self._settings
        cart_url = s.base_url.rstrip("/") + CART_PATH
        try:
            await navigate_with_retry(
                self._driver, cart_url, timeout=s.nav_timeout, token=self._token, events=self._events
            )
            await self._driver.click(CART_SELECT_ALL_SELECTOR)
            await self._sleep(s.step_delay)
            await self._driver.click(CART_DELETE_SELECTOR)
            await self._sleep(s.step_delay)
            await self._driver.click(CART_CONFIRM_SELECTOR)
        except DriverError as e:
            raise PurchaseError(f"failed to clear cart: {e}") from e
        logger.info("Cart cleared")
