"""BrowserDriver implementation over one Playwright page."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from playwright.async_api import BrowserContext, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..errors import DriverError, DriverTimeoutError

logger = logging.getLogger(__name__)


class PlaywrightDriver:
    """Drives a single page. Cookies live on the page's browser context."""

    def __init__(self, page: Page, context: BrowserContext, default_timeout: float = 30.0):
        self._page = page
        self._context = context
        self._default_timeout = default_timeout
        page.set_default_timeout(default_timeout * 1000)

    @property
    def page(self) -> Page:
        return self._page

    def _ms(self, timeout: Optional[float]) -> float:
        return (timeout if timeout is not None else self._default_timeout) * 1000

    async def navigate(self, url: str, timeout: Optional[float] = None) -> None:
        try:
            try:
                await self._page.goto(url, wait_until="domcontentloaded", timeout=self._ms(timeout))
            except PlaywrightTimeoutError:
                logger.warning(f"domcontentloaded timed out for {url}, retrying with commit...")
                await self._page.goto(url, wait_until="commit", timeout=self._ms(timeout) * 2)
            await self._page.wait_for_selector("body", state="attached", timeout=self._ms(timeout))
        except PlaywrightTimeoutError as e:
            raise DriverTimeoutError(f"navigation to {url} timed out: {e}") from e
        except PlaywrightError as e:
            raise DriverError(f"navigation to {url} failed: {e}") from e

    async def wait_visible(self, selector: str, timeout: Optional[float] = None) -> None:
        try:
            await self._page.wait_for_selector(selector, state="visible", timeout=self._ms(timeout))
        except PlaywrightTimeoutError as e:
            raise DriverTimeoutError(f"'{selector}' not visible: {e}") from e
        except PlaywrightError as e:
            raise DriverError(f"waiting for '{selector}' failed: {e}") from e

    async def click(self, selector: str) -> None:
        try:
            await self._page.click(selector)
        except PlaywrightTimeoutError as e:
            raise DriverTimeoutError(f"click on '{selector}' timed out: {e}") from e
        except PlaywrightError as e:
            raise DriverError(f"click on '{selector}' failed: {e}") from e

    async def type_text(self, selector: str, text: str) -> None:
        try:
            await self._page.wait_for_selector(selector, state="visible")
            await self._page.fill(selector, "")
            await self._page.type(selector, text)
        except PlaywrightTimeoutError as e:
            raise DriverTimeoutError(f"typing into '{selector}' timed out: {e}") from e
        except PlaywrightError as e:
            raise DriverError(f"typing into '{selector}' failed: {e}") from e

    async def evaluate(self, script: str) -> Any:
        try:
            return await self._page.evaluate(script)
        except PlaywrightError as e:
            raise DriverError(f"script evaluation failed: {e}") from e

    async def get_cookies(self) -> list[dict]:
        try:
            return list(await self._context.cookies())
        except PlaywrightError as e:
            raise DriverError(f"reading cookies failed: {e}") from e

    async def set_cookies(self, cookies: list[dict]) -> None:
        try:
            await self._context.add_cookies(cookies)
        except PlaywrightError as e:
            raise DriverError(f"setting cookies failed: {e}") from e

    async def clear_cookies(self) -> None:
        try:
            await self._context.clear_cookies()
        except PlaywrightError as e:
            raise DriverError(f"clearing cookies failed: {e}") from e

    async def current_url(self) -> str:
        return self._page.url

    async def screenshot(self, path: str) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        try:
            await self._page.screenshot(path=path, full_page=True)
        except PlaywrightError as e:
            raise DriverError(f"screenshot failed: {e}") from e

    async def close(self):
        try:
            await self._page.close()
        except PlaywrightError as e:
            logger.warning(f"Error closing page: {e}")
