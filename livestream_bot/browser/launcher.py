"""Camoufox browser launch and page lifecycle."""

from __future__ import annotations

import logging
from typing import Optional

from camoufox.async_api import AsyncCamoufox
from playwright.async_api import BrowserContext
from playwright.async_api import Error as PlaywrightError

from ..config import BrowserSettings
from ..constants import STEALTH_SCRIPTS
from ..errors import DriverError
from .playwright_driver import PlaywrightDriver

logger = logging.getLogger(__name__)


class BrowserLauncher:
    """Owns one Camoufox browser and one context shared by every page.

    Each consumer (session manager, each stream monitor) gets its own page so
    that concurrent tasks never interleave navigation on the same tab, while
    the shared context keeps a single cookie jar.
    """

    def __init__(self, settings: BrowserSettings):
        self._settings = settings
        self._camoufox = None
        self._browser = None
        self._context: Optional[BrowserContext] = None
        self._drivers: list[PlaywrightDriver] = []

    @property
    def is_running(self) -> bool:
        return self._context is not None

    def _proxy(self) -> Optional[dict]:
        if not self._settings.proxy_server:
            return None
        proxy = {"server": self._settings.proxy_server}
        if self._settings.proxy_username:
            proxy["username"] = self._settings.proxy_username
            proxy["password"] = self._settings.proxy_password
        return proxy

    async def start(self):
        """Launch Camoufox and create the shared browser context."""
        if self.is_running:
            return

        logger.info(f"Launching Camoufox (headless={self._settings.headless})...")
        try:
            self._camoufox = AsyncCamoufox(
                headless=self._settings.headless,
                humanize=True,
                geoip=bool(self._settings.proxy_server),
                proxy=self._proxy(),
                i_know_what_im_doing=True,
                config={"forceScopeAccess": True},
                disable_coop=True,
            )
            self._browser = await self._camoufox.__aenter__()
            self._context = await self._browser.new_context(
                viewport={
                    "width": self._settings.viewport_width,
                    "height": self._settings.viewport_height,
                },
                user_agent=None,  # Let Camoufox handle fingerprinting
            )
            if self._settings.stealth:
                for script in STEALTH_SCRIPTS:
                    await self._context.add_init_script(script)
        except Exception as e:
            logger.error(f"Failed to start browser: {e}")
            await self.stop()
            raise DriverError(f"failed to start browser: {e}") from e

        logger.info("Browser started.")

    async def new_driver(self) -> PlaywrightDriver:
        """Open a fresh page in the shared context."""
        if not self.is_running:
            raise DriverError("browser is not running")
        try:
            page = await self._context.new_page()
        except PlaywrightError as e:
            raise DriverError(f"failed to open page: {e}") from e
        driver = PlaywrightDriver(page, self._context, default_timeout=self._settings.timeout)
        self._drivers.append(driver)
        return driver

    async def stop(self):
        """Close every page, the context and the browser."""
        logger.info("Stopping browser...")
        for driver in self._drivers:
            try:
                await driver.close()
            except Exception as e:
                logger.warning(f"Error closing page: {e}")
        self._drivers.clear()

        try:
            if self._context:
                await self._context.close()
        except Exception as e:
            logger.warning(f"Error closing context: {e}")
        finally:
            self._context = None

        try:
            if self._camoufox:
                await self._camoufox.__aexit__(None, None, None)
        except Exception as e:
            logger.warning(f"Error closing camoufox: {e}")
        finally:
            self._camoufox = None
            self._browser = None

        logger.info("Browser stopped.")
