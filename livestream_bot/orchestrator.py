"""Process entry point: wires the bot together and owns its lifetime.

Startup order: config -> journal -> browser -> login -> monitors. A login
that still fails after ``LOGIN_ATTEMPTS`` tries aborts with exit status 1.
Monitor errors after startup are logged and the process keeps running until
SIGINT/SIGTERM or ``POST /stop``.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from typing import Optional

import aiosqlite

from .auth.keepalive import SessionKeepAlive
from .auth.manager import SessionManager
from .browser.driver import BrowserDriver
from .browser.launcher import BrowserLauncher
from .config import (
    DB_PATH,
    LOG_DIR,
    STATUS_SERVER_HOST,
    STATUS_SERVER_PORT,
    BotConfig,
    ensure_dirs,
    load_config,
)
from .database.models import initialize_db
from .database.repository import EventRepository
from .errors import BotError, ConfigError, MonitorError, OperationCancelled
from .events import EventRecorder
from .models.stream import StreamTarget
from .monitor.stream import StreamMonitor
from .notify import WebhookNotifier
from .purchase.executor import PurchaseExecutor
from .scheduling import CancelToken
from .server import StatusServer

logger = logging.getLogger("livestream_bot")

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def configure_logging(level: str = "INFO"):
    """Log to stderr and to ``LOG_DIR/bot.log``."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(LOG_DIR / "bot.log", encoding="utf-8"))
    except OSError as e:
        print(f"Could not open log file in {LOG_DIR}: {e}", file=sys.stderr)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


class Bot:
    """Owns every long-lived resource for one run."""

    def __init__(self, config: BotConfig, launcher: Optional[BrowserLauncher] = None):
        self.config = config
        self.token = CancelToken()
        self.launcher = launcher or BrowserLauncher(config.browser)
        self.db: Optional[aiosqlite.Connection] = None
        self.repository: Optional[EventRepository] = None
        self.events = EventRecorder()
        self.session_manager: Optional[SessionManager] = None
        self.monitor: Optional[StreamMonitor] = None
        self._status_server: Optional[StatusServer] = None
        self._background: list[asyncio.Task] = []

    async def setup(self):
        """Open the event journal and the optional webhook notifier."""
        ensure_dirs()
        self.db = await aiosqlite.connect(str(DB_PATH))
        self.db.row_factory = aiosqlite.Row
        await initialize_db(self.db)
        self.repository = EventRepository(self.db)
        notifier = WebhookNotifier(self.config.notify_webhook_url) if self.config.notify_webhook_url else None
        self.events = EventRecorder(repository=self.repository, notifier=notifier)

    async def authenticate(self):
        """Run login, retrying once more on session or driver errors."""
        driver = await self.launcher.new_driver()
        self.session_manager = SessionManager(driver, self.config.auth, events=self.events, token=self.token)

        attempts = self.config.login_attempts
        for attempt in range(1, attempts + 1):
            try:
                await self.session_manager.login()
                return
            except OperationCancelled:
                raise
            except BotError as e:
                if attempt == attempts:
                    raise
                logger.warning(f"Login attempt {attempt}/{attempts} failed: {e}. Trying again...")

    async def _open_driver(self, target: StreamTarget) -> BrowserDriver:
        return await self.launcher.new_driver()

    def _executor_factory(self, driver: BrowserDriver, target: StreamTarget, token: CancelToken) -> PurchaseExecutor:
        return PurchaseExecutor(
            driver,
            self.config.purchase,
            events=self.events,
            stream_id=target.stream_id,
            token=token,
        )

    def _install_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.token.cancel, f"received {sig.name}")
            except (NotImplementedError, RuntimeError):
                # Not supported on this platform; KeyboardInterrupt still stops asyncio.run
                pass

    async def run(self) -> int:
        """Run until shutdown. Returns the process exit status."""
        self._install_signal_handlers()
        try:
            await self.setup()
            try:
                await self.launcher.start()
            except BotError as e:
                logger.error(f"Failed to initialize browser: {e}")
                return 1

            if self.config.status_server_enabled:
                self._status_server = StatusServer(self, STATUS_SERVER_HOST, STATUS_SERVER_PORT)
                await self._status_server.start()

            logger.info("Authenticating...")
            try:
                await self.authenticate()
            except OperationCancelled:
                logger.info("Shutdown requested during login.")
                return 0
            except BotError as e:
                logger.error(f"Authentication failed: {e}")
                return 1
            logger.info("Authentication successful!")

            if self.config.auth.refresh_interval > 0:
                keepalive = SessionKeepAlive(
                    self.session_manager, self.config.auth.refresh_interval, self.token, events=self.events
                )
                self._background.append(asyncio.create_task(keepalive.run(), name="keepalive"))

            self.monitor = StreamMonitor(
                self.config.monitor, self._open_driver, self._executor_factory, events=self.events
            )
            logger.info("Bot is now running! Monitoring livestreams... Press Ctrl+C to stop")
            try:
                await self.monitor.start(self.config.stream_targets(), self.token)
            except MonitorError as e:
                logger.error(f"Monitor stopped with error: {e}")

            if not self.token.cancelled:
                logger.info("All monitors have stopped; waiting for shutdown signal...")
                await self.token.wait()
            logger.info("Shutdown signal received, cleaning up...")
            return 0
        finally:
            await self.cleanup()

    async def cleanup(self):
        self.token.cancel("shutdown")
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
            self._background.clear()
        await self.events.aclose()
        if self._status_server is not None:
            await self._status_server.stop()
        await self.launcher.stop()
        if self.db is not None:
            await self.db.close()
            self.db = None
        logger.info("Bot stopped. Goodbye!")


def main():
    """Load configuration and run the bot until shutdown."""
    try:
        config = load_config()
    except ConfigError as e:
        configure_logging()
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    configure_logging(config.log_level)
    logger.info("Starting livestream bot...")
    try:
        code = asyncio.run(Bot(config).run())
    except KeyboardInterrupt:
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
