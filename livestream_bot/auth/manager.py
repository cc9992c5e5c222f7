"""Session manager: persisted-session reuse and the two login flows.

State machine::

    unauthenticated -> session_loaded -> validating -> authenticated
                                                    \\-> unauthenticated
    unauthenticated -> manual_login_waiting      (no credentials)
    unauthenticated -> automated_login_attempt   (credentials configured)

Every transition is emitted as a ``session_state`` status event.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from pydantic import ValidationError

from ..browser.driver import BrowserDriver
from ..browser.navigation import navigate_with_retry
from ..config import AuthSettings
from ..errors import (
    DriverError,
    LoginFailedError,
    LoginTimeoutError,
    NavigationError,
    OperationCancelled,
    SessionError,
)
from ..events import EventRecorder
from ..models.events import EventKind
from ..models.session import Cookie, Session, SessionState
from ..scheduling import CancelToken, Ticker
from .detection import auth_marker_script, is_login_url, logged_in_script
from .store import SessionStore
from .strategy import LoginMode, LoginStrategy

logger = logging.getLogger(__name__)


class SessionManager:
    """Produces an authenticated browsing context on one driver page."""

    def __init__(
        self,
        driver: BrowserDriver,
        settings: AuthSettings,
        events: Optional[EventRecorder] = None,
        token: Optional[CancelToken] = None,
    ):
        self._driver = driver
        self._settings = settings
        self._events = events or EventRecorder()
        self._token = token or CancelToken()
        self._store = SessionStore(settings.session_file)
        self._session = Session(session_file_path=settings.session_file)
        self._state = SessionState.UNAUTHENTICATED
        self.strategy = LoginStrategy.from_credentials(settings.credentials)

    @property
    def session(self) -> Session:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._session.authenticated

    def status(self) -> dict:
        return {
            "state": self._state.value,
            "authenticated": self._session.authenticated,
            "cookie_count": len(self._session.cookies),
            "login_mode": self.strategy.mode.value,
            "session_file": self._session.session_file_path,
        }

    async def _set_state(self, state: SessionState, message: str = ""):
        if state == self._state:
            return
        previous, self._state = self._state, state
        await self._events.emit(
            EventKind.SESSION_STATE,
            message or f"{previous.value} -> {state.value}",
            previous=previous.value,
            state=state.value,
        )

    async def _navigate(self, url: str):
        s = self._settings
        await navigate_with_retry(
            self._driver,
            url,
            attempts=s.nav_retries,
            timeout=s.nav_timeout,
            backoff=s.nav_backoff,
            token=self._token,
            events=self._events,
        )

    # ── Login entry point ────────────────────────────────────────────────────

    async def login(self):
        """Reuse the persisted session if still valid, otherwise log in.

        The login flow is picked by ``self.strategy``: manual when no
        credentials are configured, automated otherwise.
        """
        if await self.load_session():
            logger.info("Found existing session, validating...")
            await self._set_state(SessionState.VALIDATING)
            if await self.validate_session():
                self._session.authenticated = True
                await self._set_state(SessionState.AUTHENTICATED, "session is valid, reused saved cookies")
                return
            logger.info("Session expired, need to login again")
            self._session.authenticated = False
            await self._set_state(SessionState.UNAUTHENTICATED, "saved session is no longer valid")

        if self.strategy.mode is LoginMode.MANUAL:
            logger.info("No credentials provided, using MANUAL login mode")
            await self.manual_login()
        else:
            logger.info("Credentials found, using AUTOMATED login mode")
            await self.perform_login()

    # ── Login flows ──────────────────────────────────────────────────────────

    async def manual_login(self):
        """Wait for the user to log in by any method in the browser window.

        Polls the page every ``manual_login_poll_interval`` seconds until a
        login signal appears or ``manual_login_timeout`` elapses.
        """
        s = self._settings
        await self._set_state(SessionState.MANUAL_LOGIN_WAITING)
        try:
            try:
                await self._navigate(s.login_url)
            except NavigationError as e:
                raise SessionError(f"failed to navigate to login page: {e}") from e

            await self._events.emit(
                EventKind.LOGIN_WAITING,
                "please log in using any method in the browser window",
                url=s.login_url,
                timeout=s.manual_login_timeout,
            )

            check_script = logged_in_script(s.detection)
            ticker = Ticker(s.manual_login_poll_interval, self._token, deadline=s.manual_login_timeout)
            while True:
                if ticker.expired:
                    raise LoginTimeoutError(
                        f"login not detected within {s.manual_login_timeout:.0f}s - please try again"
                    )
                if not await ticker.wait():
                    raise OperationCancelled("manual login cancelled")

                try:
                    current_url = await self._driver.current_url()
                except DriverError as e:
                    logger.warning(f"Error getting URL: {e}")
                    continue

                if is_login_url(current_url, s.detection):
                    logger.debug(f"Still on login page: {current_url}")
                    continue

                try:
                    logged_in = bool(await self._driver.evaluate(check_script))
                except DriverError as e:
                    logger.warning(f"Login check failed: {e}")
                    logged_in = False

                if logged_in:
                    await self._events.emit(
                        EventKind.LOGIN_DETECTED,
                        f"login detected after {ticker.ticks} checks",
                        url=current_url,
                    )
                    await self.save_session()
                    return
                logger.info("Left the login page but login not confirmed yet, still checking...")
        except Exception:
            self._session.authenticated = False
            await self._set_state(SessionState.UNAUTHENTICATED)
            raise

    async def perform_login(self):
        """Log in by filling the username/password form."""
        s = self._settings
        creds = s.credentials
        if not creds.present:
            raise LoginFailedError("no valid login credentials provided")

        await self._set_state(SessionState.AUTOMATED_LOGIN_ATTEMPT)
        try:
            try:
                await self._navigate(s.login_url)
            except NavigationError as e:
                raise SessionError(f"failed to navigate to login page: {e}") from e

            await asyncio.sleep(s.login_settle_delay)

            if not is_login_url(await self._driver.current_url(), s.detection):
                logger.info("Redirected away from login page, already logged in")
                await self.save_session()
                return

            detection = s.detection
            try:
                await self._driver.wait_visible(detection.username_selector, timeout=s.login_form_timeout)
            except DriverError as e:
                raise LoginFailedError(f"login form not found: {e}") from e

            try:
                await self._driver.type_text(detection.username_selector, creds.username)
                await asyncio.sleep(s.form_input_delay)
                await self._driver.type_text(detection.password_selector, creds.password)
                await asyncio.sleep(s.form_input_delay)
                await self._driver.click(detection.submit_selector)
            except DriverError as e:
                raise LoginFailedError(f"failed to submit login form: {e}") from e

            await asyncio.sleep(s.login_submit_delay)

            if is_login_url(await self._driver.current_url(), s.detection):
                raise LoginFailedError("login failed - still on login page")

            await self.save_session()
        except Exception:
            self._session.authenticated = False
            await self._set_state(SessionState.UNAUTHENTICATED)
            raise

    # ── Persistence ──────────────────────────────────────────────────────────

    async def save_session(self):
        """Capture the browser's cookies and persist them."""
        try:
            raw = await self._driver.get_cookies()
        except DriverError as e:
            raise SessionError(f"failed to get cookies: {e}") from e

        try:
            cookies = [Cookie.model_validate(c) for c in raw]
        except ValidationError as e:
            raise SessionError(f"browser returned malformed cookies: {e}") from e
        if not cookies:
            raise SessionError("browser returned no cookies to save")

        try:
            self._store.save(cookies)
        except OSError as e:
            raise SessionError(f"failed to write session file: {e}") from e

        self._session.cookies = cookies
        self._session.authenticated = True
        logger.info(f"Saved {len(cookies)} cookies to {self._store.path}")
        await self._set_state(SessionState.AUTHENTICATED, f"session saved with {len(cookies)} cookies")

    async def load_session(self) -> bool:
        """Push persisted cookies into the browser.

        Returns False for a missing, unreadable, malformed or empty session
        file, or when the browser rejects the cookies.
        """
        cookies = self._store.load()
        if not cookies:
            return False
        try:
            await self._driver.set_cookies([c.to_browser() for c in cookies])
        except DriverError as e:
            logger.warning(f"Browser rejected saved cookies: {e}")
            return False

        self._session.cookies = cookies
        await self._set_state(SessionState.SESSION_LOADED, f"loaded {len(cookies)} saved cookies")
        return True

    async def validate_session(self) -> bool:
        """Check that the current cookies still authenticate. Read-only."""
        s = self._settings
        try:
            await self._navigate(s.base_url)
        except DriverError as e:
            logger.warning(f"Session validation could not load {s.base_url}: {e}")
            return False

        await asyncio.sleep(s.login_settle_delay)

        try:
            if is_login_url(await self._driver.current_url(), s.detection):
                return False
            return bool(await self._driver.evaluate(auth_marker_script(s.detection)))
        except DriverError as e:
            logger.warning(f"Session validation failed: {e}")
            return False

    async def logout(self):
        """Clear browser cookies, delete the session file and reset state."""
        try:
            await self._driver.clear_cookies()
        except DriverError as e:
            raise SessionError(f"failed to clear cookies: {e}") from e
        self._store.delete()
        self._session.reset()
        await self._set_state(SessionState.UNAUTHENTICATED, "logged out")

    async def refresh_session(self):
        """Log in again with credentials if the session stopped validating."""
        if not await self.validate_session():
            logger.info("Session no longer valid, logging in again...")
            await self.perform_login()
