"""Exception hierarchy shared by the session, monitor and purchase layers."""

from __future__ import annotations

from typing import Optional


class BotError(Exception):
    """Base class for every error raised by livestream-bot."""


class ConfigError(BotError):
    """Configuration is missing or invalid."""


class DriverError(BotError):
    """A browser driver call failed (element missing, script error, closed page)."""


class DriverTimeoutError(DriverError):
    """A browser driver call did not complete within its timeout."""


class NavigationError(DriverError):
    """Navigation failed after every retry."""

    def __init__(self, url: str, attempts: int, cause: Optional[BaseException] = None):
        self.url = url
        self.attempts = attempts
        self.cause = cause
        super().__init__(f"failed to navigate to {url} after {attempts} attempts: {cause}")


class SessionError(BotError):
    """Authentication could not be established or persisted."""


class LoginFailedError(SessionError):
    """The login flow finished but the account is not authenticated."""


class LoginTimeoutError(SessionError):
    """Manual login was not detected before the wait ceiling."""


class PurchaseError(BotError):
    """A purchase action could not be completed."""


class PurchaseExhaustedError(PurchaseError):
    """Every purchase attempt failed."""

    def __init__(self, attempts: int, last_error: Optional[BaseException]):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"all {attempts} purchase attempts failed: {last_error}")


class MonitorError(BotError):
    """A stream monitor task stopped with an unrecoverable error."""

    def __init__(self, stream_id: int, message: str):
        self.stream_id = stream_id
        super().__init__(f"stream {stream_id}: {message}")


class OperationCancelled(BotError):
    """The operation stopped because its cancel token fired.

    Callers treat this as a normal shutdown, not as a failure.
    """
