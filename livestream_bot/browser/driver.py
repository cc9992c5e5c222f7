"""The browser driver contract consumed by the session, monitor and purchase layers.

Every call is awaited and may fail with DriverError or DriverTimeoutError.
Nothing here assumes how many pages the underlying browser can host.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class BrowserDriver(Protocol):
    """One controllable browser page."""

    async def navigate(self, url: str, timeout: Optional[float] = None) -> None:
        """Load ``url`` and wait for the document body."""
        ...

    async def wait_visible(self, selector: str, timeout: Optional[float] = None) -> None:
        """Wait until ``selector`` matches a visible element."""
        ...

    async def click(self, selector: str) -> None:
        ...

    async def type_text(self, selector: str, text: str) -> None:
        """Clear the input matched by ``selector`` and type ``text`` into it."""
        ...

    async def evaluate(self, script: str) -> Any:
        """Evaluate a JavaScript expression and return its JSON value."""
        ...

    async def get_cookies(self) -> list[dict]:
        ...

    async def set_cookies(self, cookies: list[dict]) -> None:
        ...

    async def clear_cookies(self) -> None:
        ...

    async def current_url(self) -> str:
        ...

    async def screenshot(self, path: str) -> None:
        ...
