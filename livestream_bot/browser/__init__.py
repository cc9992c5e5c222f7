"""browser: the driver contract, its Playwright implementation and launcher."""

from .driver import BrowserDriver  # noqa: F401
from .navigation import navigate_with_retry  # noqa: F401
