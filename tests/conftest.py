"""Shared fixtures: a scripted in-memory browser driver and fast settings."""
import asyncio
import inspect

import pytest

from livestream_bot.config import AuthSettings, MonitorSettings, PurchaseSettings
from livestream_bot.errors import DriverError
from livestream_bot.events import EventRecorder

BASE_URL = "https://shop.example.com"
LOGIN_URL = BASE_URL + "/buyer/login"
HOME_URL = BASE_URL + "/"

SAMPLE_COOKIES = [
    {"name": "SPC_EC", "value": "abc", "domain": ".example.com", "path": "/", "httpOnly": True, "secure": True},
    {"name": "SPC_U", "value": "42", "domain": ".example.com", "path": "/", "httpOnly": False, "secure": True},
]


class FakeDriver:
    """BrowserDriver stand-in that records every call.

    Behaviour is scripted through attributes:
      redirects       url -> url the page lands on after navigate()
      url_sequence    successive current_url() answers (last one repeats)
      navigate_error  exception (or callable(url) -> exception|None) for navigate()
      navigate_delay  seconds each navigate() takes
      evaluate_handler callable(script) -> value, may be async
      click_redirects selector -> url the page moves to after click()
      fail_selectors  selectors whose wait_visible/click/type_text raise
    """

    def __init__(self, url="about:blank", cookies=None):
        self.url = url
        self.cookies = list(cookies or [])
        self.calls = []
        self.redirects = {}
        self.url_sequence = []
        self.navigate_error = None
        self.navigate_delay = 0.0
        self.evaluate_handler = lambda script: None
        self.click_redirects = {}
        self.fail_selectors = set()
        self.url_reads = 0

    def count(self, method):
        return sum(1 for name, _ in self.calls if name == method)

    def args(self, method):
        return [args for name, args in self.calls if name == method]

    async def navigate(self, url, timeout=None):
        self.calls.append(("navigate", (url,)))
        if self.navigate_delay:
            await asyncio.sleep(self.navigate_delay)
        error = self.navigate_error
        if callable(error) and not isinstance(error, BaseException):
            error = error(url)
        if error is not None:
            raise error
        self.url = self.redirects.get(url, url)

    async def wait_visible(self, selector, timeout=None):
        self.calls.append(("wait_visible", (selector,)))
        if selector in self.fail_selectors:
            raise DriverError(f"'{selector}' not visible")

    async def click(self, selector):
        self.calls.append(("click", (selector,)))
        if selector in self.fail_selectors:
            raise DriverError(f"click on '{selector}' failed")
        if selector in self.click_redirects:
            self.url = self.click_redirects[selector]

    async def type_text(self, selector, text):
        self.calls.append(("type_text", (selector, text)))
        if selector in self.fail_selectors:
            raise DriverError(f"typing into '{selector}' failed")

    async def evaluate(self, script):
        self.calls.append(("evaluate", (script,)))
        result = self.evaluate_handler(script)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, BaseException):
            raise result
        return result

    async def get_cookies(self):
        self.calls.append(("get_cookies", ()))
        return list(self.cookies)

    async def set_cookies(self, cookies):
        self.calls.append(("set_cookies", (cookies,)))
        self.cookies = list(cookies)

    async def clear_cookies(self):
        self.calls.append(("clear_cookies", ()))
        self.cookies = []

    async def current_url(self):
        self.url_reads += 1
        if self.url_sequence:
            if len(self.url_sequence) > 1:
                return self.url_sequence.pop(0)
            return self.url_sequence[0]
        return self.url

    async def screenshot(self, path):
        self.calls.append(("screenshot", (path,)))


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def driver():
    return FakeDriver()


@pytest.fixture
def events():
    return EventRecorder()


@pytest.fixture
def auth_settings(tmp_path):
    return AuthSettings(
        base_url=BASE_URL,
        session_file=str(tmp_path / "cookies" / "session.json"),
        nav_backoff=0.0,
        manual_login_poll_interval=0.01,
        manual_login_timeout=5.0,
        login_settle_delay=0.0,
        login_form_timeout=1.0,
        form_input_delay=0.0,
        login_submit_delay=0.0,
    )


@pytest.fixture
def purchase_settings():
    return PurchaseSettings(
        base_url=BASE_URL,
        max_retries=3,
        retry_delay=0.5,
        action_timeout=1.0,
        settle_delay=0.25,
        step_delay=0.0,
    )


@pytest.fixture
def monitor_settings():
    return MonitorSettings(
        check_interval=0.01,
        nav_retries=3,
        nav_backoff=0.0,
        purchase_selectors=["#reserve"],
        capture_product_info=False,
    )
