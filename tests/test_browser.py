"""Tests for the Playwright driver's error mapping and the browser launcher."""
import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from livestream_bot.browser.driver import BrowserDriver
from livestream_bot.browser.launcher import BrowserLauncher
from livestream_bot.browser.playwright_driver import PlaywrightDriver
from livestream_bot.config import BrowserSettings
from livestream_bot.errors import DriverError, DriverTimeoutError


class FakePage:
    def __init__(self):
        self.url = "about:blank"
        self.gotos = []
        self.goto_errors = []
        self.default_timeout = None
        self.click_error = None
        self.evaluate_result = None

    def set_default_timeout(self, ms):
        self.default_timeout = ms

    async def goto(self, url, wait_until=None, timeout=None):
        self.gotos.append((wait_until, timeout))
        if self.goto_errors:
            raise self.goto_errors.pop(0)
        self.url = url

    async def wait_for_selector(self, selector, state=None, timeout=None):
        return None

    async def click(self, selector):
        if self.click_error:
            raise self.click_error

    async def evaluate(self, script):
        if isinstance(self.evaluate_result, Exception):
            raise self.evaluate_result
        return self.evaluate_result


class FakeContext:
    def __init__(self):
        self.jar = []

    async def cookies(self):
        return list(self.jar)

    async def add_cookies(self, cookies):
        self.jar.extend(cookies)

    async def clear_cookies(self):
        self.jar = []


def test_driver_satisfies_protocol():
    driver = PlaywrightDriver(FakePage(), FakeContext(), default_timeout=5)
    assert isinstance(driver, BrowserDriver)


async def test_default_timeout_is_milliseconds():
    page = FakePage()
    PlaywrightDriver(page, FakeContext(), default_timeout=5)
    assert page.default_timeout == 5000


async def test_navigate_falls_back_to_commit():
    page = FakePage()
    page.goto_errors = [PlaywrightTimeoutError("slow page")]
    driver = PlaywrightDriver(page, FakeContext(), default_timeout=5)

    await driver.navigate("https://live.example.com/1", timeout=2)

    assert page.gotos == [("domcontentloaded", 2000), ("commit", 4000)]
    assert await driver.current_url() == "https://live.example.com/1"


async def test_navigate_timeout_maps_to_driver_timeout():
    page = FakePage()
    page.goto_errors = [PlaywrightTimeoutError("slow"), PlaywrightTimeoutError("still slow")]
    driver = PlaywrightDriver(page, FakeContext())

    with pytest.raises(DriverTimeoutError):
        await driver.navigate("https://live.example.com/1")


async def test_click_error_maps_to_driver_error():
    page = FakePage()
    page.click_error = PlaywrightError("element detached")
    driver = PlaywrightDriver(page, FakeContext())

    with pytest.raises(DriverError, match="element detached"):
        await driver.click("#reserve")


async def test_evaluate_error_maps_to_driver_error():
    page = FakePage()
    page.evaluate_result = PlaywrightError("execution context destroyed")
    driver = PlaywrightDriver(page, FakeContext())

    with pytest.raises(DriverError):
        await driver.evaluate("1 + 1")


async def test_cookies_go_through_context():
    context = FakeContext()
    driver = PlaywrightDriver(FakePage(), context)

    await driver.set_cookies([{"name": "SPC_EC", "value": "x", "domain": ".example.com", "path": "/"}])
    assert [c["name"] for c in await driver.get_cookies()] == ["SPC_EC"]

    await driver.clear_cookies()
    assert await driver.get_cookies() == []


def test_launcher_proxy_settings():
    assert BrowserLauncher(BrowserSettings())._proxy() is None

    launcher = BrowserLauncher(
        BrowserSettings(proxy_server="http://proxy:8080", proxy_username="u", proxy_password="p")
    )
    assert launcher._proxy() == {"server": "http://proxy:8080", "username": "u", "password": "p"}


async def test_new_driver_requires_running_browser():
    launcher = BrowserLauncher(BrowserSettings())
    assert not launcher.is_running
    with pytest.raises(DriverError, match="not running"):
        await launcher.new_driver()


class ClosingContext(FakeContext):
    def __init__(self, page_error=None):
        super().__init__()
        self.page_error = page_error
        self.closed = False

    async def new_page(self):
        if self.page_error:
            raise self.page_error
        return FakePage()

    async def close(self):
        self.closed = True


class FakeCamoufox:
    def __init__(self):
        self.exited = False

    async def __aexit__(self, *exc):
        self.exited = True


class ExplodingDriver:
    async def close(self):
        raise RuntimeError("page crashed")


async def test_new_page_failure_maps_to_driver_error():
    launcher = BrowserLauncher(BrowserSettings())
    launcher._context = ClosingContext(page_error=PlaywrightError("Target closed"))

    with pytest.raises(DriverError, match="failed to open page"):
        await launcher.new_driver()
    assert launcher._drivers == []


async def test_stop_tears_down_context_when_a_page_close_fails():
    launcher = BrowserLauncher(BrowserSettings())
    context = ClosingContext()
    camoufox = FakeCamoufox()
    launcher._context = context
    launcher._camoufox = camoufox
    launcher._drivers = [ExplodingDriver(), ExplodingDriver()]

    await launcher.stop()

    assert context.closed
    assert camoufox.exited
    assert not launcher.is_running
    assert launcher._drivers == []
