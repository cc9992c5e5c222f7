"""Tests for environment-driven configuration loading."""
import pytest

from livestream_bot.config import load_config
from livestream_bot.constants import PURCHASE_SELECTORS
from livestream_bot.errors import ConfigError

ENV_VARS = [
    "STORE_BASE_URL",
    "LIVESTREAM_URLS",
    "STORE_USERNAME",
    "STORE_PASSWORD",
    "BROWSER_TIMEOUT",
    "PURCHASE_MAX_RETRIES",
    "PURCHASE_RETRY_DELAY",
    "PURCHASE_SELECTORS",
    "MONITOR_CHECK_INTERVAL",
    "LOGIN_ATTEMPTS",
    "LOG_LEVEL",
    "SESSION_COOKIE_PREFIX",
    "MONITOR_WATCH_FLASH_SALES",
    "MANUAL_LOGIN_POLL_INTERVAL",
    "AUTO_CHECKOUT",
    "CHECKOUT_TIMEOUT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LIVESTREAM_URLS", "https://live.example.com/a, https://live.example.com/b")


def test_defaults():
    config = load_config()

    assert config.livestream_urls == ["https://live.example.com/a", "https://live.example.com/b"]
    assert config.purchase.max_retries == 3
    assert config.purchase.retry_delay == 1.0
    assert config.monitor.check_interval == 1.0
    assert config.monitor.purchase_selectors == PURCHASE_SELECTORS
    assert config.auth.manual_login_timeout == 300.0
    assert config.login_attempts == 2
    assert not config.auth.credentials.present


def test_stream_targets_numbered_from_one():
    targets = load_config().stream_targets()

    assert [(t.stream_id, t.url) for t in targets] == [
        (1, "https://live.example.com/a"),
        (2, "https://live.example.com/b"),
    ]


def test_missing_livestream_urls(monkeypatch):
    monkeypatch.setenv("LIVESTREAM_URLS", " , ")
    with pytest.raises(ConfigError, match="LIVESTREAM_URLS"):
        load_config()


def test_empty_base_url(monkeypatch):
    monkeypatch.setenv("STORE_BASE_URL", "")
    with pytest.raises(ConfigError, match="STORE_BASE_URL"):
        load_config()


@pytest.mark.parametrize("value", ["0", "-2"])
def test_non_positive_max_retries_falls_back(monkeypatch, value):
    monkeypatch.setenv("PURCHASE_MAX_RETRIES", value)
    assert load_config().purchase.max_retries == 3


def test_non_positive_browser_timeout_falls_back(monkeypatch):
    monkeypatch.setenv("BROWSER_TIMEOUT", "0")
    config = load_config()
    assert config.browser.timeout == 30.0
    assert config.monitor.nav_timeout == 30.0


def test_malformed_number(monkeypatch):
    monkeypatch.setenv("PURCHASE_RETRY_DELAY", "soon")
    with pytest.raises(ConfigError, match="PURCHASE_RETRY_DELAY"):
        load_config()


def test_overrides(monkeypatch):
    monkeypatch.setenv("STORE_BASE_URL", "https://shop.example.com/")
    monkeypatch.setenv("STORE_USERNAME", "alice")
    monkeypatch.setenv("STORE_PASSWORD", "s3cret")
    monkeypatch.setenv("PURCHASE_SELECTORS", "#buy, #reserve")
    monkeypatch.setenv("SESSION_COOKIE_PREFIX", "SID_")
    monkeypatch.setenv("MONITOR_WATCH_FLASH_SALES", "yes")
    monkeypatch.setenv("LOGIN_ATTEMPTS", "0")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = load_config()

    assert config.auth.base_url == "https://shop.example.com"
    assert config.auth.login_url == "https://shop.example.com/buyer/login"
    assert config.auth.credentials.present
    assert config.monitor.purchase_selectors == ["#buy", "#reserve"]
    assert config.auth.detection.session_cookie_prefix == "SID_"
    assert config.monitor.watch_flash_sales
    assert config.login_attempts == 1
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize(
    "name, value, field",
    [
        ("MONITOR_CHECK_INTERVAL", "0", "check_interval"),
        ("MONITOR_CHECK_INTERVAL", "-0.5", "check_interval"),
        ("MANUAL_LOGIN_POLL_INTERVAL", "-1", "manual_login_poll_interval"),
    ],
)
def test_non_positive_poll_interval_rejected(monkeypatch, name, value, field):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError, match=field):
        load_config()


def test_auto_checkout_off_by_default(monkeypatch):
    assert not load_config().purchase.auto_checkout

    monkeypatch.setenv("AUTO_CHECKOUT", "true")
    monkeypatch.setenv("CHECKOUT_TIMEOUT", "4")
    purchase = load_config().purchase
    assert purchase.auto_checkout
    assert purchase.checkout_timeout == 4.0
