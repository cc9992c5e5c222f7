"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .constants import (
    ACCOUNT_MENU_SELECTORS,
    AUTH_MARKER_SELECTOR,
    DEFAULT_BASE_URL,
    LOGIN_PASSWORD_SELECTOR,
    LOGIN_PATH,
    LOGIN_SUBMIT_SELECTOR,
    LOGIN_USERNAME_SELECTOR,
    PURCHASE_SELECTORS,
    SESSION_COOKIE_PREFIX,
)
from .errors import ConfigError
from .models.stream import StreamTarget

load_dotenv()

# Paths
DATA_DIR = Path(os.getenv("DATA_DIR", Path(__file__).parent.parent / "data"))
DB_PATH = DATA_DIR / "livestream_bot.db"
LOG_DIR = DATA_DIR / "logs"
SESSION_FILE = Path(os.getenv("SESSION_FILE", DATA_DIR / "cookies" / "session.json"))

# Status server
STATUS_SERVER_HOST = os.getenv("STATUS_SERVER_HOST", "127.0.0.1")
STATUS_SERVER_PORT = int(os.getenv("STATUS_SERVER_PORT", "8025"))


def ensure_dirs():
    """Create required data directories if they don't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    SESSION_FILE.parent.mkdir(parents=True, exist_ok=True)


# ── Settings models ──────────────────────────────────────────────────────────


class Credentials(BaseModel):
    username: str = ""
    password: str = ""

    @property
    def present(self) -> bool:
        return bool(self.username and self.password)


class LoginDetectionPolicy(BaseModel):
    """Predicates that decide whether the browser is logged in.

    Kept as data so the storefront's markup can change without touching the
    session state machine.
    """

    login_path: str = LOGIN_PATH
    account_menu_selectors: list[str] = Field(default_factory=lambda: list(ACCOUNT_MENU_SELECTORS))
    session_cookie_prefix: str = SESSION_COOKIE_PREFIX
    auth_marker_selector: str = AUTH_MARKER_SELECTOR
    username_selector: str = LOGIN_USERNAME_SELECTOR
    password_selector: str = LOGIN_PASSWORD_SELECTOR
    submit_selector: str = LOGIN_SUBMIT_SELECTOR


class AuthSettings(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    credentials: Credentials = Field(default_factory=Credentials)
    session_file: str = str(SESSION_FILE)
    detection: LoginDetectionPolicy = Field(default_factory=LoginDetectionPolicy)
    nav_timeout: float = 30.0
    nav_retries: int = 3
    nav_backoff: float = 1.0
    manual_login_poll_interval: float = Field(default=2.0, gt=0)
    manual_login_timeout: float = 300.0
    login_settle_delay: float = 2.0
    login_form_timeout: float = 10.0
    form_input_delay: float = 0.5
    login_submit_delay: float = 5.0
    refresh_interval: float = 0.0

    @property
    def login_url(self) -> str:
        return self.base_url.rstrip("/") + self.detection.login_path


class PurchaseSettings(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    max_retries: int = 3
    retry_delay: float = 1.0
    action_timeout: float = 5.0
    settle_delay: float = 1.0
    step_delay: float = 0.5
    nav_timeout: float = 30.0
    screenshot_dir: Optional[str] = None
    auto_checkout: bool = False
    checkout_timeout: float = 10.0
    checkout_poll_interval: float = 0.25


class MonitorSettings(BaseModel):
    check_interval: float = Field(default=1.0, gt=0)
    nav_timeout: float = 30.0
    nav_retries: int = 3
    nav_backoff: float = 1.0
    purchase_selectors: list[str] = Field(default_factory=lambda: list(PURCHASE_SELECTORS))
    watch_flash_sales: bool = False
    capture_product_info: bool = True


class BrowserSettings(BaseModel):
    headless: bool = False
    timeout: float = 30.0
    viewport_width: int = 1366
    viewport_height: int = 768
    stealth: bool = True
    proxy_server: str = ""
    proxy_username: str = ""
    proxy_password: str = ""


class BotConfig(BaseModel):
    livestream_urls: list[str]
    auth: AuthSettings = Field(default_factory=AuthSettings)
    purchase: PurchaseSettings = Field(default_factory=PurchaseSettings)
    monitor: MonitorSettings = Field(default_factory=MonitorSettings)
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    login_attempts: int = 2
    log_level: str = "INFO"
    status_server_enabled: bool = False
    notify_webhook_url: str = ""

    def stream_targets(self) -> list[StreamTarget]:
        return [StreamTarget(url=url, stream_id=i + 1) for i, url in enumerate(self.livestream_urls)]


# ── Loading ──────────────────────────────────────────────────────────────────


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def load_config() -> BotConfig:
    """Build and validate the bot configuration from the environment.

    Raises ConfigError when required values are missing or malformed.
    """
    base_url = os.getenv("STORE_BASE_URL", DEFAULT_BASE_URL).rstrip("/")
    if not base_url:
        raise ConfigError("STORE_BASE_URL is required")

    urls = _env_list("LIVESTREAM_URLS", [])
    if not urls:
        raise ConfigError("at least one livestream URL is required (LIVESTREAM_URLS)")

    browser_timeout = _env_float("BROWSER_TIMEOUT", 30.0)
    if browser_timeout <= 0:
        browser_timeout = 30.0

    max_retries = _env_int("PURCHASE_MAX_RETRIES", 3)
    if max_retries <= 0:
        max_retries = 3

    nav_retries = _env_int("MONITOR_NAV_RETRIES", 3)
    nav_backoff = _env_float("MONITOR_NAV_BACKOFF", 1.0)

    detection = LoginDetectionPolicy(
        login_path=os.getenv("LOGIN_PATH", LOGIN_PATH),
        account_menu_selectors=_env_list("ACCOUNT_MENU_SELECTORS", ACCOUNT_MENU_SELECTORS),
        session_cookie_prefix=os.getenv("SESSION_COOKIE_PREFIX", SESSION_COOKIE_PREFIX),
        auth_marker_selector=os.getenv("AUTH_MARKER_SELECTOR", AUTH_MARKER_SELECTOR),
    )

    try:
        return BotConfig(
            livestream_urls=urls,
            auth=AuthSettings(
                base_url=base_url,
                credentials=Credentials(
                    username=os.getenv("STORE_USERNAME", ""),
                    password=os.getenv("STORE_PASSWORD", ""),
                ),
                session_file=str(SESSION_FILE),
                detection=detection,
                nav_timeout=browser_timeout,
                nav_retries=nav_retries,
                nav_backoff=nav_backoff,
                manual_login_poll_interval=_env_float("MANUAL_LOGIN_POLL_INTERVAL", 2.0),
                manual_login_timeout=_env_float("MANUAL_LOGIN_TIMEOUT", 300.0),
                refresh_interval=_env_float("SESSION_REFRESH_INTERVAL", 0.0),
            ),
            purchase=PurchaseSettings(
                base_url=base_url,
                max_retries=max_retries,
                retry_delay=_env_float("PURCHASE_RETRY_DELAY", 1.0),
                action_timeout=_env_float("PURCHASE_ACTION_TIMEOUT", 5.0),
                settle_delay=_env_float("PURCHASE_SETTLE_DELAY", 1.0),
                nav_timeout=browser_timeout,
                screenshot_dir=os.getenv("SCREENSHOT_DIR") or None,
                auto_checkout=_env_bool("AUTO_CHECKOUT", False),
                checkout_timeout=_env_float("CHECKOUT_TIMEOUT", 10.0),
            ),
            monitor=MonitorSettings(
                check_interval=_env_float("MONITOR_CHECK_INTERVAL", 1.0),
                nav_timeout=browser_timeout,
                nav_retries=nav_retries,
                nav_backoff=nav_backoff,
                purchase_selectors=_env_list("PURCHASE_SELECTORS", PURCHASE_SELECTORS),
                watch_flash_sales=_env_bool("MONITOR_WATCH_FLASH_SALES", False),
            ),
            browser=BrowserSettings(
                headless=_env_bool("BROWSER_HEADLESS", False),
                timeout=browser_timeout,
                viewport_width=_env_int("BROWSER_VIEWPORT_WIDTH", 1366),
                viewport_height=_env_int("BROWSER_VIEWPORT_HEIGHT", 768),
                stealth=_env_bool("STEALTH_ENABLED", True),
                proxy_server=os.getenv("PROXY_SERVER", ""),
                proxy_username=os.getenv("PROXY_USERNAME", ""),
                proxy_password=os.getenv("PROXY_PASSWORD", ""),
            ),
            login_attempts=max(1, _env_int("LOGIN_ATTEMPTS", 2)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            status_server_enabled=_env_bool("STATUS_SERVER_ENABLED", False),
            notify_webhook_url=os.getenv("NOTIFY_WEBHOOK_URL", ""),
        )
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e
