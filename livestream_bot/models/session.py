"""Pydantic models for authentication state."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Cookie(BaseModel):
    """One browser cookie, serialized with the browser's own key names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    value: str
    domain: str = ""
    path: str = "/"
    http_only: bool = Field(default=False, alias="httpOnly")
    secure: bool = False
    expires: Optional[float] = None
    same_site: Optional[str] = Field(default=None, alias="sameSite")

    def to_browser(self) -> dict:
        """Cookie dict accepted by ``BrowserContext.add_cookies``."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    SESSION_LOADED = "session_loaded"
    VALIDATING = "validating"
    AUTHENTICATED = "authenticated"
    MANUAL_LOGIN_WAITING = "manual_login_waiting"
    AUTOMATED_LOGIN_ATTEMPT = "automated_login_attempt"


class Session(BaseModel):
    """Authentication state for one account."""

    cookies: list[Cookie] = Field(default_factory=list)
    authenticated: bool = False
    session_file_path: str = ""

    def reset(self):
        self.cookies = []
        self.authenticated = False
