"""Pydantic models for structured status events."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class EventKind(str, Enum):
    SESSION_STATE = "session_state"
    NAVIGATION_ATTEMPT = "navigation_attempt"
    LOGIN_WAITING = "login_waiting"
    LOGIN_DETECTED = "login_detected"
    MONITOR_STATUS = "monitor_status"
    MONITOR_ERROR = "monitor_error"
    FLASH_SALE = "flash_sale"
    PURCHASE_DETECTED = "purchase_detected"
    PURCHASE_ATTEMPT = "purchase_attempt"
    PURCHASE_OUTCOME = "purchase_outcome"
    KEEPALIVE = "keepalive"


class StatusEvent(BaseModel):
    """One state transition, enough for an operator to follow a run."""

    kind: EventKind
    message: str = ""
    stream_id: Optional[int] = None
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())
