"""Pydantic models for livestream targets and their monitor tasks."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StreamTarget(BaseModel):
    """One livestream under observation. Immutable once monitoring starts."""

    model_config = ConfigDict(frozen=True)

    url: str
    stream_id: int = Field(ge=1)


class MonitorStatus(str, Enum):
    NAVIGATING = "navigating"
    POLLING = "polling"
    PURCHASE_ATTEMPT = "purchase_attempt"
    STOPPED = "stopped"


class MonitorTask(BaseModel):
    """Runtime state of one stream's poll loop (never persisted)."""

    target: StreamTarget
    status: MonitorStatus = MonitorStatus.NAVIGATING
    last_check_at: Optional[datetime] = None
    checks: int = 0
    purchase_attempts: int = 0
    purchases_succeeded: int = 0
    last_error: Optional[str] = None


class FlashSale(BaseModel):
    """A flash-sale countdown seen on a stream page."""

    stream_id: int
    countdown: str
    detected_at: datetime = Field(default_factory=datetime.now)


class ProductInfo(BaseModel):
    """Best-effort product metadata read from the current stream page."""

    name: Optional[str] = None
    price: Optional[str] = None
    stock: Optional[str] = None
