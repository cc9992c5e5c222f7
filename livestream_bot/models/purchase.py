"""Pydantic models for purchase attempts."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class PurchaseOutcome(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class PurchaseAttempt(BaseModel):
    """One activation of a detected purchase control."""

    selector: str
    attempt_number: int
    outcome: PurchaseOutcome = PurchaseOutcome.FAILED
    stream_id: Optional[int] = None
    error: Optional[str] = None
