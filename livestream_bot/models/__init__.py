"""Pydantic models for sessions, stream monitoring, purchases and status events."""

from .events import EventKind, StatusEvent  # noqa: F401
from .purchase import PurchaseAttempt, PurchaseOutcome  # noqa: F401
from .session import Cookie, Session, SessionState  # noqa: F401
from .stream import FlashSale, MonitorStatus, MonitorTask, ProductInfo, StreamTarget  # noqa: F401
