"""Async repository for the status event journal."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Optional

import aiosqlite

from ..models.events import StatusEvent
from ..models.purchase import PurchaseAttempt

logger = logging.getLogger(__name__)


class EventRepository:
    """Async repository for status events and purchase attempts in SQLite."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def insert_event(self, event: StatusEvent):
        await self._db.execute(
            """
            INSERT INTO status_events (kind, stream_id, message, data, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.kind.value,
                event.stream_id,
                event.message,
                json.dumps(event.data, default=str, ensure_ascii=False),
                event.created_at,
            ),
        )
        await self._db.commit()

    async def insert_purchase_attempt(self, attempt: PurchaseAttempt):
        await self._db.execute(
            """
            INSERT INTO purchase_attempts (
                stream_id, selector, attempt_number, outcome, error, created_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                attempt.stream_id,
                attempt.selector,
                attempt.attempt_number,
                attempt.outcome.value,
                attempt.error,
                datetime.now().isoformat(),
            ),
        )
        await self._db.commit()

    async def recent_events(self, limit: int = 50, kind: Optional[str] = None) -> list[dict]:
        """Most recent events first."""
        query = "SELECT kind, stream_id, message, data, created_at FROM status_events"
        params: list = []
        if kind:
            query += " WHERE kind = ?"
            params.append(kind)
        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)

        cursor = await self._db.execute(query, params)
        rows = await cursor.fetchall()
        return [
            {
                "kind": row["kind"],
                "stream_id": row["stream_id"],
                "message": row["message"],
                "data": json.loads(row["data"] or "{}"),
                "created_at": row["created_at"],
            }
            for row in rows
        ]

    async def purchase_stats(self) -> dict:
        """Attempt counts by outcome, overall and per stream."""
        cursor = await self._db.execute(
            "SELECT outcome, COUNT(*) AS n FROM purchase_attempts GROUP BY outcome"
        )
        by_outcome = {row["outcome"]: row["n"] for row in await cursor.fetchall()}

        cursor = await self._db.execute(
            """
            SELECT stream_id, outcome, COUNT(*) AS n FROM purchase_attempts
            GROUP BY stream_id, outcome ORDER BY stream_id
            """
        )
        by_stream: dict[str, dict[str, int]] = {}
        for row in await cursor.fetchall():
            by_stream.setdefault(str(row["stream_id"]), {})[row["outcome"]] = row["n"]

        return {
            "total": sum(by_outcome.values()),
            "by_outcome": by_outcome,
            "by_stream": by_stream,
        }
