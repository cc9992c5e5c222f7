"""SQLite database schema and initialization."""

from __future__ import annotations

import aiosqlite

SCHEMA = """
CREATE TABLE IF NOT EXISTS status_events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    kind TEXT NOT NULL,
    stream_id INTEGER,
    message TEXT DEFAULT '',
    data TEXT DEFAULT '{}',
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS purchase_attempts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    stream_id INTEGER,
    selector TEXT NOT NULL,
    attempt_number INTEGER NOT NULL,
    outcome TEXT NOT NULL,
    error TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_events_kind ON status_events(kind);
CREATE INDEX IF NOT EXISTS idx_events_created ON status_events(created_at);
CREATE INDEX IF NOT EXISTS idx_purchases_outcome ON purchase_attempts(outcome);
"""


async def initialize_db(db: aiosqlite.Connection):
    """Create tables and indexes if they don't exist."""
    await db.executescript(SCHEMA)
    await db.commit()
