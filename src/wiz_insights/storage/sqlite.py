"""SQLite implementation of the TokenStore protocol."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from wiz_insights.models.events import ResourceChangeEvent
from wiz_insights.storage.records import ActivityRecord, StoredEvent

SCHEMA = """
-- Latest poll token per polling lineage
CREATE TABLE IF NOT EXISTS feed_tokens (
    lineage TEXT PRIMARY KEY,
    token TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Emitted change events (at-least-once, so re-emits bump times_seen)
CREATE TABLE IF NOT EXISTS events (
    lineage TEXT NOT NULL,
    id TEXT NOT NULL,
    occurred_at TEXT NOT NULL,
    resource_type TEXT NOT NULL,
    resource_id TEXT NOT NULL,
    times_seen INTEGER NOT NULL DEFAULT 1,
    received_at TEXT NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (lineage, id, occurred_at)
);
CREATE INDEX IF NOT EXISTS idx_events_received ON events(received_at);

-- Activity log
CREATE TABLE IF NOT EXISTS activity_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_type TEXT NOT NULL,
    lineage TEXT,
    message TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_activity_created ON activity_log(created_at);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteStateStore:
    """SQLite-backed implementation of the TokenStore protocol."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Tokens ─────────────────────────────────────────────

    async def get_token(self, lineage: str) -> str | None:
        async with self.db.execute(
            "SELECT token FROM feed_tokens WHERE lineage=?", (lineage,)
        ) as cur:
            row = await cur.fetchone()
            return row["token"] if row else None

    async def set_token(self, lineage: str, token: str) -> None:
        await self._upsert_token(lineage, token)
        await self.db.commit()

    async def _upsert_token(self, lineage: str, token: str) -> None:
        await self.db.execute(
            "INSERT INTO feed_tokens (lineage, token, updated_at) VALUES (?, ?, ?)"
            " ON CONFLICT(lineage) DO UPDATE SET token=excluded.token,"
            " updated_at=excluded.updated_at",
            (lineage, token, _now()),
        )

    # ── Events ─────────────────────────────────────────────

    async def save_events(
        self, lineage: str, events: list[ResourceChangeEvent], token: str
    ) -> None:
        """Persist events and the outbound token in one transaction."""
        now = _now()
        try:
            await self.db.executemany(
                "INSERT INTO events"
                " (lineage, id, occurred_at, resource_type, resource_id, received_at)"
                " VALUES (?, ?, ?, ?, ?, ?)"
                " ON CONFLICT(lineage, id, occurred_at) DO UPDATE SET"
                " times_seen=times_seen+1, received_at=excluded.received_at",
                [
                    (
                        lineage,
                        e.id,
                        e.occurred_at.isoformat(),
                        e.resource_id.resource_type,
                        e.resource_id.resource,
                        now,
                    )
                    for e in events
                ],
            )
            await self._upsert_token(lineage, token)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def get_recent_events(
        self, lineage: str | None = None, limit: int = 50
    ) -> list[StoredEvent]:
        if lineage is None:
            sql = "SELECT * FROM events ORDER BY received_at DESC, occurred_at DESC LIMIT ?"
            params: tuple = (limit,)
        else:
            sql = (
                "SELECT * FROM events WHERE lineage=?"
                " ORDER BY received_at DESC, occurred_at DESC LIMIT ?"
            )
            params = (lineage, limit)
        async with self.db.execute(sql, params) as cur:
            rows = await cur.fetchall()
            return [
                StoredEvent(
                    id=r["id"],
                    lineage=r["lineage"],
                    occurred_at=r["occurred_at"],
                    resource_type=r["resource_type"],
                    resource_id=r["resource_id"],
                    received_at=r["received_at"],
                    times_seen=r["times_seen"],
                )
                for r in rows
            ]

    # ── Activity log ───────────────────────────────────────

    async def log_activity(self, event_type: str, message: str, lineage: str | None = None) -> None:
        await self.db.execute(
            "INSERT INTO activity_log (event_type, lineage, message, created_at)"
            " VALUES (?, ?, ?, ?)",
            (event_type, lineage, message, _now()),
        )
        await self.db.commit()

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        async with self.db.execute(
            "SELECT * FROM activity_log ORDER BY id DESC LIMIT ?", (limit,)
        ) as cur:
            rows = await cur.fetchall()
            return [
                ActivityRecord(
                    id=r["id"],
                    event_type=r["event_type"],
                    message=r["message"],
                    lineage=r["lineage"],
                    created_at=r["created_at"],
                )
                for r in rows
            ]
