"""TokenStore protocol - persists poll tokens and emitted events."""

from __future__ import annotations

from typing import Protocol

from wiz_insights.models.events import ResourceChangeEvent
from wiz_insights.storage.records import ActivityRecord, StoredEvent


class TokenStore(Protocol):
    """Caller-side persistence for one or more polling lineages."""

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        ...

    # ── Tokens ─────────────────────────────────────────────

    async def get_token(self, lineage: str) -> str | None:
        ...

    async def set_token(self, lineage: str, token: str) -> None:
        ...

    # ── Events ─────────────────────────────────────────────

    async def save_events(
        self, lineage: str, events: list[ResourceChangeEvent], token: str
    ) -> None:
        """Store events and advance the lineage token atomically."""
        ...

    async def get_recent_events(
        self, lineage: str | None = None, limit: int = 50
    ) -> list[StoredEvent]:
        ...

    # ── Activity log ───────────────────────────────────────

    async def log_activity(self, event_type: str, message: str, lineage: str | None = None) -> None:
        ...

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        ...
