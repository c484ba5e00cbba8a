"""Record types returned by the state store."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class StoredEvent:
    """A change event as persisted in the state store."""

    id: str
    lineage: str
    occurred_at: str  # ISO 8601
    resource_type: str
    resource_id: str
    received_at: str = ""
    times_seen: int = 1


@dataclass
class ActivityRecord:
    """A single activity log entry."""

    id: int
    event_type: str
    message: str
    lineage: str | None = None
    created_at: str = ""
