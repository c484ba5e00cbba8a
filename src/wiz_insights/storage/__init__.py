"""Persistence for poll tokens and emitted events."""

from wiz_insights.storage.records import ActivityRecord, StoredEvent
from wiz_insights.storage.sqlite import SQLiteStateStore

__all__ = ["ActivityRecord", "StoredEvent", "SQLiteStateStore"]
