"""Change-event models emitted by the issues event feed."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

EVENT_TYPE_RESOURCE_CHANGE = "RESOURCE_CHANGE"


@dataclass(frozen=True)
class ResourceId:
    """Reference to a synced resource: (resource type id, resource id)."""

    resource_type: str
    resource: str


@dataclass(frozen=True)
class ResourceChangeEvent:
    """Emitted once per issue whose status changed inside the poll window."""

    id: str  # issue id
    occurred_at: datetime  # issue statusChangedAt
    resource_id: ResourceId


@dataclass(frozen=True)
class EventFeedMetadata:
    """Static description of an event feed."""

    id: str
    supported_event_types: tuple[str, ...] = (EVENT_TYPE_RESOURCE_CHANGE,)


@dataclass(frozen=True)
class StreamState:
    """Outbound poll token plus whether the caller should call again now."""

    cursor: str
    has_more: bool


@dataclass
class EventBatch:
    """Result of a single event feed poll."""

    state: StreamState
    events: list[ResourceChangeEvent] = field(default_factory=list)
