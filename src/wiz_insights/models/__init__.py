"""Data models for wiz_insights."""

from wiz_insights.models.issues import (
    EntitySnapshot,
    Issue,
    IssueConnection,
    PageInfo,
    SourceRule,
)
from wiz_insights.models.events import (
    EventBatch,
    EventFeedMetadata,
    ResourceChangeEvent,
    ResourceId,
    StreamState,
)
from wiz_insights.models.resources import (
    ExternalResourceTarget,
    ResourcePage,
    ResourceType,
    SecurityInsightResource,
)
from wiz_insights.models.config import AppConfig, FeedConfig, WizConfig

__all__ = [
    "EntitySnapshot", "Issue", "IssueConnection", "PageInfo", "SourceRule",
    "EventBatch", "EventFeedMetadata", "ResourceChangeEvent", "ResourceId",
    "StreamState",
    "ExternalResourceTarget", "ResourcePage", "ResourceType",
    "SecurityInsightResource",
    "AppConfig", "FeedConfig", "WizConfig",
]
