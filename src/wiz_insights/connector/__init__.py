"""Connector components: cursor codec, issue lister, event feed."""

from wiz_insights.connector.connector import ConnectorMetadata, WizInsightsConnector
from wiz_insights.connector.cursor import PollCursor, decode_cursor, encode_cursor
from wiz_insights.connector.event_feed import EVENT_FEED_ID, IssuesEventFeed
from wiz_insights.connector.issues import IssueLister, issue_to_resource
from wiz_insights.connector.resource_types import ISSUE_RESOURCE_TYPE

__all__ = [
    "ConnectorMetadata", "WizInsightsConnector",
    "PollCursor", "decode_cursor", "encode_cursor",
    "EVENT_FEED_ID", "IssuesEventFeed",
    "IssueLister", "issue_to_resource",
    "ISSUE_RESOURCE_TYPE",
]
