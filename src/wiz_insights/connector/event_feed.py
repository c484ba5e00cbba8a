"""Issues event feed - polls issuesV2 by statusChangedAt for change events."""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime

from wiz_insights.connector.cursor import decode_cursor, encode_cursor
from wiz_insights.connector.resource_types import ISSUE_RESOURCE_TYPE
from wiz_insights.errors import GraphQLError
from wiz_insights.interfaces.queries import IssueQueries
from wiz_insights.models.events import (
    EventBatch,
    EventFeedMetadata,
    ResourceChangeEvent,
    ResourceId,
    StreamState,
)
from wiz_insights.wiz.queries import format_rfc3339

log = logging.getLogger(__name__)

EVENT_FEED_ID = "wiz_issues_feed"


class IssuesEventFeed:
    """Emits one RESOURCE_CHANGE event per issue whose status changed.

    Each call sweeps one page of the window [since, now). While the
    upstream reports more pages, the token keeps `since` and records the
    page position. When the window is drained, the next window starts at
    the latest statusChangedAt seen, not at wall-clock time. The filter is
    inclusive, so an issue sitting exactly on the new bound is emitted
    again once (at-least-once delivery).

    Callers must serialize calls per token lineage. A failed call returns
    nothing, so the caller keeps its previous token.
    """

    def __init__(self, queries: IssueQueries, feed_id: str = EVENT_FEED_ID) -> None:
        self._queries = queries
        self._feed_id = feed_id

    def metadata(self) -> EventFeedMetadata:
        return EventFeedMetadata(id=self._feed_id)

    async def list_events(
        self,
        earliest_event: datetime | None = None,
        token: str | None = None,
    ) -> EventBatch:
        cursor = decode_cursor(token, earliest_event)

        log.debug(
            "wiz-event-feed: querying issues since=%s page_cursor=%s",
            format_rfc3339(cursor.since), cursor.page_end_cursor,
        )

        conn = await self._queries.list_issues_since(
            cursor.since, cursor.page_end_cursor or None,
        )

        events: list[ResourceChangeEvent] = []
        latest_seen = cursor.latest_seen
        for issue in conn.nodes:
            events.append(
                ResourceChangeEvent(
                    id=issue.id,
                    occurred_at=issue.status_changed_at,
                    resource_id=ResourceId(
                        resource_type=ISSUE_RESOURCE_TYPE.id,
                        resource=issue.id,
                    ),
                )
            )
            if issue.status_changed_at > latest_seen:
                latest_seen = issue.status_changed_at

        has_more = conn.page_info.has_next_page
        if has_more and not conn.page_info.end_cursor:
            raise GraphQLError("issuesV2 reported hasNextPage without an endCursor")

        if has_more:
            cursor = dataclasses.replace(
                cursor,
                latest_seen=latest_seen,
                page_end_cursor=conn.page_info.end_cursor,
            )
        else:
            # Window drained: the next sweep starts at the latest change seen
            cursor = dataclasses.replace(
                cursor,
                since=latest_seen,
                latest_seen=latest_seen,
                page_end_cursor="",
            )

        state = StreamState(cursor=encode_cursor(cursor), has_more=has_more)

        log.debug(
            "wiz-event-feed: processed issues count=%d has_more=%s", len(events), has_more,
        )
        return EventBatch(state=state, events=events)
