"""Issue lister - pages through Wiz issues as security insight resources."""

from __future__ import annotations

import logging

from wiz_insights.connector.resource_types import ISSUE_RESOURCE_TYPE
from wiz_insights.errors import GraphQLError
from wiz_insights.interfaces.queries import IssueQueries
from wiz_insights.models.issues import Issue
from wiz_insights.models.resources import (
    ExternalResourceTarget,
    ResourcePage,
    ResourceType,
    SecurityInsightResource,
)

log = logging.getLogger(__name__)


def issue_to_resource(issue: Issue) -> SecurityInsightResource:
    """Render an issue as a security insight pointing at its entity.

    The target prefers the entity's external id (the cloud-native id) and
    falls back to the Wiz entity id.
    """
    entity = issue.entity_snapshot
    return SecurityInsightResource(
        id=issue.id,
        display_name=f"[{issue.severity}] {issue.source_rule.name}",
        resource_type=ISSUE_RESOURCE_TYPE.id,
        issue=issue.source_rule.name,
        severity=issue.severity,
        observed_at=issue.status_changed_at,
        target=ExternalResourceTarget(
            external_id=entity.external_id or entity.id,
            app_hint=entity.cloud_platform,
        ),
    )


class IssueLister:
    """Stateless lister: one page per call, continued by the caller's token."""

    def __init__(self, queries: IssueQueries) -> None:
        self._queries = queries

    def resource_type(self) -> ResourceType:
        return ISSUE_RESOURCE_TYPE

    async def list(self, page_token: str | None = None) -> ResourcePage:
        """Fetch one page of issues and map them to resources.

        next_page_token is set iff the upstream reports more pages, and
        must be passed back verbatim.
        """
        conn = await self._queries.list_issues(page_token or None)

        if conn.page_info.has_next_page and not conn.page_info.end_cursor:
            raise GraphQLError("issuesV2 reported hasNextPage without an endCursor")

        resources = [issue_to_resource(issue) for issue in conn.nodes]
        next_token = conn.page_info.end_cursor if conn.page_info.has_next_page else None

        log.debug(
            "Listed %d issues (next page: %s)", len(resources), "yes" if next_token else "no",
        )
        return ResourcePage(resources=resources, next_page_token=next_token)
