"""The issuesV2 GraphQL document and its filter/pagination variables."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from wiz_insights.models.config import PRINCIPAL_ENTITY_TYPES

DEFAULT_PAGE_SIZE = 100

# Shared by the lister and the event feed; only filterBy and after differ.
ISSUES_QUERY = """query IssuesV2($after: String, $first: Int, $filterBy: IssueFilters) {
  issuesV2(after: $after, first: $first, filterBy: $filterBy) {
    nodes {
      id
      status
      severity
      createdAt
      statusChangedAt
      sourceRule {
        id
        name
      }
      entitySnapshot {
        id
        type
        name
        nativeType
        externalId
        cloudPlatform
        subscriptionId
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}"""


def format_rfc3339(dt: datetime) -> str:
    """Format as RFC3339 in UTC with second precision, e.g. 2024-05-01T12:00:00Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class IssueQueryBuilder:
    """Builds variables for ISSUES_QUERY.

    Results are always restricted to principal entity types (user and
    service accounts by default). A `since` bound adds a
    statusChangedAt.after clause for incremental polling.
    """

    def __init__(
        self,
        entity_types: Sequence[str] = PRINCIPAL_ENTITY_TYPES,
        page_size: int = DEFAULT_PAGE_SIZE,
        query: str = ISSUES_QUERY,
    ) -> None:
        if not entity_types:
            raise ValueError("entity_types must not be empty")
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.entity_types = tuple(entity_types)
        self.page_size = page_size
        self.query = query

    def principal_filter(self) -> dict[str, Any]:
        return {"relatedEntity": {"type": list(self.entity_types)}}

    def filter_by(self, since: datetime | None = None) -> dict[str, Any]:
        f = self.principal_filter()
        if since is not None:
            f["statusChangedAt"] = {"after": format_rfc3339(since)}
        return f

    def variables(
        self, after: str | None = None, since: datetime | None = None
    ) -> dict[str, Any]:
        variables: dict[str, Any] = {
            "first": self.page_size,
            "filterBy": self.filter_by(since),
        }
        if after:
            variables["after"] = after
        return variables
