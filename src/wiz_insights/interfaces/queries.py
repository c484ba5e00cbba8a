"""IssueQueries protocol - the two queries the lister and feed depend on."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from wiz_insights.models.issues import IssueConnection


class IssueQueries(Protocol):
    """Fetches pages of principal-related issues from Wiz."""

    async def list_issues(self, after: str | None = None) -> IssueConnection:
        """Fetch one page of all matching issues, starting after `after`."""
        ...

    async def list_issues_since(
        self, since: datetime, after: str | None = None
    ) -> IssueConnection:
        """Fetch one page of issues whose status changed at/after `since`."""
        ...


class IssueSource(IssueQueries, Protocol):
    """IssueQueries plus the lifecycle calls the connector needs."""

    async def validate(self) -> None:
        """Prove the credentials work."""
        ...

    async def close(self) -> None:
        ...
