"""Wiz issues client - implements the IssueQueries protocol."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from wiz_insights.errors import GraphQLError, WizInsightsError
from wiz_insights.interfaces.transport import GraphQLTransport
from wiz_insights.models.config import WizConfig
from wiz_insights.models.issues import IssueConnection
from wiz_insights.wiz.queries import IssueQueryBuilder, format_rfc3339
from wiz_insights.wiz.transport import HttpxGraphQLTransport

log = logging.getLogger(__name__)


class WizClient:
    """Runs the issuesV2 query for the issue lister and the event feed.

    Both methods issue exactly one request and return one page. Errors
    propagate unchanged, with a note naming the operation and its
    pagination/time arguments.
    """

    def __init__(
        self,
        transport: GraphQLTransport,
        builder: IssueQueryBuilder | None = None,
    ) -> None:
        self._transport = transport
        self._builder = builder or IssueQueryBuilder()

    @classmethod
    def from_config(cls, cfg: WizConfig) -> WizClient:
        return cls(
            HttpxGraphQLTransport.from_config(cfg),
            IssueQueryBuilder(entity_types=cfg.entity_types, page_size=cfg.page_size),
        )

    async def close(self) -> None:
        await self._transport.close()

    async def validate(self) -> None:
        await self._transport.validate()

    async def list_issues(self, after: str | None = None) -> IssueConnection:
        """Fetch one page of principal-related issues."""
        variables = self._builder.variables(after=after)
        return await self._run(variables, f"list_issues(after={after!r})")

    async def list_issues_since(
        self, since: datetime, after: str | None = None
    ) -> IssueConnection:
        """Fetch one page of principal-related issues with statusChangedAt >= since."""
        variables = self._builder.variables(after=after, since=since)
        return await self._run(
            variables,
            f"list_issues_since(since={format_rfc3339(since)}, after={after!r})",
        )

    async def _run(self, variables: dict[str, Any], operation: str) -> IssueConnection:
        try:
            data = await self._transport.execute(self._builder.query, variables)
            return _parse_connection(data)
        except WizInsightsError as exc:
            exc.add_note(f"wiz-client: {operation}")
            log.error("%s failed: %s", operation, exc)
            raise


def _parse_connection(data: dict[str, Any]) -> IssueConnection:
    raw = data.get("issuesV2")
    if not isinstance(raw, dict):
        raise GraphQLError("graphql response is missing issuesV2")
    try:
        return IssueConnection.from_dict(raw)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise GraphQLError(f"malformed issuesV2 payload: {exc}") from exc
