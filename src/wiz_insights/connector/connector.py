"""Wiz Insights connector - wires the issue lister and event feed together."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from wiz_insights.connector.event_feed import IssuesEventFeed
from wiz_insights.connector.issues import IssueLister
from wiz_insights.errors import WizInsightsError
from wiz_insights.interfaces.queries import IssueSource
from wiz_insights.models.config import WizConfig
from wiz_insights.wiz.client import WizClient

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectorMetadata:
    display_name: str
    description: str


class WizInsightsConnector:
    """Syncs Wiz issues as security insights and exposes them as an event feed."""

    def __init__(self, client: IssueSource, feed_id: str | None = None) -> None:
        self._client = client
        self.lister = IssueLister(client)
        self.feed = IssuesEventFeed(client, feed_id) if feed_id else IssuesEventFeed(client)

    @classmethod
    def from_config(cls, cfg: WizConfig, feed_id: str | None = None) -> WizInsightsConnector:
        return cls(WizClient.from_config(cfg), feed_id)

    def resource_syncers(self) -> list[IssueLister]:
        return [self.lister]

    def event_feeds(self) -> list[IssuesEventFeed]:
        return [self.feed]

    def metadata(self) -> ConnectorMetadata:
        return ConnectorMetadata(
            display_name="Wiz Insights",
            description="Wiz cloud security platform connector for syncing security issues as insights",
        )

    async def validate(self) -> None:
        """Exercise the API credentials."""
        try:
            await self._client.validate()
        except WizInsightsError as exc:
            raise WizInsightsError(
                f"wiz-insights: failed to validate Wiz API credentials: {exc}"
            ) from exc
        log.info("Wiz API credentials validated")

    async def close(self) -> None:
        await self._client.close()
