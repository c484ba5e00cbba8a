"""Feed daemon - drives the issues event feed and persists its token."""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import AsyncIterator

from wiz_insights.config import earliest_event
from wiz_insights.connector.connector import WizInsightsConnector
from wiz_insights.interfaces.store import TokenStore
from wiz_insights.models.config import AppConfig
from wiz_insights.models.events import EventBatch
from wiz_insights.models.resources import ResourcePage
from wiz_insights.storage.sqlite import SQLiteStateStore

log = logging.getLogger(__name__)


class FeedDaemon:
    """Polls one event feed lineage forever.

    The lineage token lives only in the store. Each poll's events and its
    outbound token are saved together, so a failed or cancelled poll
    leaves the previous token in place and the same window is retried.
    """

    def __init__(
        self,
        cfg: AppConfig,
        connector: WizInsightsConnector | None = None,
        store: TokenStore | None = None,
    ) -> None:
        self._cfg = cfg
        self._running = False
        self._earliest = earliest_event(cfg)
        self.connector = connector or WizInsightsConnector.from_config(cfg.wiz, cfg.feed.feed_id)
        self.store: TokenStore = store or SQLiteStateStore(cfg.db_path)

    @property
    def lineage(self) -> str:
        return self._cfg.feed.feed_id

    async def start(self) -> None:
        """Initialize the store and run the polling loop until stopped."""
        log.info("Starting wiz_insights feed daemon")
        log.info("  API: %s", self._cfg.wiz.api_url)
        log.info("  Feed: %s", self.lineage)
        log.info("  Poll interval: %ds", self._cfg.feed.poll_interval)

        await self.store.initialize()
        self._running = True
        await self.store.log_activity("daemon_started", "Daemon started", self.lineage)

        try:
            await self._main_loop()
        finally:
            await self.store.log_activity("daemon_stopped", "Daemon stopped", self.lineage)
            await self.store.close()
            await self.connector.close()
            log.info("Daemon shut down cleanly")

    async def stop(self) -> None:
        log.info("Stop requested")
        self._running = False

    async def _main_loop(self) -> None:
        while self._running:
            try:
                batch = await self.poll_once()
                if batch.state.has_more:
                    # Mid-window: fetch the next page without waiting
                    continue
                await asyncio.sleep(self._cfg.feed.poll_interval)

            except asyncio.CancelledError:
                log.info("Main loop cancelled")
                break
            except Exception as exc:
                log.error("Poll failed, keeping previous token: %s", exc, exc_info=True)
                await self.store.log_activity("error", str(exc), self.lineage)
                await asyncio.sleep(self._cfg.feed.error_backoff)

    async def poll_once(self) -> EventBatch:
        """Run one feed call and persist its events and outbound token."""
        token = await self.store.get_token(self.lineage)
        batch = await self.connector.feed.list_events(self._earliest, token)
        await self.store.save_events(self.lineage, batch.events, batch.state.cursor)
        if batch.events:
            log.info(
                "Received %d issue change events (has_more=%s)",
                len(batch.events), batch.state.has_more,
            )
        return batch

    async def run_once(self) -> int:
        """Poll until the current window is drained. Returns the event count."""
        total = 0
        while True:
            batch = await self.poll_once()
            total += len(batch.events)
            if not batch.state.has_more:
                return total


async def iter_resource_pages(
    connector: WizInsightsConnector, page_token: str | None = None
) -> AsyncIterator[ResourcePage]:
    """Walk every issue lister page, starting from page_token."""
    while True:
        page = await connector.lister.list(page_token)
        yield page
        if not page.next_page_token:
            return
        page_token = page.next_page_token


async def run_daemon(cfg: AppConfig) -> None:
    """Entry point: create the daemon and run until SIGINT/SIGTERM."""
    daemon = FeedDaemon(cfg)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda: asyncio.ensure_future(daemon.stop()))
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
