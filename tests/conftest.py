"""Shared fixtures for wiz_insights tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from wiz_insights.connector.connector import WizInsightsConnector
from wiz_insights.connector.event_feed import IssuesEventFeed
from wiz_insights.connector.issues import IssueLister
from wiz_insights.daemon import FeedDaemon
from wiz_insights.models.config import AppConfig, FeedConfig, WizConfig
from wiz_insights.storage.sqlite import SQLiteStateStore

from tests.factories import T0
from tests.mocks import MockQueries

API_URL = "https://api.us1.app.wiz.io/graphql"
AUTH_ENDPOINT = "https://auth.app.wiz.io/oauth/token"


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add connector info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Wiz API"] = API_URL
    meta["Entity types"] = ", ".join(WizConfig().entity_types)


def make_test_config(**feed_overrides) -> AppConfig:
    """Build an AppConfig suitable for testing."""
    feed = dict(
        feed_id="test_feed",
        poll_interval=1,
        error_backoff=1,
        earliest_event=T0.isoformat(),
    )
    feed.update(feed_overrides)
    return AppConfig(
        wiz=WizConfig(
            api_url=API_URL,
            client_id="test-client-id",
            client_secret="test-client-secret",
            auth_endpoint=AUTH_ENDPOINT,
            max_retries=1,
        ),
        feed=FeedConfig(**feed),
        db_path=":memory:",
    )


@pytest.fixture
def test_config():
    """Default AppConfig for tests."""
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteStateStore."""
    s = SQLiteStateStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def mock_queries():
    return MockQueries()


@pytest.fixture
def feed(mock_queries):
    return IssuesEventFeed(mock_queries)


@pytest.fixture
def lister(mock_queries):
    return IssueLister(mock_queries)


@pytest.fixture
def connector(mock_queries):
    return WizInsightsConnector(mock_queries, feed_id="test_feed")


@pytest.fixture
async def daemon(test_config, store, connector):
    """FeedDaemon wired to mocked queries and an in-memory store."""
    return FeedDaemon(test_config, connector=connector, store=store)
