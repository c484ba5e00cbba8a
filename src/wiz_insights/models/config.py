"""Configuration models for the connector and feed daemon."""

from __future__ import annotations

from dataclasses import dataclass, field

PRINCIPAL_ENTITY_TYPES = ("USER_ACCOUNT", "SERVICE_ACCOUNT")


@dataclass
class WizConfig:
    """Wiz API connection settings."""

    api_url: str = ""  # e.g. https://api.us17.app.wiz.io/graphql
    client_id: str = ""
    client_secret: str = ""  # loaded from env var WIZ_INSIGHTS_CLIENT_SECRET
    auth_endpoint: str = "https://auth.app.wiz.io/oauth/token"
    audience: str = "wiz-api"
    page_size: int = 100
    entity_types: list[str] = field(default_factory=lambda: list(PRINCIPAL_ENTITY_TYPES))
    request_timeout: int = 30  # seconds
    max_retries: int = 3


@dataclass
class FeedConfig:
    """Event feed polling settings."""

    feed_id: str = "wiz_issues_feed"
    poll_interval: int = 300  # seconds between sweeps
    error_backoff: int = 60  # seconds after a failed poll
    earliest_event: str | None = None  # RFC3339; default is 30 days back


@dataclass
class AppConfig:
    """Complete application configuration."""

    wiz: WizConfig = field(default_factory=WizConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)
    db_path: str = "~/.wiz_insights/state.db"
    log_level: str = "info"
