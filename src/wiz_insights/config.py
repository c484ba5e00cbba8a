"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
import tomllib
from datetime import datetime
from pathlib import Path

from wiz_insights.errors import ConfigError
from wiz_insights.models.config import AppConfig
from wiz_insights.models.issues import parse_timestamp


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "WIZ_INSIGHTS_",
) -> AppConfig:
    """Load configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (WIZ_INSIGHTS_CLIENT_SECRET, etc.)
        2. TOML config file
        3. Defaults from AppConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                try:
                    raw = tomllib.load(f)
                except tomllib.TOMLDecodeError as exc:
                    raise ConfigError(f"invalid config file {p}: {exc}") from exc

    cfg = AppConfig()

    # ── Wiz section ────────────────────────────────────────
    wiz = raw.get("wiz", {})
    if v := wiz.get("api_url"):
        cfg.wiz.api_url = str(v)
    if v := wiz.get("client_id"):
        cfg.wiz.client_id = str(v)
    if v := wiz.get("client_secret"):
        cfg.wiz.client_secret = str(v)
    if v := wiz.get("auth_endpoint"):
        cfg.wiz.auth_endpoint = str(v)
    if v := wiz.get("audience"):
        cfg.wiz.audience = str(v)
    if v := wiz.get("page_size"):
        cfg.wiz.page_size = int(v)
    if v := wiz.get("entity_types"):
        cfg.wiz.entity_types = [str(t) for t in v]
    if v := wiz.get("request_timeout"):
        cfg.wiz.request_timeout = int(v)
    if (v := wiz.get("max_retries")) is not None:
        cfg.wiz.max_retries = int(v)

    # ── Feed section ───────────────────────────────────────
    feed = raw.get("feed", {})
    if v := feed.get("feed_id"):
        cfg.feed.feed_id = str(v)
    if v := feed.get("poll_interval"):
        cfg.feed.poll_interval = int(v)
    if v := feed.get("error_backoff"):
        cfg.feed.error_backoff = int(v)
    if v := feed.get("earliest_event"):
        # tomllib returns offset datetimes natively
        cfg.feed.earliest_event = v.isoformat() if isinstance(v, datetime) else str(v)

    # ── Storage / daemon sections ──────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)
    daemon = raw.get("daemon", {})
    if v := daemon.get("log_level"):
        cfg.log_level = str(v)

    # ── Environment variable overrides (highest priority) ──
    if v := os.environ.get(f"{env_prefix}API_URL"):
        cfg.wiz.api_url = v
    if v := os.environ.get(f"{env_prefix}CLIENT_ID"):
        cfg.wiz.client_id = v
    if v := os.environ.get(f"{env_prefix}CLIENT_SECRET"):
        cfg.wiz.client_secret = v
    if v := os.environ.get(f"{env_prefix}AUTH_ENDPOINT"):
        cfg.wiz.auth_endpoint = v
    if v := os.environ.get(f"{env_prefix}EARLIEST_EVENT"):
        cfg.feed.earliest_event = v
    if v := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = v

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg


def validate_config(cfg: AppConfig) -> None:
    """Raise ConfigError naming every missing or invalid setting."""
    problems = []
    if not cfg.wiz.api_url:
        problems.append("wiz.api_url is required")
    if not cfg.wiz.client_id:
        problems.append("wiz.client_id is required")
    if not cfg.wiz.client_secret:
        problems.append("wiz.client_secret is required")
    if not cfg.wiz.auth_endpoint:
        problems.append("wiz.auth_endpoint is required")
    if cfg.wiz.page_size <= 0:
        problems.append(f"wiz.page_size must be positive, got {cfg.wiz.page_size}")
    if not cfg.wiz.entity_types:
        problems.append("wiz.entity_types must not be empty")
    if cfg.feed.earliest_event:
        try:
            earliest_event(cfg)
        except ConfigError as exc:
            problems.append(str(exc))
    if problems:
        raise ConfigError("; ".join(problems))


def earliest_event(cfg: AppConfig) -> datetime | None:
    """The configured first-poll lower bound, if any."""
    if not cfg.feed.earliest_event:
        return None
    try:
        return parse_timestamp(cfg.feed.earliest_event)
    except ValueError as exc:
        raise ConfigError(
            f"feed.earliest_event is not RFC3339: {cfg.feed.earliest_event!r}"
        ) from exc
