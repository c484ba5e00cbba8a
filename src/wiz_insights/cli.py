"""CLI entry point for wiz_insights."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click

from wiz_insights.config import load_config, validate_config
from wiz_insights.connector.connector import WizInsightsConnector
from wiz_insights.connector.cursor import decode_cursor
from wiz_insights.daemon import FeedDaemon, iter_resource_pages, run_daemon
from wiz_insights.errors import ConfigError, CursorDecodeError, WizInsightsError
from wiz_insights.models.config import AppConfig
from wiz_insights.storage.sqlite import SQLiteStateStore


def _require_valid(cfg: AppConfig) -> None:
    """Exit with error if required connection settings are missing."""
    try:
        validate_config(cfg)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        click.echo(
            "Set WIZ_INSIGHTS_CLIENT_ID / WIZ_INSIGHTS_CLIENT_SECRET env vars or the [wiz] config section.",
            err=True,
        )
        sys.exit(1)


def _run(coro) -> None:
    """Run a coroutine, turning package errors into a clean exit."""
    try:
        asyncio.run(coro)
    except WizInsightsError as exc:
        click.echo(f"Error: {exc}", err=True)
        for note in getattr(exc, "__notes__", []):
            click.echo(f"  {note}", err=True)
        sys.exit(1)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """wiz-insights - Wiz security issues as insights and a change-event feed."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Daemon ─────────────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Start the event feed polling daemon."""
    cfg = load_config(ctx.obj["config_path"])
    _require_valid(cfg)

    click.echo(f"Starting wiz-insights feed daemon (feed: {cfg.feed.feed_id})")
    _run(run_daemon(cfg))


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show configuration."""
    cfg = load_config(ctx.obj["config_path"])
    click.echo(f"API URL:        {cfg.wiz.api_url or '(not set)'}")
    click.echo(f"Auth endpoint:  {cfg.wiz.auth_endpoint}")
    click.echo(f"Client ID:      {cfg.wiz.client_id or '(not set)'}")
    click.echo(f"Client secret:  {'***configured***' if cfg.wiz.client_secret else '(not set)'}")
    click.echo(f"Entity types:   {', '.join(cfg.wiz.entity_types)}")
    click.echo(f"Page size:      {cfg.wiz.page_size}")
    click.echo(f"Feed:           {cfg.feed.feed_id}")
    click.echo(f"Poll interval:  {cfg.feed.poll_interval}s")
    click.echo(f"Earliest event: {cfg.feed.earliest_event or '(30 days back)'}")
    click.echo(f"DB path:        {cfg.db_path}")


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Check that the Wiz API credentials work."""
    cfg = load_config(ctx.obj["config_path"])
    _require_valid(cfg)

    async def _validate():
        connector = WizInsightsConnector.from_config(cfg.wiz)
        try:
            await connector.validate()
            click.echo("Credentials OK")
        finally:
            await connector.close()

    _run(_validate())


# ── Sync ───────────────────────────────────────────────


@cli.command()
@click.option("--page-token", default=None, help="Resume listing from this page token")
@click.option("--max-pages", type=int, default=None, help="Stop after this many pages")
@click.pass_context
def sync(ctx: click.Context, page_token: str | None, max_pages: int | None) -> None:
    """List every matching issue as a security insight (JSON lines)."""
    cfg = load_config(ctx.obj["config_path"])
    _require_valid(cfg)

    async def _sync():
        connector = WizInsightsConnector.from_config(cfg.wiz)
        pages = 0
        total = 0
        try:
            async for page in iter_resource_pages(connector, page_token):
                pages += 1
                for resource in page.resources:
                    click.echo(json.dumps(resource.to_dict()))
                total += len(page.resources)
                if max_pages is not None and pages >= max_pages:
                    if page.next_page_token:
                        click.echo(f"Next page token: {page.next_page_token}", err=True)
                    break
        finally:
            await connector.close()
        click.echo(f"Synced {total} issues in {pages} pages", err=True)

    _run(_sync())


# ── Event feed ─────────────────────────────────────────


@cli.command()
@click.option("--token", default=None, help="Poll token to start from (default: stored token)")
@click.option("--drain", is_flag=True, help="Keep polling until the window is drained")
@click.pass_context
def poll(ctx: click.Context, token: str | None, drain: bool) -> None:
    """Run the event feed once, storing events and the outbound token."""
    cfg = load_config(ctx.obj["config_path"])
    _require_valid(cfg)

    async def _poll():
        daemon = FeedDaemon(cfg)
        await daemon.store.initialize()
        try:
            if token is not None:
                # Validate before overwriting the stored lineage token
                decode_cursor(token)
                await daemon.store.set_token(daemon.lineage, token)
            if drain:
                count = await daemon.run_once()
                click.echo(f"Received {count} events")
            else:
                batch = await daemon.poll_once()
                for e in batch.events:
                    click.echo(f"{e.occurred_at.isoformat()}  {e.id}")
                click.echo(f"Received {len(batch.events)} events (has_more={batch.state.has_more})")
            click.echo(f"Token: {await daemon.store.get_token(daemon.lineage)}")
        finally:
            await daemon.store.close()
            await daemon.connector.close()

    _run(_poll())


@cli.command("decode-cursor")
@click.argument("token")
def decode_cursor_cmd(token: str) -> None:
    """Show the window encoded in a poll token."""
    try:
        cursor = decode_cursor(token)
    except CursorDecodeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Since:        {cursor.since.isoformat()}")
    click.echo(f"Latest seen:  {cursor.latest_seen.isoformat()}")
    click.echo(f"Page cursor:  {cursor.page_end_cursor or '(none)'}")


@cli.command()
@click.option("-n", "--limit", type=int, default=20, help="Number of events to show")
@click.pass_context
def events(ctx: click.Context, limit: int) -> None:
    """Show recently stored change events."""
    cfg = load_config(ctx.obj["config_path"])

    async def _events():
        store = SQLiteStateStore(cfg.db_path)
        await store.initialize()
        try:
            rows = await store.get_recent_events(cfg.feed.feed_id, limit)
            if not rows:
                click.echo("No events stored.")
                return
            for r in rows:
                seen = f" (x{r.times_seen})" if r.times_seen > 1 else ""
                click.echo(f"{r.occurred_at}  {r.resource_type}/{r.resource_id}{seen}")
        finally:
            await store.close()

    _run(_events())


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
