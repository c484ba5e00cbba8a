"""Poll cursor for the issues event feed and its opaque token codec.

A cursor records the statusChangedAt window being swept:

    since            inclusive lower bound of the current window
    page_end_cursor  GraphQL endCursor while mid-window, "" otherwise
    latest_seen      max statusChangedAt observed in this window; becomes
                     the next `since` once the window is drained

Tokens are base64(JSON). Unknown keys are ignored on decode so fields can
be added without breaking older readers.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from wiz_insights.errors import CursorDecodeError
from wiz_insights.models.issues import parse_timestamp

CURSOR_VERSION = 1
DEFAULT_LOOKBACK = timedelta(days=30)

# Written by producers that serialized an unset timestamp
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def _utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class PollCursor:
    since: datetime
    latest_seen: datetime
    page_end_cursor: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "since", _utc(self.since))
        object.__setattr__(self, "latest_seen", _utc(self.latest_seen))


def _format(dt: datetime) -> str:
    return _utc(dt).isoformat(timespec="microseconds").replace("+00:00", "Z")


def encode_cursor(cursor: PollCursor) -> str:
    """Serialize a cursor into an opaque token. Deterministic and lossless."""
    payload: dict[str, Any] = {
        "version": CURSOR_VERSION,
        "since": _format(cursor.since),
        "latest_seen": _format(cursor.latest_seen),
    }
    if cursor.page_end_cursor:
        payload["page_end_cursor"] = cursor.page_end_cursor
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return base64.b64encode(data.encode("utf-8")).decode("ascii")


def decode_cursor(
    token: str | None,
    default_start: datetime | None = None,
    now: datetime | None = None,
) -> PollCursor:
    """Decode a poll token, or start a fresh cursor when there is none.

    Without a token the window starts at default_start, or 30 days before
    now. A malformed token raises CursorDecodeError; it is never replaced
    by a fresh cursor. A missing or zero latest_seen is repaired to since.
    """
    if not token:
        if default_start is not None:
            since = default_start
        else:
            since = (now or datetime.now(timezone.utc)) - DEFAULT_LOOKBACK
        return PollCursor(since=since, latest_seen=since)

    try:
        payload = json.loads(base64.b64decode(token.encode("ascii"), validate=True))
    except ValueError as exc:
        raise CursorDecodeError(f"malformed poll token: {exc}", token=token) from exc

    if not isinstance(payload, dict):
        raise CursorDecodeError("poll token payload is not an object", token=token)

    since = _timestamp_field(payload, "since", token)
    if since is None or since == _ZERO_TIME:
        raise CursorDecodeError("poll token has no 'since' timestamp", token=token)

    latest_seen = _timestamp_field(payload, "latest_seen", token)
    if latest_seen is None or latest_seen < since:
        latest_seen = since

    page_end_cursor = payload.get("page_end_cursor") or ""
    if not isinstance(page_end_cursor, str):
        raise CursorDecodeError("poll token 'page_end_cursor' is not a string", token=token)

    return PollCursor(since=since, latest_seen=latest_seen, page_end_cursor=page_end_cursor)


def _timestamp_field(payload: dict[str, Any], key: str, token: str) -> datetime | None:
    value = payload.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise CursorDecodeError(f"poll token '{key}' is not a string", token=token)
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        raise CursorDecodeError(f"poll token '{key}' is not RFC3339: {value!r}", token=token) from exc
