"""Issue models deserialized from the Wiz issuesV2 GraphQL query."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# RFC3339Nano allows up to 9 fractional digits; datetime keeps 6
_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC3339 timestamp into an aware UTC datetime."""
    dt = datetime.fromisoformat(_EXTRA_FRACTION.sub(r"\1", value.strip()))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _str(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    return "" if value is None else str(value)


@dataclass(frozen=True)
class SourceRule:
    """The Wiz rule (control) that raised the issue."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> SourceRule:
        raw = raw or {}
        return cls(id=_str(raw, "id"), name=_str(raw, "name"))


@dataclass(frozen=True)
class EntitySnapshot:
    """The cloud entity (identity) the issue concerns, as of issue time."""

    id: str
    type: str
    name: str = ""
    native_type: str = ""
    external_id: str = ""
    cloud_platform: str = ""
    subscription_id: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> EntitySnapshot:
        raw = raw or {}
        return cls(
            id=_str(raw, "id"),
            type=_str(raw, "type"),
            name=_str(raw, "name"),
            native_type=_str(raw, "nativeType"),
            external_id=_str(raw, "externalId"),
            cloud_platform=_str(raw, "cloudPlatform"),
            subscription_id=_str(raw, "subscriptionId"),
        )


@dataclass(frozen=True)
class Issue:
    """A Wiz security issue. Never mutated; each fetch is a fresh snapshot."""

    id: str
    status: str
    severity: str
    created_at: datetime
    status_changed_at: datetime
    source_rule: SourceRule
    entity_snapshot: EntitySnapshot

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Issue:
        created_at = parse_timestamp(raw["createdAt"])
        # Issues that never changed status may report statusChangedAt as null
        changed = raw.get("statusChangedAt")
        return cls(
            id=_str(raw, "id"),
            status=_str(raw, "status"),
            severity=_str(raw, "severity"),
            created_at=created_at,
            status_changed_at=parse_timestamp(changed) if changed else created_at,
            source_rule=SourceRule.from_dict(raw.get("sourceRule")),
            entity_snapshot=EntitySnapshot.from_dict(raw.get("entitySnapshot")),
        )


@dataclass(frozen=True)
class PageInfo:
    """Relay-style pagination info. end_cursor is opaque to us."""

    has_next_page: bool = False
    end_cursor: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> PageInfo:
        raw = raw or {}
        return cls(
            has_next_page=bool(raw.get("hasNextPage", False)),
            end_cursor=_str(raw, "endCursor"),
        )


@dataclass(frozen=True)
class IssueConnection:
    """One page of issues plus its pagination info."""

    nodes: list[Issue] = field(default_factory=list)
    page_info: PageInfo = field(default_factory=PageInfo)

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> IssueConnection:
        raw = raw or {}
        return cls(
            nodes=[Issue.from_dict(n) for n in raw.get("nodes") or []],
            page_info=PageInfo.from_dict(raw.get("pageInfo")),
        )
