"""Resource models produced by the issue lister."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class ResourceType:
    """Describes a kind of synced resource and what it supports."""

    id: str
    display_name: str
    traits: tuple[str, ...] = ()
    permissions: tuple[str, ...] = ()
    skip_entitlements_and_grants: bool = False


@dataclass(frozen=True)
class ExternalResourceTarget:
    """Points an insight at the cloud entity it concerns.

    app_hint carries the cloud platform tag (AWS, GCP, Azure, ...).
    """

    external_id: str
    app_hint: str


@dataclass(frozen=True)
class SecurityInsightResource:
    """A Wiz issue rendered as a security insight resource."""

    id: str
    display_name: str
    resource_type: str
    issue: str  # source rule name
    severity: str
    observed_at: datetime
    target: ExternalResourceTarget

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "resource_type": self.resource_type,
            "issue": self.issue,
            "severity": self.severity,
            "observed_at": self.observed_at.isoformat(),
            "target": {
                "external_id": self.target.external_id,
                "app_hint": self.target.app_hint,
            },
        }


@dataclass
class ResourcePage:
    """One page of listed resources and the token for the next page."""

    resources: list[SecurityInsightResource] = field(default_factory=list)
    next_page_token: str | None = None
