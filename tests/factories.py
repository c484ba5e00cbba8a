"""Synthetic issue factories for testing."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from wiz_insights.models.issues import (
    EntitySnapshot,
    Issue,
    IssueConnection,
    PageInfo,
    SourceRule,
)

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def hours(n: float) -> timedelta:
    return timedelta(hours=n)


def make_issue(
    id: str = "issue-1",
    status_changed_at: datetime = T0,
    severity: str = "HIGH",
    status: str = "OPEN",
    rule_name: str = "Admin user without MFA",
    external_id: str = "arn:aws:iam::123456789012:user/alice",
    entity_id: str = "entity-1",
    cloud_platform: str = "AWS",
    created_at: datetime | None = None,
) -> Issue:
    return Issue(
        id=id,
        status=status,
        severity=severity,
        created_at=created_at or status_changed_at - hours(24),
        status_changed_at=status_changed_at,
        source_rule=SourceRule(id="rule-1", name=rule_name),
        entity_snapshot=EntitySnapshot(
            id=entity_id,
            type="USER_ACCOUNT",
            name="alice",
            native_type="user",
            external_id=external_id,
            cloud_platform=cloud_platform,
            subscription_id="123456789012",
        ),
    )


def make_page(
    *issues: Issue,
    has_next_page: bool = False,
    end_cursor: str = "",
) -> IssueConnection:
    return IssueConnection(
        nodes=list(issues),
        page_info=PageInfo(has_next_page=has_next_page, end_cursor=end_cursor),
    )


def make_issue_node(
    id: str = "issue-1",
    status_changed_at: str | None = "2024-05-01T13:00:00Z",
    severity: str = "CRITICAL",
    rule_name: str = "Service account key older than 90 days",
    external_id: str | None = "projects/demo/serviceAccounts/ci@demo.iam",
) -> dict:
    """A raw issuesV2 node as returned by the GraphQL API."""
    return {
        "id": id,
        "status": "OPEN",
        "severity": severity,
        "createdAt": "2024-04-30T08:00:00.123Z",
        "statusChangedAt": status_changed_at,
        "sourceRule": {"id": "rule-9", "name": rule_name},
        "entitySnapshot": {
            "id": "entity-9",
            "type": "SERVICE_ACCOUNT",
            "name": "ci",
            "nativeType": "serviceAccount",
            "externalId": external_id,
            "cloudPlatform": "GCP",
            "subscriptionId": "demo",
        },
    }


def make_issues_data(*nodes: dict, has_next_page: bool = False, end_cursor: str | None = None) -> dict:
    """A GraphQL `data` object for ISSUES_QUERY."""
    return {
        "issuesV2": {
            "nodes": list(nodes),
            "pageInfo": {"hasNextPage": has_next_page, "endCursor": end_cursor},
        }
    }
