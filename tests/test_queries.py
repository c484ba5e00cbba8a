"""Query builder: principal filter, time bound and pagination variables."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from wiz_insights.wiz.queries import (
    DEFAULT_PAGE_SIZE,
    ISSUES_QUERY,
    IssueQueryBuilder,
    format_rfc3339,
)

from tests.factories import T0


def test_list_variables_restrict_to_principals():
    variables = IssueQueryBuilder().variables()
    assert variables == {
        "first": DEFAULT_PAGE_SIZE,
        "filterBy": {"relatedEntity": {"type": ["USER_ACCOUNT", "SERVICE_ACCOUNT"]}},
    }


def test_since_adds_status_changed_clause():
    variables = IssueQueryBuilder().variables(after="abc", since=T0)
    assert variables["after"] == "abc"
    assert variables["filterBy"]["statusChangedAt"] == {"after": "2024-05-01T12:00:00Z"}
    assert variables["filterBy"]["relatedEntity"]["type"] == ["USER_ACCOUNT", "SERVICE_ACCOUNT"]


@pytest.mark.parametrize("after", [None, ""])
def test_missing_after_is_omitted(after):
    assert "after" not in IssueQueryBuilder().variables(after=after)


def test_entity_types_and_page_size_are_configurable():
    builder = IssueQueryBuilder(entity_types=["USER_ACCOUNT", "ACCESS_ROLE"], page_size=25)
    variables = builder.variables()
    assert variables["first"] == 25
    assert variables["filterBy"]["relatedEntity"]["type"] == ["USER_ACCOUNT", "ACCESS_ROLE"]


def test_filter_is_fresh_per_call():
    builder = IssueQueryBuilder()
    builder.variables(since=T0)
    assert "statusChangedAt" not in builder.variables()["filterBy"]


@pytest.mark.parametrize("kwargs", [{"entity_types": []}, {"page_size": 0}])
def test_invalid_builder_config(kwargs):
    with pytest.raises(ValueError):
        IssueQueryBuilder(**kwargs)


def test_query_selects_pagination_and_issue_fields():
    for field in ("issuesV2", "statusChangedAt", "sourceRule", "entitySnapshot",
                  "externalId", "cloudPlatform", "hasNextPage", "endCursor"):
        assert field in ISSUES_QUERY


def test_format_rfc3339_converts_to_utc():
    plus_two = timezone(timedelta(hours=2))
    assert format_rfc3339(datetime(2024, 5, 1, 14, 0, 0, 500000, tzinfo=plus_two)) == "2024-05-01T12:00:00Z"
    assert format_rfc3339(datetime(2024, 5, 1, 12)) == "2024-05-01T12:00:00Z"
