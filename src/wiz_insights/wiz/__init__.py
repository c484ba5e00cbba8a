"""Wiz API integration components."""

from wiz_insights.wiz.client import WizClient
from wiz_insights.wiz.queries import ISSUES_QUERY, IssueQueryBuilder
from wiz_insights.wiz.transport import HttpxGraphQLTransport

__all__ = ["WizClient", "ISSUES_QUERY", "IssueQueryBuilder", "HttpxGraphQLTransport"]
