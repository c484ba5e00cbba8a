"""Protocol interfaces for wiz_insights components."""

from wiz_insights.interfaces.queries import IssueQueries, IssueSource
from wiz_insights.interfaces.transport import GraphQLTransport
from wiz_insights.interfaces.store import TokenStore

__all__ = ["IssueQueries", "IssueSource", "GraphQLTransport", "TokenStore"]
