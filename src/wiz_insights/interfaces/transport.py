"""GraphQLTransport protocol - authenticated GraphQL execution."""

from __future__ import annotations

from typing import Any, Protocol


class GraphQLTransport(Protocol):
    """Executes GraphQL documents against the Wiz API.

    Implementations own token acquisition/refresh and HTTP retries. A
    non-empty GraphQL `errors` array must raise, even on HTTP 200.
    """

    async def execute(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Run the query and return the response `data` object."""
        ...

    async def validate(self) -> None:
        """Exercise the configured credentials."""
        ...

    async def close(self) -> None:
        ...
