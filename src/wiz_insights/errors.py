"""Exception types raised by wiz_insights components."""

from __future__ import annotations

from typing import Any


class WizInsightsError(Exception):
    """Base class for every error surfaced by this package."""


class ConfigError(WizInsightsError):
    """Configuration is missing required values or holds invalid ones."""


class CursorDecodeError(WizInsightsError):
    """A poll token could not be decoded into a cursor."""

    def __init__(self, message: str, token: str | None = None) -> None:
        super().__init__(message)
        self.token = token


class TransportError(WizInsightsError):
    """Network failure or non-2xx HTTP response from the Wiz API."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(TransportError):
    """OAuth2 token acquisition or refresh failed."""


class GraphQLError(WizInsightsError):
    """The API answered but reported GraphQL errors (or no data)."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []
