"""httpx GraphQL transport with OAuth2 client-credentials auth and retries."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from wiz_insights.errors import AuthError, GraphQLError, TransportError
from wiz_insights.models.config import WizConfig

log = logging.getLogger(__name__)

# Refresh tokens this many seconds before the server-side expiry
TOKEN_EXPIRY_SKEW = 60


class HttpxGraphQLTransport:
    """Executes GraphQL requests against the Wiz API.

    Wiz uses the OAuth2 client-credentials flow with credentials passed as
    form params and an extra `audience=wiz-api` param. The access token is
    cached until shortly before it expires; a 401 from the API drops the
    cached token and the request is retried once with a fresh one.

    Timeouts, connection errors, 429 and 5xx responses are retried up to
    max_retries times with exponential backoff (Retry-After is honoured).
    """

    def __init__(
        self,
        api_url: str,
        client_id: str,
        client_secret: str,
        auth_endpoint: str,
        audience: str = "wiz-api",
        timeout: int = 30,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_url = api_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._auth_endpoint = auth_endpoint
        self._audience = audience
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=10),
        )
        self._token: str | None = None
        self._token_expiry = 0.0
        self._token_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, cfg: WizConfig) -> HttpxGraphQLTransport:
        return cls(
            api_url=cfg.api_url,
            client_id=cfg.client_id,
            client_secret=cfg.client_secret,
            auth_endpoint=cfg.auth_endpoint,
            audience=cfg.audience,
            timeout=cfg.request_timeout,
            max_retries=cfg.max_retries,
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def validate(self) -> None:
        """Fetch a fresh access token to prove the credentials work."""
        await self._get_token(force=True)

    # ── Auth ───────────────────────────────────────────────

    async def _get_token(self, force: bool = False) -> str:
        async with self._token_lock:
            if not force and self._token and time.monotonic() < self._token_expiry:
                return self._token

            try:
                resp = await self._client.post(
                    self._auth_endpoint,
                    data={
                        "grant_type": "client_credentials",
                        "client_id": self._client_id,
                        "client_secret": self._client_secret,
                        "audience": self._audience,
                    },
                )
            except httpx.TransportError as exc:
                raise AuthError(f"token request to {self._auth_endpoint} failed: {exc}") from exc

            if not resp.is_success:
                raise AuthError(
                    f"token endpoint returned HTTP {resp.status_code}: {resp.text[:200]}",
                    status_code=resp.status_code,
                )
            try:
                payload = resp.json()
            except ValueError as exc:
                raise AuthError("token endpoint returned a non-JSON body") from exc

            token = payload.get("access_token") if isinstance(payload, dict) else None
            if not token:
                raise AuthError("token response is missing access_token")

            expires_in = int(payload.get("expires_in") or 3600)
            self._token = token
            self._token_expiry = time.monotonic() + max(expires_in - TOKEN_EXPIRY_SKEW, 0)
            log.debug("Acquired Wiz access token (expires in %ds)", expires_in)
            return token

    # ── GraphQL ────────────────────────────────────────────

    async def execute(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """POST a GraphQL document and return its `data` object.

        Raises GraphQLError if the response carries a non-empty `errors`
        array, even when the HTTP status is 200.
        """
        body = await self._post({"query": query, "variables": variables})

        errors = body.get("errors") or []
        if errors:
            messages = "; ".join(str(e.get("message", e)) for e in errors if isinstance(e, dict))
            raise GraphQLError(f"graphql errors: {messages or errors}", errors=errors)

        data = body.get("data")
        if not isinstance(data, dict):
            raise GraphQLError("graphql response has no data")
        return data

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        attempt = 0
        reauthenticated = False

        while True:
            attempt += 1
            token = await self._get_token()
            try:
                resp = await self._client.post(
                    self._api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {token}"},
                )
            except httpx.TransportError as exc:
                if attempt <= self._max_retries:
                    log.warning(
                        "Wiz API request failed (attempt %d/%d): %s",
                        attempt, self._max_retries + 1, exc,
                    )
                    await asyncio.sleep(self._backoff(attempt))
                    continue
                raise TransportError(
                    f"Wiz API request failed after {attempt} attempts: {exc}"
                ) from exc

            if resp.status_code == 401 and not reauthenticated:
                log.info("Wiz API rejected access token, re-authenticating")
                reauthenticated = True
                self._token = None
                # The re-auth round trip does not count against max_retries
                attempt -= 1
                continue

            retryable = resp.status_code == 429 or resp.status_code >= 500
            if retryable and attempt <= self._max_retries:
                delay = _retry_after(resp)
                if delay is None:
                    delay = self._backoff(attempt)
                log.warning(
                    "Wiz API HTTP %d (attempt %d/%d), retrying in %.1fs",
                    resp.status_code, attempt, self._max_retries + 1, delay,
                )
                await asyncio.sleep(delay)
                continue

            if not resp.is_success:
                raise TransportError(
                    f"Wiz API HTTP {resp.status_code}: {resp.text[:200]}",
                    status_code=resp.status_code,
                )

            try:
                body = resp.json()
            except ValueError as exc:
                raise GraphQLError("Wiz API returned a non-JSON body") from exc
            if not isinstance(body, dict):
                raise GraphQLError("Wiz API returned an unexpected JSON payload")
            return body

    def _backoff(self, attempt: int) -> float:
        return self._backoff_base * (2 ** (attempt - 1))


def _retry_after(resp: httpx.Response) -> float | None:
    value = resp.headers.get("retry-after")
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None
