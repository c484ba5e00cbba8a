"""HTTP transport against a local fake Wiz API (token endpoint + GraphQL)."""

from __future__ import annotations

import pytest
from aiohttp import web

from wiz_insights.errors import AuthError, GraphQLError, TransportError
from wiz_insights.wiz.client import WizClient
from wiz_insights.wiz.queries import ISSUES_QUERY
from wiz_insights.wiz.transport import HttpxGraphQLTransport

from tests.factories import T0, make_issue_node, make_issues_data


class FakeWiz:
    """Serves staged responses and records what the transport sent."""

    def __init__(self) -> None:
        self.base_url = ""
        self.token_responses: list[tuple[int, dict]] = []
        self.graphql_responses: list[tuple[int, object, dict]] = []
        self.token_requests: list[dict] = []
        self.graphql_requests: list[tuple[str | None, dict]] = []
        self._issued = 0

    async def handle_token(self, request: web.Request) -> web.Response:
        form = await request.post()
        self.token_requests.append(dict(form))
        if self.token_responses:
            status, body = self.token_responses.pop(0)
            return web.json_response(body, status=status)
        self._issued += 1
        return web.json_response(
            {"access_token": f"token-{self._issued}", "expires_in": 3600, "token_type": "Bearer"}
        )

    async def handle_graphql(self, request: web.Request) -> web.Response:
        self.graphql_requests.append((request.headers.get("Authorization"), await request.json()))
        if self.graphql_responses:
            status, body, headers = self.graphql_responses.pop(0)
        else:
            status, body, headers = 200, {"data": make_issues_data()}, {}
        if isinstance(body, str):
            return web.Response(text=body, status=status, headers=headers)
        return web.json_response(body, status=status, headers=headers)

    def stage(self, status: int, body: object, headers: dict | None = None) -> None:
        self.graphql_responses.append((status, body, headers or {}))


@pytest.fixture
async def fake_wiz():
    fake = FakeWiz()
    app = web.Application()
    app.router.add_post("/oauth/token", fake.handle_token)
    app.router.add_post("/graphql", fake.handle_graphql)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    fake.base_url = f"http://{host}:{port}"
    yield fake
    await runner.cleanup()


def _transport(
    fake: FakeWiz, api_url: str | None = None, max_retries: int = 2
) -> HttpxGraphQLTransport:
    return HttpxGraphQLTransport(
        api_url=api_url or f"{fake.base_url}/graphql",
        client_id="test-client-id",
        client_secret="test-client-secret",
        auth_endpoint=f"{fake.base_url}/oauth/token",
        timeout=5,
        max_retries=max_retries,
        backoff_base=0,
    )


@pytest.fixture
async def transport(fake_wiz):
    t = _transport(fake_wiz)
    yield t
    await t.close()


# ── Auth ──────────────────────────────────────────────────────────


async def test_client_credentials_token_is_sent(fake_wiz, transport):
    fake_wiz.stage(200, {"data": make_issues_data(make_issue_node())})

    data = await transport.execute(ISSUES_QUERY, {"first": 100})

    assert data["issuesV2"]["nodes"][0]["id"] == "issue-1"
    assert fake_wiz.token_requests == [{
        "grant_type": "client_credentials",
        "client_id": "test-client-id",
        "client_secret": "test-client-secret",
        "audience": "wiz-api",
    }]
    auth, body = fake_wiz.graphql_requests[0]
    assert auth == "Bearer token-1"
    assert body == {"query": ISSUES_QUERY, "variables": {"first": 100}}


async def test_token_is_cached(fake_wiz, transport):
    await transport.execute(ISSUES_QUERY, {})
    await transport.execute(ISSUES_QUERY, {})

    assert len(fake_wiz.token_requests) == 1
    assert [a for a, _ in fake_wiz.graphql_requests] == ["Bearer token-1", "Bearer token-1"]


async def test_401_refreshes_token_once(fake_wiz, transport):
    fake_wiz.stage(401, {"error": "token expired"})
    fake_wiz.stage(200, {"data": make_issues_data()})

    await transport.execute(ISSUES_QUERY, {})

    assert len(fake_wiz.token_requests) == 2
    assert [a for a, _ in fake_wiz.graphql_requests] == ["Bearer token-1", "Bearer token-2"]


async def test_repeated_401_is_transport_error(fake_wiz, transport):
    fake_wiz.stage(401, {"error": "nope"})
    fake_wiz.stage(401, {"error": "nope"})

    with pytest.raises(TransportError) as exc_info:
        await transport.execute(ISSUES_QUERY, {})
    assert exc_info.value.status_code == 401


async def test_token_endpoint_failure_is_auth_error(fake_wiz, transport):
    fake_wiz.token_responses.append((401, {"error": "invalid_client"}))

    with pytest.raises(AuthError) as exc_info:
        await transport.execute(ISSUES_QUERY, {})

    assert exc_info.value.status_code == 401
    assert fake_wiz.graphql_requests == []


async def test_token_response_without_access_token(fake_wiz, transport):
    fake_wiz.token_responses.append((200, {"token_type": "Bearer"}))
    with pytest.raises(AuthError, match="access_token"):
        await transport.validate()


async def test_validate_fetches_fresh_token(fake_wiz, transport):
    await transport.validate()
    await transport.validate()
    assert len(fake_wiz.token_requests) == 2


# ── Protocol errors ───────────────────────────────────────────────


async def test_graphql_errors_on_http_200(fake_wiz, transport):
    errors = [{"message": "Field 'bogus' doesn't exist", "path": ["issuesV2"]}]
    fake_wiz.stage(200, {"data": None, "errors": errors})

    with pytest.raises(GraphQLError) as exc_info:
        await transport.execute(ISSUES_QUERY, {})

    assert exc_info.value.errors == errors
    assert "bogus" in str(exc_info.value)


async def test_graphql_errors_win_over_partial_data(fake_wiz, transport):
    fake_wiz.stage(200, {"data": make_issues_data(), "errors": [{"message": "partial"}]})
    with pytest.raises(GraphQLError, match="partial"):
        await transport.execute(ISSUES_QUERY, {})


async def test_missing_data_is_protocol_error(fake_wiz, transport):
    fake_wiz.stage(200, {})
    with pytest.raises(GraphQLError):
        await transport.execute(ISSUES_QUERY, {})


async def test_non_json_body_is_protocol_error(fake_wiz, transport):
    fake_wiz.stage(200, "<html>maintenance</html>")
    with pytest.raises(GraphQLError):
        await transport.execute(ISSUES_QUERY, {})


# ── Retries ───────────────────────────────────────────────────────


async def test_5xx_is_retried(fake_wiz, transport):
    fake_wiz.stage(503, {"error": "unavailable"})
    fake_wiz.stage(200, {"data": make_issues_data(make_issue_node("after-retry"))})

    data = await transport.execute(ISSUES_QUERY, {})

    assert data["issuesV2"]["nodes"][0]["id"] == "after-retry"
    assert len(fake_wiz.graphql_requests) == 2


async def test_429_honours_retry_after(fake_wiz, transport):
    fake_wiz.stage(429, {"error": "slow down"}, {"Retry-After": "0"})
    fake_wiz.stage(200, {"data": make_issues_data()})

    await transport.execute(ISSUES_QUERY, {})

    assert len(fake_wiz.graphql_requests) == 2


async def test_retries_are_bounded(fake_wiz, transport):
    for _ in range(3):
        fake_wiz.stage(500, {"error": "boom"})

    with pytest.raises(TransportError) as exc_info:
        await transport.execute(ISSUES_QUERY, {})

    assert exc_info.value.status_code == 500
    assert len(fake_wiz.graphql_requests) == 3  # first try + max_retries


async def test_reauth_does_not_use_up_retries(fake_wiz):
    t = _transport(fake_wiz, max_retries=1)
    fake_wiz.stage(401, {"error": "token expired"})
    fake_wiz.stage(503, {"error": "unavailable"})
    fake_wiz.stage(200, {"data": make_issues_data(make_issue_node("after-reauth"))})
    try:
        data = await t.execute(ISSUES_QUERY, {})
    finally:
        await t.close()

    assert data["issuesV2"]["nodes"][0]["id"] == "after-reauth"
    assert len(fake_wiz.token_requests) == 2
    assert len(fake_wiz.graphql_requests) == 3


async def test_4xx_is_not_retried(fake_wiz, transport):
    fake_wiz.stage(400, {"error": "bad request"})

    with pytest.raises(TransportError) as exc_info:
        await transport.execute(ISSUES_QUERY, {})

    assert exc_info.value.status_code == 400
    assert len(fake_wiz.graphql_requests) == 1


async def test_connection_failure_is_transport_error(fake_wiz):
    t = _transport(fake_wiz, api_url="http://127.0.0.1:1/graphql")
    try:
        with pytest.raises(TransportError) as exc_info:
            await t.execute(ISSUES_QUERY, {})
        assert exc_info.value.status_code is None
    finally:
        await t.close()


# ── Client over the real transport ────────────────────────────────


async def test_client_round_trip(fake_wiz, transport):
    fake_wiz.stage(
        200,
        {"data": make_issues_data(make_issue_node("i-7"), has_next_page=True, end_cursor="next")},
    )
    client = WizClient(transport)

    conn = await client.list_issues_since(T0, "prev")

    assert [i.id for i in conn.nodes] == ["i-7"]
    assert conn.page_info.end_cursor == "next"
    _, body = fake_wiz.graphql_requests[0]
    assert body["variables"]["after"] == "prev"
    assert body["variables"]["filterBy"]["statusChangedAt"]["after"] == "2024-05-01T12:00:00Z"
