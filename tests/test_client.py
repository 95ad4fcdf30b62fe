import json

import httpx
import pytest
import respx
from httpx import Response

from linear_cli.client import GraphQLClient
from linear_cli.config import Settings
from linear_cli.credentials import StaticKey
from linear_cli.errors import (
    HTTPStatusError,
    ProtocolError,
    TransportError,
    UnauthenticatedError,
)
from linear_cli.session import OAuthSession


@pytest.mark.asyncio()
async def test_graphql_sends_api_key_verbatim(settings: Settings) -> None:
    client = GraphQLClient(settings, StaticKey(key="lin_api_abc"))

    with respx.mock:
        route = respx.post(settings.api_url).mock(
            return_value=Response(200, json={"data": {"ok": True}})
        )
        data = await client.execute("query { ok }", {"a": 1})

    assert data == {"ok": True}
    req = route.calls.last.request
    assert req.headers["Authorization"] == "lin_api_abc"
    assert req.headers["Content-Type"] == "application/json"
    assert req.headers["User-Agent"] == "linear-cli"
    body = json.loads(req.content.decode())
    assert body == {"query": "query { ok }", "variables": {"a": 1}}


@pytest.mark.asyncio()
async def test_graphql_sends_bearer_for_oauth(settings: Settings) -> None:
    client = GraphQLClient(settings, OAuthSession(access_token="tok-1"))

    with respx.mock:
        route = respx.post(settings.api_url).mock(return_value=Response(200, json={"data": {}}))
        await client.execute("query { ok }")

    assert route.calls.last.request.headers["Authorization"] == "Bearer tok-1"


@pytest.mark.asyncio()
async def test_unauthenticated_fails_before_network(settings: Settings) -> None:
    client = GraphQLClient(settings, None)

    with respx.mock(assert_all_called=False) as mock:
        route = mock.post(settings.api_url).mock(return_value=Response(200, json={"data": {}}))
        with pytest.raises(UnauthenticatedError):
            await client.execute("query { ok }")
        assert not route.called


@pytest.mark.asyncio()
async def test_http_error_body_is_capped(settings: Settings) -> None:
    client = GraphQLClient(settings, StaticKey(key="lin_api_abc"))

    with respx.mock:
        respx.post(settings.api_url).mock(return_value=Response(500, text="boom " * 500))
        with pytest.raises(HTTPStatusError) as excinfo:
            await client.execute("query { ok }")

    assert excinfo.value.status_code == 500
    assert str(excinfo.value).startswith("HTTP 500: boom")
    assert excinfo.value.body.endswith("...(truncated)")
    assert len(excinfo.value.body) < 250


@pytest.mark.asyncio()
async def test_graphql_errors_report_first_and_count(settings: Settings) -> None:
    client = GraphQLClient(settings, StaticKey(key="lin_api_abc"))
    payload = {
        "data": None,
        "errors": [
            {"message": "Entity not found", "path": ["issue"]},
            {"message": "second"},
            {"message": "third"},
        ],
    }

    with respx.mock:
        respx.post(settings.api_url).mock(return_value=Response(200, json=payload))
        with pytest.raises(ProtocolError) as excinfo:
            await client.execute("query { issue }")

    assert str(excinfo.value) == "Entity not found (path: issue) (and 2 more)"
    assert excinfo.value.errors == ["Entity not found (path: issue)", "second", "third"]


@pytest.mark.asyncio()
async def test_invalid_json_is_protocol_error(settings: Settings) -> None:
    client = GraphQLClient(settings, StaticKey(key="lin_api_abc"))

    with respx.mock:
        respx.post(settings.api_url).mock(return_value=Response(200, text="<html>oops</html>"))
        with pytest.raises(ProtocolError, match="invalid JSON"):
            await client.execute("query { ok }")


@pytest.mark.asyncio()
async def test_connection_failure_is_transport_error(settings: Settings) -> None:
    client = GraphQLClient(settings, StaticKey(key="lin_api_abc"))

    with respx.mock:
        respx.post(settings.api_url).mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(TransportError, match="ConnectError"):
            await client.execute("query { ok }")


@pytest.mark.asyncio()
async def test_timeout_is_transport_error(settings: Settings) -> None:
    client = GraphQLClient(settings, StaticKey(key="lin_api_abc"))

    with respx.mock:
        respx.post(settings.api_url).mock(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(TransportError, match="timed out"):
            await client.execute("query { ok }", timeout=2)


@pytest.mark.asyncio()
async def test_missing_data_returns_empty_dict(settings: Settings) -> None:
    client = GraphQLClient(settings, StaticKey(key="lin_api_abc"))

    with respx.mock:
        respx.post(settings.api_url).mock(return_value=Response(200, json={"data": None}))
        assert await client.execute("query { ok }") == {}
