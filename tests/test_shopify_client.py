from __future__ import annotations

import json
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from conftest import SECRET, SHOP, ShopifyStub
from shopify_bridge.clients.shopify import ACCESS_TOKEN_HEADER, OAuthStateEncoder, ShopifyClient
from shopify_bridge.core.config import get_settings
from shopify_bridge.core.errors import InvalidState, TokenMissing, UpstreamApiError, UpstreamTokenError


@pytest.fixture()
def stub() -> ShopifyStub:
    return ShopifyStub()


@pytest.fixture()
def client(stub: ShopifyStub) -> ShopifyClient:
    return ShopifyClient(get_settings().shopify, transport=httpx.MockTransport(stub))


def test_authorization_url_contains_install_parameters(client: ShopifyClient) -> None:
    url = client.build_authorization_url(SHOP, state="abc123")

    parts = urlsplit(url)
    assert parts.scheme == "https"
    assert parts.netloc == SHOP
    assert parts.path == "/admin/oauth/authorize"
    assert "scope=read_products,write_orders" in parts.query
    assert "redirect_uri=https%3A%2F%2Fbridge.test%2Fcallback" in parts.query

    query = parse_qs(parts.query)
    assert query["client_id"] == ["test-client-id"]
    assert query["state"] == ["abc123"]


@pytest.mark.anyio
async def test_exchange_posts_credentials_as_json(client: ShopifyClient, stub: ShopifyStub) -> None:
    token = await client.exchange_authorization_code(SHOP, "auth-code")

    assert token == "tok123"
    request = stub.requests[-1]
    assert request.method == "POST"
    assert str(request.url) == f"https://{SHOP}/admin/oauth/access_token"
    assert json.loads(request.content) == {
        "client_id": "test-client-id",
        "client_secret": SECRET,
        "code": "auth-code",
    }


@pytest.mark.anyio
async def test_exchange_error_body_is_surfaced_without_secret(
    client: ShopifyClient, stub: ShopifyStub
) -> None:
    stub.token_status = 400
    stub.token_body = f"invalid_request: client_secret {SECRET} does not match"

    with pytest.raises(UpstreamTokenError) as excinfo:
        await client.exchange_authorization_code(SHOP, "auth-code")

    assert excinfo.value.status_code == 502
    assert "invalid_request" in excinfo.value.body
    assert SECRET not in excinfo.value.body
    assert SECRET not in excinfo.value.message


@pytest.mark.anyio
async def test_exchange_unparsable_body_is_upstream_error(client: ShopifyClient, stub: ShopifyStub) -> None:
    stub.token_body = "<html>maintenance</html>"

    with pytest.raises(UpstreamTokenError):
        await client.exchange_authorization_code(SHOP, "auth-code")


@pytest.mark.anyio
@pytest.mark.parametrize(
    "body",
    [{"access_token": ""}, {"access_token": 123}, {"access_token": None}, {"scope": "read_products"}],
)
async def test_exchange_without_token_raises_token_missing(
    client: ShopifyClient, stub: ShopifyStub, body: dict
) -> None:
    stub.token_body = body

    with pytest.raises(TokenMissing) as excinfo:
        await client.exchange_authorization_code(SHOP, "auth-code")
    assert excinfo.value.status_code == 500


@pytest.mark.anyio
async def test_exchange_transport_failure_is_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = ShopifyClient(get_settings().shopify, transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamTokenError):
        await client.exchange_authorization_code(SHOP, "auth-code")


@pytest.mark.anyio
async def test_get_resource_sends_access_token_header(client: ShopifyClient, stub: ShopifyStub) -> None:
    payload = await client.get_resource(SHOP, "shpat_x", "products")

    assert payload == {"products": [{"id": 1, "title": "Widget"}]}
    request = stub.requests[-1]
    assert request.url.path == "/admin/api/2024-10/products.json"
    assert request.headers[ACCESS_TOKEN_HEADER] == "shpat_x"


@pytest.mark.anyio
async def test_get_resource_relays_upstream_status(client: ShopifyClient, stub: ShopifyStub) -> None:
    stub.products_status = 401
    stub.products_body = {"errors": "[API] Invalid API key or access token"}

    with pytest.raises(UpstreamApiError) as excinfo:
        await client.get_resource(SHOP, "expired", "products")

    assert excinfo.value.status_code == 401
    assert json.loads(excinfo.value.body) == stub.products_body


def test_state_encoder_round_trip_and_tamper_detection() -> None:
    encoder = OAuthStateEncoder("state-secret")
    token = encoder.encode({"nonce": "n1", "shop": SHOP})

    assert encoder.decode(token) == {"nonce": "n1", "shop": SHOP}
    with pytest.raises(InvalidState):
        OAuthStateEncoder("other-secret").decode(token)
    with pytest.raises(InvalidState):
        encoder.decode("not base64 at all!")
