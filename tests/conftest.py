"""Pytest configuration and fakes shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except ImportError:  # pragma: no cover - tests/ is not a package
    import _bootstrap  # type: ignore # noqa: F401

import copy
from typing import Any, Callable, Dict, Optional

import httpx
import pytest

from shopify_bridge.clients import OAuthStateEncoder, ShopifyClient
from shopify_bridge.core.config import AppSettings, get_settings
from shopify_bridge.services import OAuthFlowController, ResourceProxy, SessionStore
from shopify_bridge.services.hmac_verifier import compute_hmac

SHOP = "test-shop.myshopify.com"
SECRET = _bootstrap._DEFAULT_ENV_VARS["SHOPIFY_CLIENT_SECRET"]


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


class InMemoryKeyValueStore:
    """Dict-backed stand-in for the DynamoDB table."""

    def __init__(self) -> None:
        self.items: Dict[str, Dict[str, Any]] = {}
        self.puts: list[Dict[str, Any]] = []
        self.gets: list[str] = []
        self.fail = False

    def get_item(self, key: str) -> Optional[Dict[str, Any]]:
        if self.fail:
            raise RuntimeError("table unreachable")
        self.gets.append(key)
        item = self.items.get(key)
        return copy.deepcopy(item) if item is not None else None

    def put_item(self, item: Dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("table unreachable")
        self.puts.append(copy.deepcopy(item))
        self.items[item["id"]] = copy.deepcopy(item)


class ShopifyStub:
    """httpx MockTransport handler emulating the token and Admin API endpoints."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_status = 200
        self.token_body: Any = {"access_token": "tok123", "scope": "read_products,write_orders"}
        self.products_status = 200
        self.products_body: Any = {"products": [{"id": 1, "title": "Widget"}]}

    @staticmethod
    def _response(status: int, body: Any) -> httpx.Response:
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/admin/oauth/access_token":
            return self._response(self.token_status, self.token_body)
        if request.url.path.endswith("/products.json"):
            return self._response(self.products_status, self.products_body)
        return httpx.Response(404, json={"errors": "Not Found"})

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


def sign(params: Dict[str, Any], secret: str = SECRET) -> Dict[str, Any]:
    """Return ``params`` with a valid Shopify ``hmac`` added."""
    signed = dict(params)
    signed["hmac"] = compute_hmac(params, secret)
    return signed


class BridgeHarness:
    """Wires real services to in-memory fakes."""

    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings
        self.store = InMemoryKeyValueStore()
        self.shopify = ShopifyStub()
        self.session_store = SessionStore(self.store)
        self.client = ShopifyClient(settings.shopify, transport=httpx.MockTransport(self.shopify))
        self.encoder = OAuthStateEncoder(settings.shopify.client_secret.get_secret_value())
        self.controller = self.build_controller()
        self.proxy = ResourceProxy(self.session_store, self.client)

    def build_controller(self, **overrides: Any) -> OAuthFlowController:
        kwargs: Dict[str, Any] = {
            "shopify_settings": self.settings.shopify,
            "oauth_settings": self.settings.oauth,
            "session_store": self.session_store,
            "shopify_client": self.client,
            "state_encoder": self.encoder,
        }
        kwargs.update(overrides)
        return OAuthFlowController(**kwargs)

    def install(self, shop: str = SHOP, token: str = "stored-token", **fields: Any) -> None:
        item = {
            "id": f"offline_{shop}",
            "shop": shop,
            "accessToken": token,
            "scope": "read_products,write_orders",
            "installedAt": 1735689600000,
            "isOnline": False,
        }
        item.update(fields)
        self.store.items[item["id"]] = item


@pytest.fixture()
def harness() -> BridgeHarness:
    return BridgeHarness(get_settings())


@pytest.fixture()
def app_overrides(harness: BridgeHarness):
    from shopify_bridge import dependencies
    from shopify_bridge.main import app

    app.dependency_overrides.update(
        {
            dependencies.get_oauth_flow_controller: lambda: harness.controller,
            dependencies.get_resource_proxy: lambda: harness.proxy,
            dependencies.get_app_settings: lambda: harness.settings,
        }
    )
    yield harness
    app.dependency_overrides.clear()


@pytest.fixture()
def api_client_factory(app_overrides) -> Callable[[], httpx.AsyncClient]:
    from shopify_bridge.main import app

    def factory(*, raise_app_exceptions: bool = True) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions),
            base_url="https://testserver",
        )

    return factory
