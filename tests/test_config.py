from __future__ import annotations

import os

import httpx
import pytest
from pydantic import ValidationError

from shopify_bridge.core.config import (
    SecuritySettings,
    ShopifySettings,
    _load_env_file,
    describe_environment,
    get_settings,
    load_settings,
)
from shopify_bridge.core.errors import ConfigurationError


@pytest.fixture()
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_settings_load_from_environment() -> None:
    settings = get_settings()

    assert settings.shopify.client_id == "test-client-id"
    assert settings.shopify.scopes == "read_products,write_orders"
    assert str(settings.shopify.redirect_uri) == "https://bridge.test/callback"
    assert settings.storage.table_name == "shop-sessions"
    assert settings.oauth.verify_state is True


def test_client_secret_is_not_rendered() -> None:
    settings = get_settings()
    assert "test-client-secret" not in repr(settings)
    assert "test-client-secret" not in str(settings.shopify)


@pytest.mark.parametrize(
    "redirect_uri",
    [
        "https://example.com/callback",
        "https://api.example.com/callback",
        "https://your-api-id.execute-api.us-east-1.amazonaws.com/callback",
    ],
)
def test_placeholder_redirect_uri_is_rejected(redirect_uri: str) -> None:
    with pytest.raises(ValidationError):
        ShopifySettings(REDIRECT_URI=redirect_uri)


def test_real_redirect_uri_is_accepted() -> None:
    settings = ShopifySettings(REDIRECT_URI="https://abc123.execute-api.us-east-1.amazonaws.com/callback")
    assert settings.redirect_uri.host == "abc123.execute-api.us-east-1.amazonaws.com"


def test_missing_secret_raises_configuration_error(monkeypatch, fresh_settings) -> None:
    monkeypatch.delenv("SHOPIFY_CLIENT_SECRET")

    with pytest.raises(ConfigurationError) as excinfo:
        load_settings()

    assert "SHOPIFY_CLIENT_SECRET" in excinfo.value.missing


def test_describe_environment_skips_table_for_sqlite(monkeypatch) -> None:
    monkeypatch.setenv("STORE_BACKEND", "sqlite")
    assert "TABLE_NAME" not in describe_environment()


@pytest.mark.anyio
async def test_misconfigured_app_serves_diagnostic_page(monkeypatch, fresh_settings) -> None:
    from shopify_bridge.main import create_app

    monkeypatch.delenv("SHOPIFY_CLIENT_SECRET")
    app = create_app()

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="https://testserver"
    ) as client:
        response = await client.get("/auth", params={"shop": "test-shop.myshopify.com"})

    assert response.status_code == 500
    assert "Configuration Error" in response.text
    assert "SHOPIFY_CLIENT_SECRET: MISSING" in response.text
    assert "SHOPIFY_CLIENT_ID: OK" in response.text
    assert "test-client-id" not in response.text


def test_env_file_values_reach_nested_settings(tmp_path, monkeypatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "SHOPIFY_API_VERSION=2025-01\nSHOPIFY_CLIENT_ID=from-file\n", encoding="utf-8"
    )
    monkeypatch.setenv("SHOPIFY_CLIENT_ID", "from-env")
    monkeypatch.delenv("SHOPIFY_API_VERSION", raising=False)

    try:
        _load_env_file(str(env_file))
        settings = load_settings()
    finally:
        os.environ.pop("SHOPIFY_API_VERSION", None)

    assert settings.shopify.api_version == "2025-01"
    assert settings.shopify.client_id == "from-env"


def test_retired_encryption_secrets_are_split() -> None:
    security = SecuritySettings(
        TOKEN_ENCRYPTION_SECRET="current",
        TOKEN_ENCRYPTION_PREVIOUS_SECRETS="old-one, old-two,,",
    )
    assert security.retired_secrets() == ["old-one", "old-two"]
    assert "old-one" not in repr(security)
