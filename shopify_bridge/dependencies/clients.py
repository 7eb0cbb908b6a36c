"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache
from typing import Optional

from shopify_bridge.clients import DynamoDBClient, OAuthStateEncoder, SQLiteStore, ShopifyClient
from shopify_bridge.core.config import get_settings
from shopify_bridge.services import (
    KeyValueStore,
    OAuthFlowController,
    ResourceProxy,
    SessionStore,
    TokenCipherService,
)


@lru_cache()
def get_key_value_store() -> KeyValueStore:
    """Provide the configured session table backend."""
    storage = get_settings().storage
    if storage.backend == "sqlite":
        return SQLiteStore(storage.sqlite_path)
    return DynamoDBClient(storage)


@lru_cache()
def get_token_cipher_service() -> Optional[TokenCipherService]:
    """Provide token encryption when a secret is configured."""
    security = get_settings().security
    secret = security.token_encryption_secret
    if secret is None or not secret.get_secret_value():
        return None
    return TokenCipherService(
        secret=secret.get_secret_value(),
        previous_secrets=security.retired_secrets(),
    )


@lru_cache()
def get_session_store() -> SessionStore:
    return SessionStore(get_key_value_store(), get_token_cipher_service())


@lru_cache()
def get_oauth_state_encoder() -> OAuthStateEncoder:
    """Provide an OAuth state encoder keyed by the Shopify client secret."""
    return OAuthStateEncoder(secret_key=get_settings().shopify.client_secret.get_secret_value())


@lru_cache()
def get_shopify_client() -> ShopifyClient:
    return ShopifyClient(get_settings().shopify)


@lru_cache()
def get_oauth_flow_controller() -> OAuthFlowController:
    """Build the install flow controller from the shared clients."""
    settings = get_settings()
    return OAuthFlowController(
        shopify_settings=settings.shopify,
        oauth_settings=settings.oauth,
        session_store=get_session_store(),
        shopify_client=get_shopify_client(),
        state_encoder=get_oauth_state_encoder(),
    )


@lru_cache()
def get_resource_proxy() -> ResourceProxy:
    return ResourceProxy(get_session_store(), get_shopify_client())


__all__ = [
    "get_key_value_store",
    "get_oauth_flow_controller",
    "get_oauth_state_encoder",
    "get_resource_proxy",
    "get_session_store",
    "get_shopify_client",
    "get_token_cipher_service",
]
