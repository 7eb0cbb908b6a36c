"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_key_value_store,
    get_oauth_flow_controller,
    get_oauth_state_encoder,
    get_resource_proxy,
    get_session_store,
    get_shopify_client,
    get_token_cipher_service,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_key_value_store",
    "get_oauth_flow_controller",
    "get_oauth_state_encoder",
    "get_resource_proxy",
    "get_session_store",
    "get_shopify_client",
    "get_token_cipher_service",
]
