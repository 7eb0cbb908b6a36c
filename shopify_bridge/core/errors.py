"""
Error hierarchy shared by the services and the HTTP layer.

Every error carries the status code it maps to and a message that is safe to
return to the caller. Client-input errors are raised before any network or
store call; dependency errors wrap the underlying failure at the call site.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Iterable, Optional


class ShopifyBridgeError(Exception):
    """Base class for errors rendered as HTTP responses."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(ShopifyBridgeError):
    """Required settings are missing or invalid."""

    default_message = "Configuration Error"

    def __init__(self, message: Optional[str] = None, *, missing: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.missing = tuple(missing)


class InvalidShop(ShopifyBridgeError):
    status_code = HTTPStatus.BAD_REQUEST
    default_message = "Invalid shop parameter"


class InvalidSignature(ShopifyBridgeError):
    status_code = HTTPStatus.BAD_REQUEST
    default_message = "HMAC validation failed"


class MissingParameter(ShopifyBridgeError):
    status_code = HTTPStatus.BAD_REQUEST
    default_message = "Missing required parameters"

    def __init__(self, names: Iterable[str]) -> None:
        self.names = tuple(names)
        super().__init__(f"Missing required parameters: {', '.join(self.names)}")


class InvalidState(ShopifyBridgeError):
    """The OAuth ``state`` returned by Shopify does not match the one issued."""

    status_code = HTTPStatus.BAD_REQUEST
    default_message = "OAuth state validation failed"


class NotInstalled(ShopifyBridgeError):
    status_code = HTTPStatus.NOT_FOUND
    default_message = "Shop not installed"


class StoreUnavailable(ShopifyBridgeError):
    status_code = HTTPStatus.SERVICE_UNAVAILABLE
    default_message = "Session store unavailable"


class UpstreamTokenError(ShopifyBridgeError):
    """Token exchange failed. ``body`` holds the redacted upstream response."""

    status_code = HTTPStatus.BAD_GATEWAY
    default_message = "Failed to fetch access token"

    def __init__(self, message: Optional[str] = None, *, body: str = "") -> None:
        super().__init__(message)
        self.body = body


class TokenMissing(ShopifyBridgeError):
    default_message = "No access token returned"


class UpstreamApiError(ShopifyBridgeError):
    """Shopify Admin API call failed; status and body are relayed as-is."""

    default_message = "Shopify API error"

    def __init__(
        self,
        status_code: int = HTTPStatus.BAD_GATEWAY,
        body: str = "",
        *,
        content_type: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.content_type = content_type


__all__ = [
    "ConfigurationError",
    "InvalidShop",
    "InvalidSignature",
    "InvalidState",
    "MissingParameter",
    "NotInstalled",
    "ShopifyBridgeError",
    "StoreUnavailable",
    "TokenMissing",
    "UpstreamApiError",
    "UpstreamTokenError",
]
