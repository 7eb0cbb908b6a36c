"""
Shopify OAuth and Admin API utilities.

These helpers build the install URL, exchange authorization codes for
offline access tokens and call the Admin REST API with a stored token.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import json
import logging
from hashlib import sha256
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

import httpx

from shopify_bridge.core.config import ShopifySettings
from shopify_bridge.core.errors import (
    InvalidState,
    TokenMissing,
    UpstreamApiError,
    UpstreamTokenError,
)

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"
_REDACTED = "[REDACTED]"


class OAuthStateEncoder:
    """Sign and verify the OAuth state payload kept in a cookie between redirects."""

    _SIGNATURE_SIZE = 32

    def __init__(self, secret_key: str) -> None:
        self._secret_key = secret_key.encode("utf-8")

    def encode(self, payload: Dict[str, Any]) -> str:
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
        signature = hmac.new(self._secret_key, serialized, sha256).digest()
        return base64.urlsafe_b64encode(signature + serialized).decode("ascii")

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            decoded = base64.urlsafe_b64decode(token.encode("ascii"))
        except (binascii.Error, UnicodeEncodeError) as exc:
            raise InvalidState("Malformed OAuth state cookie.") from exc

        signature, serialized = decoded[: self._SIGNATURE_SIZE], decoded[self._SIGNATURE_SIZE :]
        expected_signature = hmac.new(self._secret_key, serialized, sha256).digest()
        if not hmac.compare_digest(signature, expected_signature):
            raise InvalidState("Invalid OAuth state signature.")
        try:
            payload = json.loads(serialized)
        except ValueError as exc:
            raise InvalidState("Malformed OAuth state cookie.") from exc
        if not isinstance(payload, dict):
            raise InvalidState("Malformed OAuth state cookie.")
        return payload


class ShopifyClient:
    """Build Shopify authorization URLs, exchange codes and call the Admin API."""

    def __init__(
        self,
        settings: ShopifySettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.http_timeout_seconds,
            transport=self._transport,
        )

    def _redact(self, text: str) -> str:
        secret = self._settings.client_secret.get_secret_value()
        return text.replace(secret, _REDACTED) if secret else text

    def build_authorization_url(self, shop: str, state: str) -> str:
        """Construct the Shopify install/consent URL for ``shop``."""
        params = {
            "client_id": self._settings.client_id,
            "scope": self._settings.scopes,
            "redirect_uri": str(self._settings.redirect_uri),
            "state": state,
        }
        query = urlencode(params, safe=",", quote_via=quote)
        return f"https://{shop}/admin/oauth/authorize?{query}"

    async def exchange_authorization_code(self, shop: str, code: str) -> str:
        """Exchange an authorization code for an offline access token."""
        payload = {
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret.get_secret_value(),
            "code": code,
        }
        url = f"https://{shop}/admin/oauth/access_token"

        try:
            async with self._http_client() as client:
                response = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.error("Token exchange request failed", extra={"shop": shop, "error": type(exc).__name__})
            raise UpstreamTokenError(body=self._redact(str(exc))) from exc

        if not response.is_success:
            body = self._redact(response.text)
            logger.error(
                "Token exchange rejected",
                extra={"shop": shop, "status": response.status_code, "body": body},
            )
            raise UpstreamTokenError(body=body)

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise UpstreamTokenError(
                "Unreadable token response", body=self._redact(response.text)
            ) from exc

        access_token = token_payload.get("access_token") if isinstance(token_payload, dict) else None
        if not isinstance(access_token, str) or not access_token:
            raise TokenMissing()
        return access_token

    async def get_resource(self, shop: str, access_token: str, resource: str) -> Any:
        """GET ``/admin/api/<version>/<resource>.json`` and return the parsed body."""
        url = f"https://{shop}/admin/api/{self._settings.api_version}/{resource}.json"
        headers = {ACCESS_TOKEN_HEADER: access_token, "Content-Type": "application/json"}

        try:
            async with self._http_client() as client:
                response = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Admin API request failed", extra={"shop": shop, "error": type(exc).__name__})
            raise UpstreamApiError(message="Shopify API request failed") from exc

        if not response.is_success:
            logger.warning(
                "Admin API returned an error",
                extra={"shop": shop, "resource": resource, "status": response.status_code},
            )
            raise UpstreamApiError(
                response.status_code,
                response.text,
                content_type=response.headers.get("content-type"),
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamApiError(
                body=response.text,
                content_type=response.headers.get("content-type"),
                message="Unreadable Shopify API response",
            ) from exc


__all__ = ["ACCESS_TOKEN_HEADER", "OAuthStateEncoder", "ShopifyClient"]
