"""Relay Admin API resources for installed shops."""

from __future__ import annotations

import logging
from typing import Any, Optional

from shopify_bridge.clients.shopify import ShopifyClient
from shopify_bridge.core.errors import NotInstalled
from shopify_bridge.services.session_store import SessionStore
from shopify_bridge.utils.shop_domain import require_shop_domain

logger = logging.getLogger(__name__)


class ResourceProxy:
    """Call the Admin API with a shop's stored token and return the body untouched."""

    def __init__(self, session_store: SessionStore, shopify_client: ShopifyClient) -> None:
        self._sessions = session_store
        self._client = shopify_client

    async def fetch(self, shop: Optional[str], resource: str) -> Any:
        shop = require_shop_domain(shop)
        session = self._sessions.get_session(shop)
        if session is None or not session.is_active:
            raise NotInstalled()

        logger.info("Proxying Admin API request", extra={"shop": shop, "resource": resource})
        return await self._client.get_resource(shop, session.access_token, resource)

    async def fetch_products(self, shop: Optional[str]) -> Any:
        return await self.fetch(shop, "products")


__all__ = ["ResourceProxy"]
