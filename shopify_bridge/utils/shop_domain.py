"""Validation for ``*.myshopify.com`` shop domains."""

from __future__ import annotations

import re
from typing import Optional

from shopify_bridge.core.errors import InvalidShop

_SHOP_DOMAIN = re.compile(r"[A-Za-z0-9][A-Za-z0-9-]*\.myshopify\.com")


def is_valid_shop_domain(shop: Optional[str]) -> bool:
    """Return True when ``shop`` is a bare myshopify.com subdomain."""
    if not shop:
        return False
    return _SHOP_DOMAIN.fullmatch(shop) is not None


def require_shop_domain(shop: Optional[str]) -> str:
    """Return ``shop`` unchanged or raise ``InvalidShop``.

    Runs before anything uses the value to build a URL or a store key.
    """
    if not is_valid_shop_domain(shop):
        raise InvalidShop()
    return shop  # type: ignore[return-value]


__all__ = ["is_valid_shop_domain", "require_shop_domain"]
