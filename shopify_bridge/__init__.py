"""Shopify app install handshake and Admin API proxy."""

__version__ = "0.1.0"
