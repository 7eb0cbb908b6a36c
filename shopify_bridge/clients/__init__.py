"""Expose constructed client wrappers."""

from .dynamodb import DynamoDBClient
from .shopify import OAuthStateEncoder, ShopifyClient
from .sqlite_store import SQLiteStore

__all__ = [
    "DynamoDBClient",
    "OAuthStateEncoder",
    "SQLiteStore",
    "ShopifyClient",
]
