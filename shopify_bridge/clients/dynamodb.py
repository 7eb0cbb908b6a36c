"""
Thin wrapper over the DynamoDB table that holds shop sessions.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from shopify_bridge.core.config import StorageSettings
from shopify_bridge.core.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class DynamoDBClient:
    """Get/put items by their ``id`` partition key."""

    KEY_ATTRIBUTE = "id"

    def __init__(self, settings: StorageSettings) -> None:
        self._settings = settings
        self._resource = boto3.resource(
            "dynamodb",
            region_name=settings.region_name,
            endpoint_url=settings.endpoint_url,
        )
        self._table = self._resource.Table(settings.table_name)

    def put_item(self, item: Dict[str, Any]) -> None:
        """Put an item in the table, replacing any item with the same key."""
        try:
            self._table.put_item(Item=item)
        except (BotoCoreError, ClientError) as exc:
            logger.error(
                "DynamoDB put_item failed",
                extra={"table": self._settings.table_name, "error": type(exc).__name__},
            )
            raise StoreUnavailable() from exc

    def get_item(self, key: str) -> Optional[Dict[str, Any]]:
        """Retrieve an item by key, or None when absent."""
        try:
            response = self._table.get_item(Key={self.KEY_ATTRIBUTE: key})
        except (BotoCoreError, ClientError) as exc:
            logger.error(
                "DynamoDB get_item failed",
                extra={"table": self._settings.table_name, "error": type(exc).__name__},
            )
            raise StoreUnavailable() from exc
        return response.get("Item")


__all__ = ["DynamoDBClient"]
