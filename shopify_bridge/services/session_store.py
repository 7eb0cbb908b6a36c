"""
Gateway between the OAuth flow and the key-value store holding shop sessions.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from pydantic import ValidationError

from shopify_bridge.core.errors import StoreUnavailable
from shopify_bridge.models.session import ShopSession, session_id_for
from shopify_bridge.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)

ENCRYPTED_FLAG = "tokenEncrypted"


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[Dict[str, Any]]: ...

    def put_item(self, item: Dict[str, Any]) -> None: ...


class SessionStore:
    """Read and upsert the single offline session kept per shop.

    Every call is a direct round trip to the backing store. Store failures
    surface as ``StoreUnavailable`` so callers can tell them apart from a shop
    that simply is not installed.
    """

    def __init__(self, store: KeyValueStore, token_cipher: Optional[TokenCipherService] = None) -> None:
        self._store = store
        self._cipher = token_cipher

    def get_session(self, shop: str) -> Optional[ShopSession]:
        item = self._call(self._store.get_item, session_id_for(shop))
        if not item:
            return None

        record = dict(item)
        token = record.get("accessToken") or ""
        if token and record.pop(ENCRYPTED_FLAG, False):
            if self._cipher is None:
                logger.error("Stored token is encrypted but no encryption secret is configured", extra={"shop": shop})
                raise StoreUnavailable()
            try:
                token = self._cipher.decrypt(token)
            except ValueError as exc:
                logger.error("Stored token could not be decrypted", extra={"shop": shop})
                raise StoreUnavailable() from exc
        record["accessToken"] = token

        try:
            return ShopSession.model_validate(record)
        except ValidationError as exc:
            logger.error("Stored session record is malformed", extra={"shop": shop})
            raise StoreUnavailable() from exc

    def put_session(self, session: ShopSession) -> None:
        """Unconditional upsert; the last writer wins."""
        item = session.to_item()
        if self._cipher is not None and session.access_token:
            item["accessToken"] = self._cipher.encrypt(session.access_token)
            item[ENCRYPTED_FLAG] = True
        self._call(self._store.put_item, item)
        logger.info("Stored offline session", extra={"shop": session.shop})

    @staticmethod
    def _call(func, *args):
        try:
            return func(*args)
        except StoreUnavailable:
            raise
        except Exception as exc:
            raise StoreUnavailable() from exc


__all__ = ["ENCRYPTED_FLAG", "KeyValueStore", "SessionStore"]
