"""
Encryption of Shopify access tokens kept in the session store.

Stored values look like ``v1:<fernet token>``. The prefix names the key
derivation scheme. Secrets that were replaced can be passed as
``previous_secrets``; they still decrypt old records while every new
record is written with the current secret.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Sequence

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

KEY_VERSION = "v1"


def _fernet_for(secret: str) -> Fernet:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


class TokenCipherService:
    """Encrypt and decrypt access tokens with the current and retired secrets."""

    def __init__(self, *, secret: str, previous_secrets: Sequence[str] = ()) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        keys = [_fernet_for(secret)]
        keys.extend(_fernet_for(old) for old in previous_secrets if old and old != secret)
        self._fernet = MultiFernet(keys)

    def encrypt(self, plaintext: str) -> str:
        token = self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")
        return f"{KEY_VERSION}:{token}"

    def decrypt(self, ciphertext: str) -> str:
        version, sep, token = ciphertext.partition(":")
        if not sep or version != KEY_VERSION:
            raise ValueError("Unsupported token ciphertext version.")
        try:
            plaintext = self._fernet.decrypt(token.encode("ascii"))
        except (InvalidToken, UnicodeEncodeError) as exc:
            raise ValueError("Failed to decrypt token; invalid ciphertext provided.") from exc
        return plaintext.decode("utf-8")


__all__ = ["KEY_VERSION", "TokenCipherService"]
