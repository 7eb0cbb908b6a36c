"""
Verification of the ``hmac`` query parameter Shopify attaches to redirects.

Shopify signs every query parameter except ``hmac`` (and the legacy
``signature``) by sorting the keys, joining them as ``key=value`` pairs with
``&`` and computing HMAC-SHA256 with the app's client secret. The digest is
sent as lowercase hex.
"""

from __future__ import annotations

import hashlib
import hmac
import re
from typing import Mapping, Sequence, Union

ParamValue = Union[str, Sequence[str]]

_EXCLUDED_KEYS = frozenset({"hmac", "signature"})
_HEX_DIGEST = re.compile(r"[0-9a-fA-F]+")


def _format_value(value: ParamValue) -> str:
    if isinstance(value, str):
        return value
    # Repeated keys such as ids[]=1&ids[]=2 are signed as ids=["1", "2"].
    return "[" + ", ".join(f'"{item}"' for item in value) + "]"


def canonicalize(params: Mapping[str, ParamValue]) -> str:
    """Build the message Shopify signs from the callback parameters."""
    pairs: dict[str, str] = {}
    for key, value in params.items():
        if key in _EXCLUDED_KEYS:
            continue
        if not isinstance(value, str):
            key = key[:-2] if key.endswith("[]") else key
        pairs[key] = _format_value(value)
    ordered = sorted(pairs.items(), key=lambda item: item[0].encode("utf-8"))
    return "&".join(f"{key}={value}" for key, value in ordered)


def compute_hmac(params: Mapping[str, ParamValue], secret: str) -> str:
    """Return the lowercase hex HMAC-SHA256 of the canonical message."""
    message = canonicalize(params).encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_hmac(params: Mapping[str, ParamValue], secret: str) -> bool:
    """Check the ``hmac`` parameter against the expected digest.

    Fails closed: a missing, non-hex or wrong-length value returns False.
    """
    provided = params.get("hmac")
    if not isinstance(provided, str) or not _HEX_DIGEST.fullmatch(provided):
        return False
    try:
        provided_digest = bytes.fromhex(provided)
    except ValueError:
        return False

    message = canonicalize(params).encode("utf-8")
    expected_digest = hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()
    if len(provided_digest) != len(expected_digest):
        return False
    return hmac.compare_digest(provided_digest, expected_digest)


__all__ = ["canonicalize", "compute_hmac", "verify_hmac"]
