"""Test helper that normalizes sys.path and environment defaults."""

from __future__ import annotations

import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


_DEFAULT_ENV_VARS: dict[str, str] = {
    "SHOPIFY_CLIENT_ID": "test-client-id",
    "SHOPIFY_CLIENT_SECRET": "test-client-secret",
    "SHOPIFY_SCOPES": "read_products,write_orders",
    "REDIRECT_URI": "https://bridge.test/callback",
    "TABLE_NAME": "shop-sessions",
    "AWS_REGION": "us-east-1",
}

for key, value in _DEFAULT_ENV_VARS.items():
    os.environ.setdefault(key, value)
