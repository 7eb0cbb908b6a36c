"""SQLite-backed substitute for the DynamoDB session table during local development."""

from __future__ import annotations

import json
import sqlite3
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

from shopify_bridge.core.errors import StoreUnavailable


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    raise TypeError(f"Unsupported type {type(value).__name__}")


class SQLiteStore:
    """Key-value store using a single table keyed by ``id``."""

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_items (
                    id TEXT PRIMARY KEY,
                    data TEXT NOT NULL
                )
                """
            )

    def put_item(self, item: Dict[str, Any]) -> None:
        key = item.get("id")
        if not key:
            raise ValueError("Item must include an 'id' key")

        data_json = json.dumps(item, default=_json_default)
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO kv_items (id, data)
                    VALUES (?, ?)
                    ON CONFLICT(id) DO UPDATE SET data = excluded.data
                    """,
                    (key, data_json),
                )
        except sqlite3.Error as exc:
            raise StoreUnavailable() from exc

    def get_item(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT data FROM kv_items WHERE id = ?", (key,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreUnavailable() from exc
        if not row:
            return None
        return json.loads(row["data"])


__all__ = ["SQLiteStore"]
