"""
Domain model for the per-shop offline session record.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

SESSION_ID_PREFIX = "offline_"


def session_id_for(shop: str) -> str:
    """Derive the store key for a shop's offline session."""
    return f"{SESSION_ID_PREFIX}{shop}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ShopSession(BaseModel):
    """Represents the session item stored for an installed shop."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Store key, always offline_<shop>.")
    shop: str
    access_token: str = Field("", alias="accessToken", repr=False)
    scope: str = ""
    installed_at: datetime = Field(default_factory=_utcnow, alias="installedAt")
    is_online: bool = Field(False, alias="isOnline")

    @classmethod
    def new(cls, *, shop: str, access_token: str, scope: str) -> "ShopSession":
        return cls(
            id=session_id_for(shop),
            shop=shop,
            accessToken=access_token,
            scope=scope,
            installedAt=_utcnow(),
        )

    @field_validator("installed_at", mode="before")
    @classmethod
    def _parse_installed_at(cls, value: Any) -> Any:
        # Older records used ISO strings; current ones use epoch milliseconds.
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return datetime.fromtimestamp(float(value) / 1000, tz=timezone.utc)
        if isinstance(value, str) and value.isdigit():
            return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
        return value

    @field_validator("installed_at")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_active(self) -> bool:
        """A session is usable only when it carries a non-empty token."""
        return bool(self.access_token)

    @property
    def installed_at_millis(self) -> int:
        return int(self.installed_at.timestamp() * 1000)

    def to_item(self) -> Dict[str, Any]:
        """Serialize to the attribute layout used in the key-value store."""
        return {
            "id": self.id,
            "shop": self.shop,
            "accessToken": self.access_token,
            "scope": self.scope,
            "installedAt": self.installed_at_millis,
            "isOnline": self.is_online,
        }


__all__ = ["SESSION_ID_PREFIX", "ShopSession", "session_id_for"]
