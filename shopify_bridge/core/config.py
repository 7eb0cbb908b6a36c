"""
Application configuration models and helpers.

Settings are read from the environment once per process and passed into the
clients and services explicitly. Nothing below the app factory reads
``os.environ`` directly.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

import os

from pydantic import AnyHttpUrl, Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shopify_bridge.core.errors import ConfigurationError


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file into the environment."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        os.environ[key] = value.strip().strip('"').strip("'")


_load_env_file()

_PLACEHOLDER_HOSTS = ("example.com", "example.org", "example.net")
_PLACEHOLDER_PREFIXES = ("your-", "changeme")

REQUIRED_ENV_VARS: tuple[str, ...] = (
    "SHOPIFY_CLIENT_ID",
    "SHOPIFY_CLIENT_SECRET",
    "REDIRECT_URI",
    "TABLE_NAME",
)


class ShopifySettings(BaseSettings):
    """Credentials and endpoints for the Shopify app registration."""

    model_config = SettingsConfigDict(populate_by_name=True, frozen=True)

    client_id: str = Field(..., validation_alias="SHOPIFY_CLIENT_ID", min_length=1)
    client_secret: SecretStr = Field(..., validation_alias="SHOPIFY_CLIENT_SECRET")
    scopes: str = Field(
        "read_products",
        validation_alias="SHOPIFY_SCOPES",
        description="Comma-separated scopes requested at install time.",
    )
    redirect_uri: AnyHttpUrl = Field(..., validation_alias="REDIRECT_URI")
    api_version: str = Field("2024-10", validation_alias="SHOPIFY_API_VERSION")
    http_timeout_seconds: float = Field(10.0, validation_alias="SHOPIFY_HTTP_TIMEOUT")

    @field_validator("client_secret")
    @classmethod
    def _require_secret(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("SHOPIFY_CLIENT_SECRET must not be empty")
        return value

    @field_validator("redirect_uri")
    @classmethod
    def _reject_placeholder_host(cls, value: AnyHttpUrl) -> AnyHttpUrl:
        """The redirect URI must point at this app's own callback, not a sample host."""
        host = (value.host or "").lower()
        is_sample = any(host == name or host.endswith("." + name) for name in _PLACEHOLDER_HOSTS)
        if is_sample or host.startswith(_PLACEHOLDER_PREFIXES):
            raise ValueError(
                f"REDIRECT_URI host '{host}' looks like a placeholder; "
                "set it to the deployed URL of the /callback route"
            )
        return value


class StorageSettings(BaseSettings):
    """Where installed-shop sessions are persisted."""

    model_config = SettingsConfigDict(populate_by_name=True, frozen=True)

    backend: Literal["dynamodb", "sqlite"] = Field("dynamodb", validation_alias="STORE_BACKEND")
    table_name: Optional[str] = Field(None, validation_alias="TABLE_NAME")
    region_name: str = Field("us-east-1", validation_alias="AWS_REGION")
    endpoint_url: Optional[str] = Field(
        None,
        validation_alias="DYNAMODB_ENDPOINT_URL",
        description="Override for DynamoDB Local or LocalStack.",
    )
    sqlite_path: str = Field("data/sessions.db", validation_alias="SQLITE_DB_PATH")

    @model_validator(mode="after")
    def _require_table_for_dynamodb(self) -> "StorageSettings":
        if self.backend == "dynamodb" and not self.table_name:
            raise ValueError("TABLE_NAME is required when STORE_BACKEND=dynamodb")
        return self


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    model_config = SettingsConfigDict(populate_by_name=True, frozen=True)

    state_ttl_seconds: int = Field(900, validation_alias="OAUTH_STATE_TTL", gt=0)
    verify_state: bool = Field(True, validation_alias="OAUTH_VERIFY_STATE")
    state_cookie_name: str = Field("shopify_oauth_state", validation_alias="OAUTH_STATE_COOKIE")


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(populate_by_name=True, frozen=True)

    token_encryption_secret: Optional[SecretStr] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description="When set, access tokens are encrypted before they are stored.",
    )
    previous_encryption_secrets: Optional[SecretStr] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_PREVIOUS_SECRETS",
        description="Comma-separated retired secrets still accepted when decrypting.",
    )

    def retired_secrets(self) -> list[str]:
        if self.previous_encryption_secrets is None:
            return []
        raw = self.previous_encryption_secrets.get_secret_value()
        return [part.strip() for part in raw.split(",") if part.strip()]


class AppSettings(BaseSettings):
    """Root settings object for the application.

    Every group reads ``os.environ`` only. A local ``.env`` file reaches them
    through ``_load_env_file``, which runs when this module is imported.
    """

    model_config = SettingsConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    shopify: ShopifySettings = Field(default_factory=ShopifySettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)


def describe_environment() -> dict[str, bool]:
    """Report which required variables are set, without exposing their values."""
    names = list(REQUIRED_ENV_VARS)
    if os.environ.get("STORE_BACKEND", "dynamodb").lower() == "sqlite":
        names.remove("TABLE_NAME")
    return {name: bool(os.environ.get(name)) for name in names}


def load_settings() -> AppSettings:
    """Build settings, converting validation failures into ``ConfigurationError``."""
    try:
        return AppSettings()  # type: ignore[call-arg]
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(part) for part in error['loc']) or 'settings'}: {error['msg']}"
            for error in exc.errors()
        ]
        missing = [name for name, present in describe_environment().items() if not present]
        raise ConfigurationError(
            "Invalid application configuration: " + "; ".join(problems),
            missing=missing,
        ) from exc
    except ValueError as exc:
        missing = [name for name, present in describe_environment().items() if not present]
        raise ConfigurationError(
            f"Invalid application configuration: {exc}", missing=missing
        ) from exc


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return load_settings()


__all__ = [
    "AppSettings",
    "OAuthSettings",
    "REQUIRED_ENV_VARS",
    "SecuritySettings",
    "ShopifySettings",
    "StorageSettings",
    "describe_environment",
    "get_settings",
    "load_settings",
]
