"""
Install handshake for the Shopify app.

A shop moves through ``UNKNOWN -> AUTHORIZING -> EXCHANGING -> INSTALLED``.
``FAILED`` can be reached from any step on a validation or upstream error and
is not terminal: the merchant retries by starting over from ``/``.

The ``state`` nonce sent to Shopify is also placed, signed, in a short-lived
cookie so the callback can prove it belongs to a redirect this app issued.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Mapping, Optional
from urllib.parse import quote

from shopify_bridge.clients.shopify import OAuthStateEncoder, ShopifyClient
from shopify_bridge.core.config import OAuthSettings, ShopifySettings
from shopify_bridge.core.errors import (
    InvalidSignature,
    InvalidState,
    MissingParameter,
    ShopifyBridgeError,
)
from shopify_bridge.models.session import ShopSession
from shopify_bridge.services.hmac_verifier import ParamValue, verify_hmac
from shopify_bridge.services.session_store import SessionStore
from shopify_bridge.utils.shop_domain import require_shop_domain

logger = logging.getLogger(__name__)

CALLBACK_REQUIRED_PARAMS = ("shop", "code", "hmac")


class InstallState(str, Enum):
    UNKNOWN = "unknown"
    AUTHORIZING = "authorizing"
    EXCHANGING = "exchanging"
    INSTALLED = "installed"
    FAILED = "failed"


@dataclass(frozen=True)
class StatusResult:
    """Outcome of the status check for the landing route."""

    state: InstallState
    shop: Optional[str] = None
    session: Optional[ShopSession] = field(default=None, repr=False)
    redirect_to: Optional[str] = None


@dataclass(frozen=True)
class AuthorizationRedirect:
    shop: str
    url: str
    nonce: str
    state_cookie: str = field(repr=False)
    state: InstallState = InstallState.AUTHORIZING


def _single(params: Mapping[str, ParamValue], name: str) -> Optional[str]:
    value = params.get(name)
    return value if isinstance(value, str) else None


class OAuthFlowController:
    """Orchestrates status check, authorization redirect and code exchange."""

    def __init__(
        self,
        *,
        shopify_settings: ShopifySettings,
        oauth_settings: OAuthSettings,
        session_store: SessionStore,
        shopify_client: ShopifyClient,
        state_encoder: OAuthStateEncoder,
        nonce_factory: Callable[[], str] = lambda: secrets.token_hex(16),
    ) -> None:
        self._shopify = shopify_settings
        self._oauth = oauth_settings
        self._sessions = session_store
        self._client = shopify_client
        self._state_encoder = state_encoder
        self._nonce_factory = nonce_factory
        if not oauth_settings.verify_state:
            logger.warning("OAuth state verification is disabled; callbacks are not bound to a redirect.")

    @property
    def _secret(self) -> str:
        return self._shopify.client_secret.get_secret_value()

    def _transition(self, shop: Optional[str], state: InstallState, **extra: object) -> None:
        logger.info("OAuth flow transition", extra={"shop": shop, "install_state": state.value, **extra})

    def check_status(self, params: Mapping[str, ParamValue]) -> StatusResult:
        """Decide between the generic page, an install redirect and the installed view."""
        shop = _single(params, "shop")
        if not shop:
            return StatusResult(state=InstallState.UNKNOWN)

        if "hmac" in params and not verify_hmac(params, self._secret):
            self._transition(shop, InstallState.FAILED, reason="invalid_hmac")
            raise InvalidSignature("Invalid HMAC signature.")
        require_shop_domain(shop)

        session = self._sessions.get_session(shop)
        if session is None or not session.is_active:
            return StatusResult(
                state=InstallState.UNKNOWN,
                shop=shop,
                redirect_to=f"/auth?shop={quote(shop, safe='')}",
            )
        return StatusResult(state=InstallState.INSTALLED, shop=shop, session=session)

    def begin_authorization(self, shop: Optional[str]) -> AuthorizationRedirect:
        """Validate the shop and build the redirect to Shopify's consent screen."""
        shop = require_shop_domain(shop)
        nonce = self._nonce_factory()
        state_cookie = self._state_encoder.encode(
            {
                "nonce": nonce,
                "shop": shop,
                "issued_at": datetime.now(timezone.utc).isoformat(),
            }
        )
        url = self._client.build_authorization_url(shop, state=nonce)
        self._transition(shop, InstallState.AUTHORIZING)
        return AuthorizationRedirect(shop=shop, url=url, nonce=nonce, state_cookie=state_cookie)

    async def complete_callback(
        self, params: Mapping[str, ParamValue], state_cookie: Optional[str] = None
    ) -> ShopSession:
        """Verify the callback, exchange the code and persist the offline session."""
        shop = _single(params, "shop")
        try:
            missing = [name for name in CALLBACK_REQUIRED_PARAMS if not _single(params, name)]
            if missing:
                raise MissingParameter(missing)
            shop = require_shop_domain(shop)
            if not verify_hmac(params, self._secret):
                raise InvalidSignature()
            self._verify_state(shop, _single(params, "state"), state_cookie)

            self._transition(shop, InstallState.EXCHANGING)
            access_token = await self._client.exchange_authorization_code(shop, _single(params, "code") or "")

            session = ShopSession.new(shop=shop, access_token=access_token, scope=self._shopify.scopes)
            self._sessions.put_session(session)
        except ShopifyBridgeError as exc:
            self._transition(shop, InstallState.FAILED, reason=type(exc).__name__)
            raise

        self._transition(shop, InstallState.INSTALLED)
        return session

    def _verify_state(self, shop: str, returned_state: Optional[str], state_cookie: Optional[str]) -> None:
        if not self._oauth.verify_state:
            return
        if not returned_state or not state_cookie:
            raise InvalidState("Missing OAuth state.")

        payload = self._state_encoder.decode(state_cookie)

        try:
            issued_at = datetime.fromisoformat(str(payload.get("issued_at")))
        except ValueError as exc:
            raise InvalidState("Invalid issued_at in OAuth state.") from exc
        if issued_at.tzinfo is None:
            issued_at = issued_at.replace(tzinfo=timezone.utc)
        if datetime.now(timezone.utc) - issued_at > timedelta(seconds=self._oauth.state_ttl_seconds):
            raise InvalidState("OAuth state has expired.")

        if payload.get("shop") != shop:
            raise InvalidState("OAuth state was issued for a different shop.")
        nonce = payload.get("nonce")
        if not isinstance(nonce, str) or not hmac.compare_digest(nonce.encode(), returned_state.encode()):
            raise InvalidState()


__all__ = [
    "AuthorizationRedirect",
    "CALLBACK_REQUIRED_PARAMS",
    "InstallState",
    "OAuthFlowController",
    "StatusResult",
]
