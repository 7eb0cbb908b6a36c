"""
FastAPI routes for the Shopify install handshake and the Admin API proxy.
"""

from __future__ import annotations

import logging
from enum import Enum
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from shopify_bridge.api.errors import error_response
from shopify_bridge.api.views import render_error_page, render_installed_page, render_landing_page
from shopify_bridge.core.config import AppSettings
from shopify_bridge.core.errors import InvalidShop, InvalidSignature, ShopifyBridgeError, StoreUnavailable
from shopify_bridge.dependencies import (
    get_app_settings,
    get_oauth_flow_controller,
    get_resource_proxy,
)
from shopify_bridge.services.hmac_verifier import ParamValue

router = APIRouter()
logger = logging.getLogger(__name__)


class Route(str, Enum):
    """Paths served by the app."""

    STATUS = "/"
    AUTH = "/auth"
    CALLBACK = "/callback"
    PRODUCTS = "/products"

    @classmethod
    def resolve(cls, path: str) -> Optional["Route"]:
        """Match a raw request path, ignoring a trailing slash."""
        try:
            return cls("/" + path.strip("/"))
        except ValueError:
            return None


def query_params(request: Request) -> dict[str, ParamValue]:
    """Flatten the query string, keeping repeated and ``[]`` keys as lists."""
    params: dict[str, ParamValue] = {}
    for key in request.query_params.keys():
        values = request.query_params.getlist(key)
        params[key] = values if len(values) > 1 or key.endswith("[]") else values[0]
    return params


_STATE_COOKIE_OPTIONS: dict[str, Any] = {"path": "/", "secure": True, "httponly": True, "samesite": "lax"}


@router.get(Route.STATUS.value, response_class=HTMLResponse)
async def app_status(
    request: Request,
    controller: Annotated[Any, Depends(get_oauth_flow_controller)],
) -> Response:
    """Landing page: redirect uninstalled shops into the install flow."""
    try:
        result = controller.check_status(query_params(request))
    except InvalidSignature:
        return HTMLResponse(
            render_error_page("Security Error", "Invalid HMAC signature."),
            status_code=HTTPStatus.BAD_REQUEST,
        )
    except InvalidShop:
        return HTMLResponse(
            render_error_page("Invalid Request", "Invalid shop parameter."),
            status_code=HTTPStatus.BAD_REQUEST,
        )
    except StoreUnavailable:
        return HTMLResponse(
            render_error_page("Database Error", "Could not verify installation status."),
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        )

    if result.redirect_to:
        return RedirectResponse(url=result.redirect_to, status_code=HTTPStatus.FOUND)
    if result.session is None:
        return HTMLResponse(render_landing_page())
    return HTMLResponse(render_installed_page(result.session))


@router.get(Route.AUTH.value)
async def begin_install(
    controller: Annotated[Any, Depends(get_oauth_flow_controller)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
    shop: Optional[str] = Query(default=None, description="Shop domain, e.g. my-shop.myshopify.com."),
) -> RedirectResponse:
    """Send the merchant to Shopify's consent screen."""
    redirect = controller.begin_authorization(shop)
    response = RedirectResponse(url=redirect.url, status_code=HTTPStatus.FOUND)
    response.set_cookie(
        settings.oauth.state_cookie_name,
        redirect.state_cookie,
        max_age=settings.oauth.state_ttl_seconds,
        **_STATE_COOKIE_OPTIONS,
    )
    return response


@router.get(Route.CALLBACK.value)
async def complete_install(
    request: Request,
    controller: Annotated[Any, Depends(get_oauth_flow_controller)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> Response:
    """Verify Shopify's redirect, exchange the code and store the offline token."""
    cookie_name = settings.oauth.state_cookie_name
    try:
        session = await controller.complete_callback(
            query_params(request), request.cookies.get(cookie_name)
        )
    except ShopifyBridgeError as exc:
        response = error_response(exc)
    else:
        response = JSONResponse(
            content={
                "success": True,
                "message": "App installed successfully",
                "shop": session.shop,
            }
        )
    response.delete_cookie(cookie_name, **_STATE_COOKIE_OPTIONS)
    return response


@router.get(Route.PRODUCTS.value)
async def list_products(
    proxy: Annotated[Any, Depends(get_resource_proxy)],
    shop: Optional[str] = Query(default=None, description="Installed shop domain."),
) -> JSONResponse:
    """Relay the shop's products from the Admin API."""
    payload = await proxy.fetch_products(shop)
    return JSONResponse(content=payload)


__all__ = ["Route", "query_params", "router"]
