"""Rendering of service errors as HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shopify_bridge.core.errors import ShopifyBridgeError, UpstreamApiError, UpstreamTokenError

logger = logging.getLogger(__name__)


def error_response(exc: ShopifyBridgeError) -> Response:
    """Map an error to its response. Upstream API failures keep Shopify's body."""
    if isinstance(exc, UpstreamApiError) and exc.body:
        return Response(
            content=exc.body,
            status_code=exc.status_code,
            media_type=exc.content_type or "application/json",
        )
    content = {"error": exc.message}
    if isinstance(exc, UpstreamTokenError) and exc.body:
        content["details"] = exc.body
    return JSONResponse(status_code=exc.status_code, content=content)


async def _handle_bridge_error(request: Request, exc: ShopifyBridgeError) -> Response:
    logger.info(
        "Request failed",
        extra={"path": request.url.path, "status": exc.status_code, "error": type(exc).__name__},
    )
    return error_response(exc)


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> Response:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


async def _handle_unexpected_error(request: Request, exc: Exception) -> Response:
    logger.exception("Unhandled error", extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ShopifyBridgeError, _handle_bridge_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)


__all__ = ["error_response", "register_exception_handlers"]
