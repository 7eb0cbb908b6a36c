"""
AWS Lambda entrypoint for API Gateway HTTP API (payload format 2.0) events.

Each event is replayed in-process against the FastAPI app through
``httpx.ASGITransport`` and the response is converted back into the shape
API Gateway expects.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Dict

import httpx

from shopify_bridge.api.routes import Route
from shopify_bridge.main import app

logger = logging.getLogger(__name__)

_DROPPED_REQUEST_HEADERS = {"content-length", "cookie"}

_INTERNAL_ERROR_RESPONSE: Dict[str, Any] = {
    "statusCode": 500,
    "headers": {"content-type": "application/json"},
    "body": '{"error":"Internal Server Error"}',
    "isBase64Encoded": False,
}


def _request_path(event: Dict[str, Any]) -> str:
    raw_path = event.get("rawPath") or event.get("requestContext", {}).get("http", {}).get("path") or "/"
    route = Route.resolve(raw_path)
    return route.value if route else raw_path


def _query_string(event: Dict[str, Any]) -> str:
    raw = event.get("rawQueryString")
    if raw is not None:
        return raw
    params = event.get("queryStringParameters") or {}
    return str(httpx.QueryParams(params))


def _request_headers(event: Dict[str, Any]) -> Dict[str, str]:
    headers = {
        key: value
        for key, value in (event.get("headers") or {}).items()
        if key.lower() not in _DROPPED_REQUEST_HEADERS
    }
    cookies = event.get("cookies")
    if cookies:
        headers["cookie"] = "; ".join(cookies)
    return headers


def _request_body(event: Dict[str, Any]) -> bytes:
    body = event.get("body")
    if body is None:
        return b""
    if event.get("isBase64Encoded"):
        return base64.b64decode(body)
    return body.encode("utf-8")


async def _dispatch(event: Dict[str, Any]) -> httpx.Response:
    method = event.get("requestContext", {}).get("http", {}).get("method", "GET")
    query = _query_string(event)
    url = _request_path(event) + (f"?{query}" if query else "")
    host = (event.get("headers") or {}).get("host", "lambda.local")

    # Unhandled app errors still produce the 500 from the exception handlers.
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url=f"https://{host}") as client:
        return await client.request(
            method,
            url,
            headers=_request_headers(event),
            content=_request_body(event),
        )


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """AWS Lambda handler invoked by an API Gateway HTTP API."""
    try:
        response = asyncio.run(_dispatch(event))
    except Exception:
        logger.exception("Lambda request failed", extra={"path": event.get("rawPath")})
        return dict(_INTERNAL_ERROR_RESPONSE, headers=dict(_INTERNAL_ERROR_RESPONSE["headers"]))

    headers = {
        key: value
        for key, value in response.headers.items()
        if key.lower() not in {"set-cookie", "content-length"}
    }
    result: Dict[str, Any] = {
        "statusCode": response.status_code,
        "headers": headers,
        "body": response.text,
        "isBase64Encoded": False,
    }
    cookies = response.headers.get_list("set-cookie")
    if cookies:
        result["cookies"] = cookies

    logger.info(
        "Handled Lambda request",
        extra={"path": event.get("rawPath"), "status": response.status_code},
    )
    return result


__all__ = ["lambda_handler"]
