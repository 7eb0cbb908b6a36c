"""
FastAPI application entrypoint for the Shopify install bridge.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from shopify_bridge import __version__
from shopify_bridge.api.errors import register_exception_handlers
from shopify_bridge.api.routes import router
from shopify_bridge.api.views import render_configuration_error_page
from shopify_bridge.core.config import AppSettings, describe_environment, get_settings
from shopify_bridge.core.errors import ConfigurationError
from shopify_bridge.core.logging import configure_logging

logger = logging.getLogger(__name__)

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def create_diagnostic_app(error: ConfigurationError) -> FastAPI:
    """App served when settings fail to load: every request gets the diagnostic page."""
    app = FastAPI(title="Shopify Install Bridge (misconfigured)", version=__version__)
    report = describe_environment()

    @app.api_route("/{path:path}", methods=_ALL_METHODS, include_in_schema=False)
    async def configuration_error(path: str) -> HTMLResponse:
        return HTMLResponse(
            render_configuration_error_page(report),
            status_code=error.status_code,
        )

    return app


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Factory for the FastAPI application."""
    if settings is None:
        try:
            settings = get_settings()
        except ConfigurationError as exc:
            configure_logging()
            logger.error("Configuration error: %s", exc.message)
            return create_diagnostic_app(exc)
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Shopify Install Bridge",
        version=__version__,
        description="OAuth install handshake and Admin API proxy for a Shopify app.",
    )
    register_exception_handlers(app)
    app.include_router(router)
    return app


app = create_app()

__all__ = ["app", "create_app", "create_diagnostic_app"]
