"""Minimal HTML pages served from the landing route."""

from __future__ import annotations

from datetime import timezone
from html import escape
from typing import Mapping

from shopify_bridge.models.session import ShopSession

_STYLE = """
body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
       padding: 20px; background: #f6f6f7; color: #202223; }
.card { background: white; border: 1px solid #e1e3e5; border-radius: 8px; padding: 20px;
        max-width: 600px; margin: 40px auto; }
h1 { font-size: 24px; font-weight: 600; margin-bottom: 8px; }
p { color: #6d7175; }
.badge { display: inline-block; padding: 4px 12px; border-radius: 12px; font-weight: 600;
         font-size: 13px; background: #E4F7EB; color: #007D44; border: 1px solid #B7EBCE; }
table { width: 100%; border-collapse: collapse; margin-top: 24px; }
td { padding: 12px 0; border-bottom: 1px solid #f1f2f3; font-size: 14px; }
td:first-child { font-weight: 500; color: #6d7175; width: 40%; }
td:last-child { text-align: right; font-family: monospace; }
"""


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n"
        f"<title>{escape(title)}</title>\n"
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"<style>{_STYLE}</style>\n</head>\n"
        f'<body>\n<div class="card">\n{body}\n</div>\n</body>\n</html>\n'
    )


def render_landing_page() -> str:
    return _page(
        "App Status",
        "<h1>Shopify App Status</h1>\n<p>Please open this app from the Shopify Admin.</p>",
    )


def render_installed_page(session: ShopSession) -> str:
    installed_at = session.installed_at.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    rows = (
        ("Shop Domain", session.shop),
        ("Installed At", installed_at),
        ("Scopes", session.scope),
        ("Status", "Active"),
    )
    table = "\n".join(
        f"<tr><td>{escape(label)}</td><td>{escape(value)}</td></tr>" for label, value in rows
    )
    return _page(
        "App Status",
        "<h1>App Status</h1>\n"
        "<p>The application is installed and communicating with Shopify APIs.</p>\n"
        '<span class="badge">&#9679; System Operational</span>\n'
        f"<table>\n{table}\n</table>",
    )


def render_error_page(title: str, message: str) -> str:
    return _page(title, f"<h1>{escape(title)}</h1>\n<p>{escape(message)}</p>")


def render_configuration_error_page(report: Mapping[str, bool]) -> str:
    """List each required variable as OK or MISSING; values are never shown."""
    lines = "\n".join(
        f"{escape(name)}: {'OK' if present else 'MISSING'}" for name, present in report.items()
    )
    return _page(
        "Configuration Error",
        "<h1>Configuration Error</h1>\n"
        "<p>Missing or invalid environment variables on server.</p>\n"
        f"<pre>\n{lines}\n</pre>",
    )


__all__ = [
    "render_configuration_error_page",
    "render_error_page",
    "render_installed_page",
    "render_landing_page",
]
