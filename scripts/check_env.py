"""Verify that the environment holds a usable configuration before deploying.

Two commands are available::

    # Print which required variables are present (values are never printed).
    python -m scripts.check_env report --env-file .env

    # Load the full settings model, failing on missing or invalid values
    # (including a placeholder REDIRECT_URI).
    python -m scripts.check_env check --env-file .env
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable

from shopify_bridge.core.config import _load_env_file, describe_environment, load_settings
from shopify_bridge.core.errors import ConfigurationError

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_RUNTIME_ERROR = 5


def _print_report() -> None:
    for name, present in describe_environment().items():
        print(f"{name}: {'OK' if present else 'MISSING'}")


def _check() -> int:
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        print(exc.message, file=sys.stderr)
        _print_report()
        return EXIT_VALIDATION_ERROR

    print(
        "Configuration OK "
        f"(store backend: {settings.storage.backend}, "
        f"API version: {settings.shopify.api_version}, "
        f"state verification: {'on' if settings.oauth.verify_state else 'off'})"
    )
    return EXIT_OK


def _report() -> int:
    _print_report()
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate Shopify bridge settings.")
    parser.add_argument("command", choices=["check", "report"])
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the working directory).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(
            f"Environment file {env_file} does not exist. "
            "Ensure the path is correct or create it before running this tool.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR
    _load_env_file(str(env_file))

    handlers: dict[str, Callable[[], int]] = {"check": _check, "report": _report}
    return handlers[args.command]()


if __name__ == "__main__":
    sys.exit(main())
