"""
Logging utilities shared by the FastAPI app and the Lambda adapter.
"""

import logging
import sys

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level.upper())
        return
    logging.basicConfig(level=level.upper(), format=_FORMAT, stream=sys.stdout)
    # httpx logs full request URLs at INFO, which include OAuth codes.
    logging.getLogger("httpx").setLevel(logging.WARNING)


__all__ = ["configure_logging"]
