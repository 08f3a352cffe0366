"""
Logging setup for cartcore.

Importing this module installs one stdout handler on the root logger
(unless the host app already configured one). Modules then do:

    from cartcore.logging import get_logger
    logger = get_logger(__name__)

Product and session ids come from the network and from users, so they go
through ``sanitize_id_for_logging`` / ``sanitize_string_for_logging``
before being interpolated into a log line.
"""

import logging
import os
import sys
from functools import cache

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_COMPACT = "%(levelname)s - %(name)s - %(message)s"

# Longest storage key / error text kept in a log line
MAX_LOGGED_TEXT = 120


def _configure_root_logger() -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    compact = os.environ.get("CARTCORE_ENV") == "production"
    handler.setFormatter(logging.Formatter(LOG_FORMAT_COMPACT if compact else LOG_FORMAT))
    root.addHandler(handler)

    # Catalog requests are logged by the catalog client itself
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


_configure_root_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _escape(value: str) -> str:
    """Neutralize line breaks so one value cannot forge extra log records (CWE-117)."""
    return value.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t").replace("\x00", "")


def sanitize_id_for_logging(id_value: str | None) -> str:
    """Escaped id cut to its first 8 characters, or "N/A"."""
    if not id_value:
        return "N/A"
    return _escape(str(id_value))[:8]


def sanitize_string_for_logging(value: str | None, max_length: int = MAX_LOGGED_TEXT) -> str:
    """
    Escape free text such as a storage key or an error body.

    Text longer than ``max_length`` is cut and suffixed with "...".
    """
    if not value:
        return "N/A"
    safe_value = _escape(str(value))
    if len(safe_value) <= max_length:
        return safe_value
    return safe_value[:max_length] + "..."


__all__ = [
    "get_logger",
    "sanitize_id_for_logging",
    "sanitize_string_for_logging",
]
