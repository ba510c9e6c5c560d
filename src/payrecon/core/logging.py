"""Logging setup shared by the API and scripts."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Initialize root logging once with the shared format.

    ``level`` is a level name such as ``"DEBUG"``; unknown names fall back to INFO.
    """
    resolved = getattr(logging, (level or "INFO").upper(), logging.INFO)
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("payrecon").setLevel(resolved)
    # boto/urllib3 are chatty at DEBUG
    logging.getLogger("botocore").setLevel(max(resolved, logging.WARNING))
    logging.getLogger("urllib3").setLevel(max(resolved, logging.WARNING))
