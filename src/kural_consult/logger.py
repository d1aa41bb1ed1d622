"""
Logging bootstrap for the CLI and the HTTP server.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "kural_consult"


def init_logger(level: str = "INFO") -> logging.Logger:
    """
    Idempotent logger init: one rich handler on the root logger, writing to
    stderr so command output stays machine-readable.

    Calling it again only updates the level.
    """
    root = logging.getLogger()
    resolved_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    root.setLevel(resolved_level)

    if not getattr(root, "_kural_inited", False):
        for handler in list(root.handlers):
            root.removeHandler(handler)
        handler = RichHandler(
            console=Console(stderr=True), rich_tracebacks=True, show_path=False
        )
        handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
        root.addHandler(handler)

        # Quiet noisy libs
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        root._kural_inited = True  # type: ignore[attr-defined]

    logger = logging.getLogger(LOGGER_NAME)
    logger.debug("logger.init level=%s", logging.getLevelName(resolved_level))
    return logger
