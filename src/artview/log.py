"""Logging setup.

stdout belongs to the terminal the images are drawn on, so log records go
to a file when one is configured and are discarded otherwise.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_handler: logging.Handler | None = None


def configure_logging(path: str | None, level: str = "info") -> logging.Logger:
    """Attach a single handler to the ``artview`` logger.

    Calling this again replaces the previously installed handler.
    """
    global _handler
    logger = logging.getLogger("artview")
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler.close()

    if path:
        handler: logging.Handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler = logging.NullHandler()

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False
    _handler = handler
    return logger
