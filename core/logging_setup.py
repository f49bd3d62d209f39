"""Process-level logging bootstrap."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER_NAME = "hypermem-stderr"


def configure_logging(level: str | int = "WARNING") -> logging.Logger:
    """Attach one stderr handler to the ``hypermem`` logger tree.

    Repeated calls reuse the handler and point it at the current
    ``sys.stderr``, which test runners swap per invocation.
    """
    root = logging.getLogger("hypermem")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    root.setLevel(level)
    handler = next((h for h in root.handlers if h.get_name() == _HANDLER_NAME), None)
    if isinstance(handler, logging.StreamHandler):
        handler.setStream(sys.stderr)
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    return root
