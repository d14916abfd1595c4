from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str | int = "INFO") -> None:
    """Install a single stream handler on the root logger (idempotent)."""
    root = logging.getLogger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)
    for handler in root.handlers:
        if getattr(handler, "_recruitsync", False):
            return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._recruitsync = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    # uvicorn access logs duplicate our request logging
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
