"""Structured logging for Clip Studio.

Every module logs under the "clip_studio" namespace (for example
"clip_studio.editing.orchestrator" or "clip_studio.generation.router") so the
whole service can be tuned with a single level.
"""
from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Any, Optional

_ROOT = "clip_studio"
_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    max_bytes: int = 20 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Configure the clip_studio root logger and return it.

    Args:
        level: Log level string ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL").
        log_file: Optional path to a rotating file log.
        max_bytes: Max size before rotation (default 20 MB).
        backup_count: Number of rotated files to keep.

    Raises:
        ValueError: If level is not a valid log level string.
    """
    upper = level.upper()
    if upper not in _VALID_LEVELS:
        raise ValueError(f"Invalid log level: {level!r}. Must be one of {_VALID_LEVELS}")

    numeric = getattr(logging, upper)
    fmt = logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    root = logging.getLogger(_ROOT)
    root.setLevel(numeric)

    # Repeated calls (tests, app reloads) must not stack handlers
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(numeric)
    console.setFormatter(fmt)
    root.addHandler(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric)
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)

    root.propagate = False
    return root


def setup_logging_from_config(config: Any) -> logging.Logger:
    """Configure logging from the ``logging.*`` keys of a Config object."""
    return setup_logging(
        level=str(config.get("logging.level", "INFO")),
        log_file=config.get("logging.file"),
        max_bytes=int(config.get("logging.max_bytes", 20 * 1024 * 1024)),
        backup_count=int(config.get("logging.backup_count", 5)),
    )


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under the clip_studio namespace.

    Args:
        name: Sub-namespace, e.g. "editing.orchestrator" becomes
              "clip_studio.editing.orchestrator". Names already starting
              with "clip_studio" are used as-is.
    """
    if name.startswith(_ROOT):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT}.{name}")
