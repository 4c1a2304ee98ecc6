from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ACTION_LOGGER_NAME = "ShortcutActions.ActionLog"
ACTION_LOG_FILE = "action-log.txt"
ACTION_LOG_MAX_BYTES = 256 * 1024


def build_rotating_action_handler(
    log_dir: Path,
    filename: str = ACTION_LOG_FILE,
    *,
    retention: int,
    max_bytes: int = ACTION_LOG_MAX_BYTES,
    formatter: Optional[logging.Formatter] = None,
) -> logging.Handler:
    """Construct a rotating file handler for the dispatch audit log."""
    retention = max(1, retention)
    backup_count = max(0, retention - 1)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(formatter or logging.Formatter("%(asctime)s %(message)s", "%Y-%m-%d %H:%M:%S"))
    handler.setLevel(logging.INFO)
    return handler


def attach_action_log(log_dir: Path, *, retention: int) -> logging.Handler:
    """Route :data:`ACTION_LOGGER_NAME` records to a rotating file in ``log_dir``."""
    logger = logging.getLogger(ACTION_LOGGER_NAME)
    handler = build_rotating_action_handler(log_dir, retention=retention)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return handler


def detach_action_log(handler: Optional[logging.Handler]) -> None:
    if handler is None:
        return
    logging.getLogger(ACTION_LOGGER_NAME).removeHandler(handler)
    handler.close()
