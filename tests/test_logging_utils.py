from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from shortcut_plugin.logging_utils import (
    ACTION_LOG_FILE,
    ACTION_LOGGER_NAME,
    attach_action_log,
    build_rotating_action_handler,
    detach_action_log,
)


def test_rotating_handler_uses_retention(tmp_path: Path):
    handler = build_rotating_action_handler(tmp_path / "logs", retention=3)
    try:
        assert isinstance(handler, RotatingFileHandler)
        assert handler.backupCount == 2
        assert Path(handler.baseFilename) == tmp_path / "logs" / ACTION_LOG_FILE
    finally:
        handler.close()


def test_retention_never_drops_below_one_file(tmp_path: Path):
    handler = build_rotating_action_handler(tmp_path, retention=0)
    try:
        assert handler.backupCount == 0
    finally:
        handler.close()


def test_attach_and_detach_action_log(tmp_path: Path):
    handler = attach_action_log(tmp_path, retention=2)
    logger = logging.getLogger(ACTION_LOGGER_NAME)
    try:
        logger.info("alignLeft success=True Applied Align Left")
        assert handler in logger.handlers
    finally:
        detach_action_log(handler)
    assert handler not in logger.handlers
    assert "alignLeft success=True" in (tmp_path / ACTION_LOG_FILE).read_text(encoding="utf-8")
    detach_action_log(None)
