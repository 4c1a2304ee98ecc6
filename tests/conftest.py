from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def _plugin_logs_reach_caplog(monkeypatch):
    # load.py stops the plugin logger from propagating once imported.
    monkeypatch.setattr(logging.getLogger("ShortcutActions"), "propagate", True)
