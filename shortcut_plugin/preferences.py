"""Preferences for the Shortcut Actions plugin."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

PREFERENCES_FILE = "shortcut_settings.json"
MIN_WINDOW_SIZE = 320
DEFAULT_WINDOW_WIDTH = 320
DEFAULT_WINDOW_HEIGHT = 450
ACTION_LOG_RETENTION_DEFAULT = 5

ENV_CLOSE_AFTER_RUN = "SHORTCUT_ACTIONS_CLOSE_AFTER_RUN"
ENV_BRIDGE_PORT = "SHORTCUT_ACTIONS_BRIDGE_PORT"
ENV_ACTION_LOG = "SHORTCUT_ACTIONS_ACTION_LOG"

_TRUE_TOKENS = {"1", "true", "yes", "on"}
_FALSE_TOKENS = {"0", "false", "no", "off"}

_LOGGER = logging.getLogger("ShortcutActions.Preferences")


def clamp_window_size(width: Any, height: Any) -> tuple[int, int]:
    """Coerce a UI size request; both sides are at least ``MIN_WINDOW_SIZE``."""

    try:
        w = int(width)
    except (TypeError, ValueError):
        w = DEFAULT_WINDOW_WIDTH
    try:
        h = int(height)
    except (TypeError, ValueError):
        h = DEFAULT_WINDOW_HEIGHT
    return max(MIN_WINDOW_SIZE, w), max(MIN_WINDOW_SIZE, h)


def _coerce_bool(raw: Any, default: bool) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return bool(raw)
    if isinstance(raw, str):
        token = raw.strip().lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
    return default


def _coerce_port(raw: Any, default: int) -> int:
    try:
        port = int(raw)
    except (TypeError, ValueError):
        return default
    if 0 <= port <= 65535:
        return port
    return default


@dataclass
class Preferences:
    """Simple JSON-backed preferences store.

    Environment overrides are applied on top of the file values after loading
    and are never written back by :meth:`save`.
    """

    plugin_dir: Path
    window_width: int = DEFAULT_WINDOW_WIDTH
    window_height: int = DEFAULT_WINDOW_HEIGHT
    close_after_run: bool = True
    action_log_enabled: bool = False
    action_log_retention: int = ACTION_LOG_RETENTION_DEFAULT
    bridge_host: str = "127.0.0.1"
    bridge_port: int = 0
    env: Optional[Mapping[str, str]] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.plugin_dir = Path(self.plugin_dir)
        self._path = self.plugin_dir / PREFERENCES_FILE
        self._file_values: Dict[str, Any] = {}
        self._load()
        self._apply_env(os.environ if self.env is None else self.env)

    @property
    def path(self) -> Path:
        return self._path

    # Persistence ---------------------------------------------------------

    def _load(self) -> None:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError) as exc:
            _LOGGER.warning("Ignoring unreadable preferences file %s: %s", self._path, exc)
            return
        if not isinstance(data, dict):
            return
        self.window_width, self.window_height = clamp_window_size(
            data.get("window_width", DEFAULT_WINDOW_WIDTH),
            data.get("window_height", DEFAULT_WINDOW_HEIGHT),
        )
        self.close_after_run = _coerce_bool(data.get("close_after_run"), True)
        self.action_log_enabled = _coerce_bool(data.get("action_log_enabled"), False)
        try:
            retention = int(data.get("action_log_retention", ACTION_LOG_RETENTION_DEFAULT))
        except (TypeError, ValueError):
            retention = ACTION_LOG_RETENTION_DEFAULT
        self.action_log_retention = max(1, retention)
        host = str(data.get("bridge_host", "127.0.0.1") or "127.0.0.1").strip()
        self.bridge_host = host or "127.0.0.1"
        self.bridge_port = _coerce_port(data.get("bridge_port", 0), 0)
        self._file_values = self._payload()

    def _apply_env(self, env: Mapping[str, str]) -> None:
        if ENV_CLOSE_AFTER_RUN in env:
            self.close_after_run = _coerce_bool(env[ENV_CLOSE_AFTER_RUN], self.close_after_run)
        if ENV_BRIDGE_PORT in env:
            self.bridge_port = _coerce_port(env[ENV_BRIDGE_PORT], self.bridge_port)
        if ENV_ACTION_LOG in env:
            self.action_log_enabled = _coerce_bool(env[ENV_ACTION_LOG], self.action_log_enabled)

    def _payload(self) -> Dict[str, Any]:
        return {
            "window_width": int(self.window_width),
            "window_height": int(self.window_height),
            "close_after_run": bool(self.close_after_run),
            "action_log_enabled": bool(self.action_log_enabled),
            "action_log_retention": int(self.action_log_retention),
            "bridge_host": str(self.bridge_host),
            "bridge_port": int(self.bridge_port),
        }

    def save(self) -> None:
        payload = self._payload()
        env = os.environ if self.env is None else self.env
        # Keep the file's own values for keys currently forced by the environment.
        for key, env_name in (
            ("close_after_run", ENV_CLOSE_AFTER_RUN),
            ("bridge_port", ENV_BRIDGE_PORT),
            ("action_log_enabled", ENV_ACTION_LOG),
        ):
            if env_name in env:
                payload[key] = self._file_values.get(key, _field_default(key))
        self.plugin_dir.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        self._file_values = dict(payload)


def _field_default(key: str) -> Any:
    return {
        "close_after_run": True,
        "bridge_port": 0,
        "action_log_enabled": False,
    }[key]
