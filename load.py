"""Primary entry point for the Shortcut Actions plugin."""
from __future__ import annotations

import argparse
import asyncio
import importlib
import json
import logging
import sys
import threading
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple

if __package__:
    from .version import __version__ as SHORTCUT_ACTIONS_VERSION
    from .shortcut_plugin.custom_actions import CustomActionSandbox, CustomActionStore
    from .shortcut_plugin.dispatcher import ActionDispatcher
    from .shortcut_plugin.logging_utils import attach_action_log, detach_action_log
    from .shortcut_plugin.preferences import Preferences
    from .shortcut_plugin.results import ActionResult
    from .shortcut_plugin.shortcuts import action_for, parse_shortcut_map
    from .shortcut_plugin.storage import SHORTCUTS_KEY, STORAGE_FILE, JsonFileStorage
    from .shortcut_plugin.ui_bridge import UiBridge
    from .shortcut_plugin.ui_messages import UiMessageRouter
else:  # pragma: no cover - host loads the plugin as a top-level module
    from version import __version__ as SHORTCUT_ACTIONS_VERSION
    from shortcut_plugin.custom_actions import CustomActionSandbox, CustomActionStore
    from shortcut_plugin.dispatcher import ActionDispatcher
    from shortcut_plugin.logging_utils import attach_action_log, detach_action_log
    from shortcut_plugin.preferences import Preferences
    from shortcut_plugin.results import ActionResult
    from shortcut_plugin.shortcuts import action_for, parse_shortcut_map
    from shortcut_plugin.storage import SHORTCUTS_KEY, STORAGE_FILE, JsonFileStorage
    from shortcut_plugin.ui_bridge import UiBridge
    from shortcut_plugin.ui_messages import UiMessageRouter

PLUGIN_NAME = "Shortcut-Actions"
PLUGIN_VERSION = SHORTCUT_ACTIONS_VERSION
LOGGER_NAME = "ShortcutActions"
LOG_TAG = "Shortcut-Actions"
PORT_FILE = "port.json"

HOST_CONFIG_MODULE = "config"
HOST_DEFAULT_LOG_LEVEL = logging.INFO
_LEVEL_NAME_MAP = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _load_host_config_module() -> Optional[Any]:
    try:
        return importlib.import_module(HOST_CONFIG_MODULE)
    except ImportError:
        return None


def _resolve_host_logger() -> Optional[logging.Logger]:
    module = _load_host_config_module()
    logger_obj = getattr(module, "logger", None) if module is not None else None
    return logger_obj if isinstance(logger_obj, logging.Logger) else None


def _coerce_level(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        token = raw.strip().upper()
        if token.isdigit():
            return int(token)
        return _LEVEL_NAME_MAP.get(token)
    return None


def _resolve_host_log_level() -> int:
    candidates = []
    module = _load_host_config_module()
    if module is not None:
        candidates.append(_coerce_level(getattr(module, "log_level", None)))
    host_logger = _resolve_host_logger()
    if host_logger is not None:
        candidates.append(host_logger.getEffectiveLevel())
    candidates.append(logging.getLogger().getEffectiveLevel())
    for level in candidates:
        if isinstance(level, int) and level != logging.NOTSET:
            return level
    return HOST_DEFAULT_LOG_LEVEL


class _HostLogHandler(logging.Handler):
    """Logging bridge that forwards plugin records to the host's logger."""

    def emit(self, record: logging.LogRecord) -> None:
        target_level = _resolve_host_log_level()
        plugin_logger = logging.getLogger(LOGGER_NAME)
        if plugin_logger.level != target_level:
            plugin_logger.setLevel(target_level)
        if record.levelno < target_level:
            return
        message = self.format(record)
        host_logger = _resolve_host_logger()
        if host_logger is not None and host_logger.isEnabledFor(record.levelno):
            host_logger.log(record.levelno, message)
            return
        root_logger = logging.getLogger()
        if root_logger.isEnabledFor(record.levelno):
            root_logger.log(record.levelno, message)


def _configure_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_resolve_host_log_level())
    if not any(getattr(handler, "_host_handler", False) for handler in logger.handlers):
        handler = _HostLogHandler()
        handler._host_handler = True  # type: ignore[attr-defined]
        handler.setFormatter(logging.Formatter(f"[%(asctime)s] [{LOG_TAG}] %(message)s", "%H:%M:%S"))
        logger.addHandler(handler)
    logger.propagate = False
    return logger


LOGGER = _configure_logger()


def _log(message: str) -> None:
    LOGGER.info(message)


class _PluginRuntime:
    """Owns the dispatcher, the UI bridge and their shared storage for one host session."""

    def __init__(self, plugin_dir: str, preferences: Preferences, host: Any) -> None:
        self.plugin_dir = Path(plugin_dir)
        self.host = host
        self._preferences = preferences
        self._lock = threading.Lock()
        self._running = False
        self._action_log_handler: Optional[logging.Handler] = None
        self.storage = JsonFileStorage(self.plugin_dir / STORAGE_FILE)
        self.sandbox = CustomActionSandbox(host, CustomActionStore(self.storage))
        self.dispatcher = ActionDispatcher(host, self.sandbox)
        self.bridge = UiBridge(
            self._handle_bridge_message,
            host=preferences.bridge_host,
            port=preferences.bridge_port,
            log=_log,
        )
        self.router = UiMessageRouter(
            host,
            self.dispatcher,
            self.storage,
            post_message=self.bridge.publish,
            preferences=preferences,
        )

    @property
    def running(self) -> bool:
        return self._running

    # Lifecycle ------------------------------------------------------------

    def start(self) -> str:
        with self._lock:
            if self._running:
                return PLUGIN_NAME
            self._apply_action_log()
            try:
                self.bridge.start()
            except RuntimeError as exc:
                LOGGER.error("UI bridge failed to start; shortcuts still work from the host: %s", exc)
                self._delete_port_file()
            else:
                self._write_port_file()
            self._running = True
        _log(f"Plugin started (version {PLUGIN_VERSION})")
        return PLUGIN_NAME

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
        _log("Plugin stopping")
        self.bridge.stop()
        self._delete_port_file()
        detach_action_log(self._action_log_handler)
        self._action_log_handler = None

    def on_preferences_updated(self) -> None:
        LOGGER.debug(
            "Preferences updated: close_after_run=%s action_log_enabled=%s action_log_retention=%d",
            self._preferences.close_after_run,
            self._preferences.action_log_enabled,
            self._preferences.action_log_retention,
        )
        self._apply_action_log()

    # Host events ----------------------------------------------------------

    def handle_key(self, pressed: Any) -> Optional[ActionResult]:
        """Run the action bound to ``pressed``; ``None`` when nothing is bound."""
        return self._run(lambda: self._handle_key_async(pressed))

    def handle_ui_message(self, message: Any) -> bool:
        return bool(self._run(lambda: self.router.handle(message)))

    async def _handle_key_async(self, pressed: Any) -> Optional[ActionResult]:
        bindings = parse_shortcut_map(await self.storage.get_async(SHORTCUTS_KEY))
        action_id = action_for(bindings, pressed)
        if action_id is None:
            LOGGER.debug("No action bound to %s", pressed)
            return None
        return await self.router.trigger(action_id)

    async def _handle_bridge_message(self, message: Any) -> None:
        await self.router.handle(message)

    # Helpers --------------------------------------------------------------

    def _run(self, func: Callable[[], Awaitable[Any]]) -> Any:
        if self.bridge.running:
            return self.bridge.call(func)
        return asyncio.run(func())

    def _apply_action_log(self) -> None:
        detach_action_log(self._action_log_handler)
        self._action_log_handler = None
        if self._preferences.action_log_enabled:
            self._action_log_handler = attach_action_log(
                self.plugin_dir / "logs",
                retention=self._preferences.action_log_retention,
            )
            LOGGER.debug("Action log enabled in %s", self.plugin_dir / "logs")

    def _write_port_file(self) -> None:
        target = self.plugin_dir / PORT_FILE
        data = {
            "port": self.bridge.port,
            "version": PLUGIN_VERSION,
        }
        target.write_text(json.dumps(data, indent=2), encoding="utf-8")
        _log(f"Wrote {PORT_FILE} with port {self.bridge.port} (plugin version {PLUGIN_VERSION})")

    def _delete_port_file(self) -> None:
        try:
            (self.plugin_dir / PORT_FILE).unlink()
        except FileNotFoundError:
            pass


# Host hook functions -------------------------------------------------------

_plugin: Optional[_PluginRuntime] = None
_preferences: Optional[Preferences] = None


def plugin_start(plugin_dir: str, host: Any) -> str:
    global _plugin, _preferences
    if _plugin is not None:
        LOGGER.debug("plugin_start called while already running; ignoring")
        return PLUGIN_NAME
    _log(f"Initialising Shortcut Actions plugin from {plugin_dir}")
    _preferences = Preferences(Path(plugin_dir))
    _plugin = _PluginRuntime(plugin_dir, _preferences, host)
    return _plugin.start()


def plugin_stop() -> None:
    global _plugin, _preferences
    if _plugin:
        try:
            _plugin.stop()
        finally:
            _plugin = None
    _preferences = None


def plugin_prefs_save() -> None:
    if _preferences is None:
        LOGGER.debug("Preferences not initialised; nothing to save")
        return
    try:
        _preferences.save()
        if _plugin:
            _plugin.on_preferences_updated()
    except OSError as exc:
        LOGGER.exception("Failed to save preferences: %s", exc)


def handle_key(pressed: Any) -> Optional[ActionResult]:
    if _plugin is None:
        return None
    return _plugin.handle_key(pressed)


def handle_ui_message(message: Any) -> bool:
    if _plugin is None:
        return False
    return _plugin.handle_ui_message(message)


# Developer harness ---------------------------------------------------------


def _build_sample_document() -> Any:
    if __package__:
        from .shortcut_plugin import mock_document as mock
    else:
        from shortcut_plugin import mock_document as mock

    document = mock.MockDocument()
    frame = document.add(mock.FrameNode("Card", x=0, y=0, width=400, height=300))
    document.add(mock.RectangleNode("A", x=10, y=20, width=40, height=40), frame, select=True)
    document.add(mock.RectangleNode("B", x=90, y=60, width=40, height=40), frame, select=True)
    document.add(mock.TextNode("Title", x=200, y=10, width=120, height=24), frame, select=True)
    return document


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run Shortcut Actions against an in-memory sample document.")
    parser.add_argument(
        "--plugin-dir",
        default=str(Path(__file__).resolve().parent),
        help="Directory holding preferences and stored data (default: %(default)s).",
    )
    parser.add_argument("--action", action="append", default=[], help="Action id to run; may be repeated.")
    parser.add_argument("--key", action="append", default=[], help="Shortcut to press, e.g. Alt+Shift+L.")
    parser.add_argument("--serve", action="store_true", help="Keep the UI bridge open until interrupted.")
    parser.add_argument("--list", action="store_true", help="List built-in action ids and exit.")
    return parser


def _describe(result: Optional[ActionResult]) -> Tuple[str, str]:
    if result is None:
        return "skipped", "no action bound"
    return ("ok" if result.success else "failed"), result.message


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if args.list:
        if __package__:
            from .shortcut_plugin.action_registry import descriptors
        else:
            from shortcut_plugin.action_registry import descriptors
        for descriptor in descriptors():
            print(f"{descriptor.category:<24} {descriptor.id:<28} {descriptor.label}")
        return 0

    document = _build_sample_document()
    plugin_start(args.plugin_dir, document)
    try:
        runtime = _plugin
        if runtime is None:
            print("Plugin failed to start", file=sys.stderr)
            return 1
        for action_id in args.action:
            result = runtime._run(lambda action_id=action_id: runtime.router.trigger(action_id, close_plugin=False))
            status, message = _describe(result)
            print(f"{action_id}: {status} - {message}")
        for pressed in args.key:
            status, message = _describe(runtime.handle_key(pressed))
            print(f"{pressed}: {status} - {message}")
        if args.serve:
            print(f"UI bridge listening on {runtime.bridge.host}:{runtime.bridge.port}; Ctrl+C to stop")
            threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        plugin_stop()
    for node in document.page.children:
        print(repr(node))
    return 0


# Metadata expected by some plugin loaders
name = PLUGIN_NAME
version = PLUGIN_VERSION


if __name__ == "__main__":
    sys.exit(main())
