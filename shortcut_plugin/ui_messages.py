"""Routing for messages sent by the plugin UI.

The UI runs in its own process and talks to the plugin exclusively through
small JSON messages carrying a ``type`` field. :class:`UiMessageRouter` maps
each message type onto the dispatcher, the custom action sandbox, client
storage and the host, and posts any reply back through ``post_message``.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from .action_registry import catalog
from .custom_actions import CustomActionStore, SecurityViolation, validate_sources
from .dispatcher import ActionDispatcher
from .host import environment_name
from .logging_utils import ACTION_LOGGER_NAME
from .preferences import DEFAULT_WINDOW_HEIGHT, DEFAULT_WINDOW_WIDTH, Preferences, clamp_window_size
from .results import ActionResult
from .shortcuts import find_conflicts, parse_shortcut_map
from .storage import SHORTCUTS_KEY, ClientStorage

_LOGGER = logging.getLogger("ShortcutActions.UI")
_ACTION_LOG = logging.getLogger(ACTION_LOGGER_NAME)

PostMessage = Callable[[Dict[str, Any]], None]


class UiMessageRouter:
    """Handle one UI message at a time and emit the matching replies."""

    def __init__(
        self,
        host: Any,
        dispatcher: ActionDispatcher,
        storage: ClientStorage,
        *,
        post_message: PostMessage,
        preferences: Optional[Preferences] = None,
    ) -> None:
        self._host = host
        self._dispatcher = dispatcher
        self._storage = storage
        self._store = CustomActionStore(storage)
        self._post = post_message
        self._preferences = preferences
        self._routes: Dict[str, Callable[[Mapping[str, Any]], Awaitable[None]]] = {
            "close-plugin": self._close,
            "cancel": self._close,
            "load-data": self._load_data,
            "save-data": self._save_data,
            "shortcut-triggered": self._shortcut_triggered,
            "custom-action-added": self._custom_action_added,
            "test-run-custom-action": self._test_run,
            "shortcut-set-success": self._shortcut_set,
            "notify": self._notify,
            "resize": self._resize,
        }

    # Public API ---------------------------------------------------------

    async def handle(self, message: Mapping[str, Any]) -> bool:
        """Process a UI message. Returns ``True`` when its type is known."""

        if not isinstance(message, Mapping):
            _LOGGER.warning("Ignoring non-object UI message: %r", message)
            return False
        message_type = message.get("type")
        route = self._routes.get(message_type) if isinstance(message_type, str) else None
        if route is None:
            _LOGGER.debug("Ignoring UI message with unknown type: %r", message_type)
            return False
        _LOGGER.debug("Received UI message: %s", message_type)
        await route(message)
        return True

    async def trigger(self, action_id: str, *, close_plugin: Optional[bool] = None) -> ActionResult:
        """Run an action as if its shortcut fired, with the usual replies."""

        result = await self._dispatcher.dispatch(action_id)
        if not result.success and "not supported" in result.message:
            label = await self._dispatcher.display_name(action_id)
            result = ActionResult.fail(f"error-{label} action not supported in {environment_name(self._host)}")
        _ACTION_LOG.info("%s success=%s %s", action_id, result.success, result.message)

        self._post(result.as_message("shortcut-result"))
        self._host.notify(result.message)
        if close_plugin is None:
            close_plugin = self._preferences.close_after_run if self._preferences is not None else True
        if result.success and close_plugin is True:
            self._host.close_plugin()
        return result

    # Message handlers ---------------------------------------------------

    async def _close(self, _message: Mapping[str, Any]) -> None:
        self._host.close_plugin()

    async def _load_data(self, _message: Mapping[str, Any]) -> None:
        shortcuts = await self._storage.get_async(SHORTCUTS_KEY)
        custom_actions = await self._store.load_raw()
        self._post(
            {
                "type": "data-loaded",
                "shortcuts": shortcuts if isinstance(shortcuts, dict) else {},
                "customActions": custom_actions,
                "defaultActions": catalog(),
            }
        )

    async def _save_data(self, message: Mapping[str, Any]) -> None:
        custom_actions = message.get("customActions") or []
        shortcuts = message.get("shortcuts") or {}
        if not isinstance(custom_actions, list):
            _LOGGER.warning("Rejected save: customActions must be a list")
            return
        if not isinstance(shortcuts, Mapping):
            _LOGGER.warning("Rejected save: shortcuts must be an object")
            return
        # Validate everything first so an unsafe entry stores nothing at all.
        try:
            validate_sources(custom_actions)
        except SecurityViolation as exc:
            _LOGGER.error("Security violation: attempted to save custom action with %s", exc.token)
            self._host.notify(f"Security violation: {exc.token} is not allowed")
            return

        for binding, owners in find_conflicts(parse_shortcut_map(shortcuts)).items():
            _LOGGER.warning("Shortcut %s is bound to several actions: %s", binding, ", ".join(owners))
        await self._storage.set_async(SHORTCUTS_KEY, shortcuts)
        await self._store.save(custom_actions)
        _LOGGER.debug("Saved %d shortcut(s) and %d custom action(s)", len(shortcuts), len(custom_actions))

    async def _shortcut_triggered(self, message: Mapping[str, Any]) -> None:
        action = message.get("action")
        if not isinstance(action, str) or not action:
            _LOGGER.debug("shortcut-triggered message without an action")
            return
        close_plugin = message.get("closePlugin")
        await self.trigger(action, close_plugin=close_plugin if isinstance(close_plugin, bool) else None)

    async def _custom_action_added(self, message: Mapping[str, Any]) -> None:
        verb = "updated" if message.get("update") else "added"
        action = message.get("action")
        if isinstance(action, Mapping) and "name" in action:
            self._host.notify(f'Custom action "{action["name"]}" {verb}')
        else:
            self._host.notify(f"Custom action {verb}")

    async def _test_run(self, message: Mapping[str, Any]) -> None:
        code = message.get("functionCode")
        if not isinstance(code, str) or not code:
            self._post(ActionResult.fail("No function code provided").as_message("test-run-result"))
            return
        result = await self._dispatcher.sandbox.run_custom_action_code(code)
        _ACTION_LOG.info("test-run success=%s %s", result.success, result.message)
        self._post(result.as_message("test-run-result"))
        self._host.notify(result.message)

    async def _shortcut_set(self, message: Mapping[str, Any]) -> None:
        name = message.get("actionName") or "Unknown action"
        self._host.notify(f"Successfully set shortcut for {name}")

    async def _notify(self, message: Mapping[str, Any]) -> None:
        text = message.get("message")
        if text:
            self._host.notify(str(text))

    async def _resize(self, message: Mapping[str, Any]) -> None:
        size = message.get("size")
        if not isinstance(size, Mapping):
            if self._preferences is not None:
                size = {"w": self._preferences.window_width, "h": self._preferences.window_height}
            else:
                size = {"w": DEFAULT_WINDOW_WIDTH, "h": DEFAULT_WINDOW_HEIGHT}
        width, height = clamp_window_size(size.get("w"), size.get("h"))
        self._host.resize_ui(width, height)
