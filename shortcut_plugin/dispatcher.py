"""Resolve an action id, run it, and classify the outcome."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .action_registry import is_custom_id, resolve_label
from .custom_actions import CustomActionSandbox
from .handlers import BUILTIN_HANDLERS, Handler
from .results import ActionResult

_LOGGER = logging.getLogger("ShortcutActions.Dispatcher")

NO_SELECTION_MESSAGE = "No layers selected"


class ActionDispatcher:
    """Turns an action id into exactly one :class:`ActionResult`.

    Nothing raised by a handler escapes :meth:`dispatch`. The dispatcher keeps
    no state between calls; the selection is read fresh from the host each
    time.
    """

    def __init__(
        self,
        host: Any,
        sandbox: CustomActionSandbox,
        *,
        handlers: Optional[Mapping[str, Handler]] = None,
    ) -> None:
        self._host = host
        self._sandbox = sandbox
        self._handlers = dict(BUILTIN_HANDLERS if handlers is None else handlers)

    @property
    def sandbox(self) -> CustomActionSandbox:
        return self._sandbox

    async def dispatch(self, action_id: str) -> ActionResult:
        label = resolve_label(action_id)
        handler = self._handlers.get(action_id) if label is not None else None
        if handler is None:
            if is_custom_id(action_id):
                return await self._sandbox.run_custom_action_by_id(action_id)
            _LOGGER.debug("Unknown action requested: %s", action_id)
            return ActionResult.fail(f"Unknown action: {action_id}")

        # Captured before the handler runs; several handlers replace the selection.
        had_selection = bool(list(self._host.selection))
        try:
            await handler(self._host)
        except Exception as exc:
            _LOGGER.error("Error executing %s: %s", action_id, exc, exc_info=exc)
            return ActionResult.fail(f"Error executing {label}: {exc}")

        # Emptiness is reported only once the handler ran without failing.
        if not had_selection:
            return ActionResult.fail(NO_SELECTION_MESSAGE)
        return ActionResult.ok(f"Applied {label}")

    async def display_name(self, action_id: str) -> str:
        label = resolve_label(action_id)
        if label is not None:
            return label
        if is_custom_id(action_id):
            return await self._sandbox.display_name(action_id)
        return action_id
