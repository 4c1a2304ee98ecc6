"""User-authored custom actions: persistence, validation and execution.

A custom action is Python source written by the user in the plugin UI. It runs
as the body of a coroutine that receives exactly three names:

``host``
    the host document surface,
``selection``
    the selection at the moment the action runs (not when it was saved),
``load_fonts``
    coroutine that preloads the fonts of the given nodes (default: selection).

The only policy enforced is a textual denylist against the host's UI
messaging primitive, applied both when saving and when running. This is a
guard against one known escape route, not an isolation boundary: the code
runs with ordinary builtins inside the plugin process.
"""
from __future__ import annotations

import builtins
import logging
import textwrap
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional

from .fonts import load_fonts
from .results import ActionResult
from .storage import CUSTOM_ACTIONS_KEY, ClientStorage

_LOGGER = logging.getLogger("ShortcutActions.Sandbox")

# Spellings of the host's UI messaging primitive that custom code may not mention.
DENYLISTED_TOKENS = ("post_message", "postMessage")
TEST_RUN_NAME = "Test run"
_ENTRY_POINT = "__custom_action__"


class SecurityViolation(ValueError):
    """Custom action source mentions a denylisted token."""

    def __init__(self, token: str) -> None:
        super().__init__(f"{token} is not allowed in custom actions")
        self.token = token


class CustomActionError(RuntimeError):
    """Failure raised by the user's code while it was running."""


@dataclass
class CustomAction:
    id: str
    name: str
    function: str
    shortcut: Optional[Any] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["CustomAction"]:
        if not isinstance(payload, dict):
            return None
        action_id = payload.get("id")
        if not isinstance(action_id, str) or not action_id:
            return None
        name = payload.get("name")
        function = payload.get("function")
        extras = {key: value for key, value in payload.items() if key not in {"id", "name", "function", "shortcut"}}
        return cls(
            id=action_id,
            name=str(name) if name is not None else action_id,
            function=function if isinstance(function, str) else "",
            shortcut=payload.get("shortcut"),
            extras=extras,
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(self.extras)
        payload.update({"id": self.id, "name": self.name, "function": self.function})
        if self.shortcut is not None:
            payload["shortcut"] = self.shortcut
        return payload


def find_violation(source: str) -> Optional[str]:
    """Return the first denylisted token found in ``source``."""

    for token in DENYLISTED_TOKENS:
        if token in source:
            return token
    return None


def check_source(source: str) -> None:
    token = find_violation(source)
    if token is not None:
        raise SecurityViolation(token)


def validate_sources(entries: Iterable[Any]) -> None:
    """Check the source of every entry (payload dicts or :class:`CustomAction`)."""

    for entry in entries:
        source = entry.get("function") if isinstance(entry, Mapping) else getattr(entry, "function", None)
        if isinstance(source, str):
            check_source(source)


def security_message(token: str) -> str:
    return f"Security violation: {token} is not allowed in custom actions"


def compile_custom_action(source: str, name: str = TEST_RUN_NAME) -> Callable[..., Awaitable[Any]]:
    """Turn source text into ``async def(host, selection, load_fonts)``."""

    body = textwrap.dedent(source).strip("\n")
    indented = textwrap.indent(body, "    ") if body.strip() else ""
    text = f"async def {_ENTRY_POINT}(host, selection, load_fonts):\n{indented}\n    pass\n"
    namespace: Dict[str, Any] = {"__builtins__": builtins, "__name__": "custom_action"}
    exec(compile(text, f"<custom action {name}>", "exec"), namespace)
    return namespace[_ENTRY_POINT]


class CustomActionStore:
    """Reads and replaces the ``customActions`` collection in client storage."""

    def __init__(self, storage: ClientStorage) -> None:
        self._storage = storage

    async def load_raw(self) -> List[Any]:
        raw = await self._storage.get_async(CUSTOM_ACTIONS_KEY)
        return list(raw) if isinstance(raw, list) else []

    async def load(self) -> List[CustomAction]:
        actions = []
        for entry in await self.load_raw():
            action = CustomAction.from_payload(entry)
            if action is None:
                _LOGGER.warning("Ignoring malformed custom action entry: %r", entry)
                continue
            actions.append(action)
        return actions

    async def find(self, action_id: str) -> Optional[CustomAction]:
        for action in await self.load():
            if action.id == action_id:
                return action
        return None

    async def save(self, actions: Iterable[Any]) -> None:
        """Validate every entry, then replace the stored collection.

        Raises :class:`SecurityViolation` before writing anything when any
        entry's source is rejected.
        """

        entries = list(actions)
        validate_sources(entries)
        payload = [entry.to_payload() if isinstance(entry, CustomAction) else entry for entry in entries]
        await self._storage.set_async(CUSTOM_ACTIONS_KEY, payload)


class CustomActionSandbox:
    """Loads custom actions by id and runs them against the live selection."""

    def __init__(self, host: Any, store: CustomActionStore) -> None:
        self._host = host
        self._store = store

    @property
    def store(self) -> CustomActionStore:
        return self._store

    async def run_custom_action_by_id(self, action_id: str) -> ActionResult:
        try:
            action = await self._store.find(action_id)
        except Exception as exc:
            _LOGGER.error("Error loading custom action %s: %s", action_id, exc, exc_info=exc)
            return ActionResult.fail(f"Error loading custom action: {exc}")
        if action is None:
            return ActionResult.fail(f"Custom action not found: {action_id}")
        return await self.run_custom_action_code(action.function, name=action.name)

    async def run_custom_action_code(self, source: str, *, name: str = TEST_RUN_NAME) -> ActionResult:
        token = find_violation(source)
        if token is not None:
            _LOGGER.warning("Rejected custom action '%s': mentions %s", name, token)
            return ActionResult.fail(security_message(token))
        try:
            entry_point = compile_custom_action(source, name)
            try:
                await entry_point(self._host, list(self._host.selection), self._load_fonts)
            except Exception as exc:
                raise CustomActionError(f"Custom action execution failed: {exc}") from exc
        except Exception as exc:
            _LOGGER.warning("Error executing custom action '%s': %s", name, exc, exc_info=exc)
            return ActionResult.fail(f'Error executing custom action "{name}": {exc}')
        return ActionResult.ok(f"Executed custom action: {name}")

    async def display_name(self, action_id: str) -> str:
        try:
            action = await self._store.find(action_id)
        except Exception as exc:
            _LOGGER.debug("Custom action name lookup failed for %s: %s", action_id, exc)
            return action_id
        return action.name if action is not None else action_id

    async def _load_fonts(self, nodes: Optional[Iterable[Any]] = None) -> None:
        await load_fonts(self._host, nodes)
