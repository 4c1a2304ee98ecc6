"""Core of the Shortcut Actions plugin: action catalog, dispatch and custom actions."""

from .action_registry import DEFAULT_ACTIONS, resolve_label
from .custom_actions import CustomActionSandbox, CustomActionStore, SecurityViolation
from .dispatcher import ActionDispatcher
from .results import ActionResult
from .ui_messages import UiMessageRouter

__all__ = [
    "DEFAULT_ACTIONS",
    "ActionDispatcher",
    "ActionResult",
    "CustomActionSandbox",
    "CustomActionStore",
    "SecurityViolation",
    "UiMessageRouter",
    "resolve_label",
]
