from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from shortcut_plugin.action_registry import catalog
from shortcut_plugin.custom_actions import CustomActionSandbox, CustomActionStore
from shortcut_plugin.dispatcher import ActionDispatcher
from shortcut_plugin.mock_document import FrameNode, MockDocument, RectangleNode
from shortcut_plugin.preferences import Preferences
from shortcut_plugin.storage import CUSTOM_ACTIONS_KEY, SHORTCUTS_KEY, MemoryStorage
from shortcut_plugin.ui_messages import UiMessageRouter


class Harness:
    def __init__(self, document=None, storage=None, preferences=None):
        self.document = document or MockDocument()
        self.storage = storage or MemoryStorage()
        self.posted = []
        sandbox = CustomActionSandbox(self.document, CustomActionStore(self.storage))
        self.router = UiMessageRouter(
            self.document,
            ActionDispatcher(self.document, sandbox),
            self.storage,
            post_message=self.posted.append,
            preferences=preferences,
        )

    def send(self, message):
        return asyncio.run(self.router.handle(message))


def test_close_and_cancel_close_plugin():
    for message_type in ("close-plugin", "cancel"):
        harness = Harness()
        assert harness.send({"type": message_type}) is True
        assert harness.document.closed is True


def test_unknown_or_malformed_messages_are_ignored():
    harness = Harness()
    assert harness.send({"type": "mystery"}) is False
    assert harness.send({"no": "type"}) is False
    assert harness.send(["not", "a", "dict"]) is False
    assert harness.posted == []


def test_load_data_posts_stored_values_and_catalog():
    storage = MemoryStorage({SHORTCUTS_KEY: {"alignLeft": "Alt+A"}, CUSTOM_ACTIONS_KEY: [{"id": "custom_1"}]})
    harness = Harness(storage=storage)
    harness.send({"type": "load-data"})
    assert harness.posted == [
        {
            "type": "data-loaded",
            "shortcuts": {"alignLeft": "Alt+A"},
            "customActions": [{"id": "custom_1"}],
            "defaultActions": catalog(),
        }
    ]


def test_load_data_defaults_when_empty():
    harness = Harness()
    harness.send({"type": "load-data"})
    (message,) = harness.posted
    assert message["shortcuts"] == {}
    assert message["customActions"] == []


def test_save_data_stores_both_collections(caplog):
    harness = Harness()
    shortcuts = {"alignLeft": "Alt+A", "custom_1": "Alt+A"}
    actions = [{"id": "custom_1", "name": "Nudge", "function": "pass"}]

    with caplog.at_level(logging.WARNING, logger="ShortcutActions.UI"):
        harness.send({"type": "save-data", "shortcuts": shortcuts, "customActions": actions})

    assert asyncio.run(harness.storage.get_async(SHORTCUTS_KEY)) == shortcuts
    assert asyncio.run(harness.storage.get_async(CUSTOM_ACTIONS_KEY)) == actions
    assert "bound to several actions" in caplog.text


def test_save_data_rejects_non_object_shortcuts(caplog):
    storage = MemoryStorage({SHORTCUTS_KEY: {"gap8": "Ctrl+8"}})
    harness = Harness(storage=storage)

    with caplog.at_level(logging.WARNING, logger="ShortcutActions.UI"):
        handled = harness.send(
            {
                "type": "save-data",
                "shortcuts": 5,
                "customActions": [{"id": "custom_1", "name": "Nudge", "function": "pass"}],
            }
        )

    assert handled is True
    assert "shortcuts must be an object" in caplog.text
    assert asyncio.run(storage.get_async(SHORTCUTS_KEY)) == {"gap8": "Ctrl+8"}
    assert asyncio.run(storage.get_async(CUSTOM_ACTIONS_KEY)) is None


def test_save_data_security_violation_stores_nothing():
    storage = MemoryStorage({SHORTCUTS_KEY: {"gap8": "Ctrl+8"}})
    harness = Harness(storage=storage)
    harness.send(
        {
            "type": "save-data",
            "shortcuts": {"alignLeft": "Alt+A"},
            "customActions": [{"id": "custom_1", "name": "Bad", "function": "figma.ui.postMessage(1)"}],
        }
    )
    assert harness.document.notifications == ["Security violation: postMessage is not allowed"]
    assert asyncio.run(storage.get_async(SHORTCUTS_KEY)) == {"gap8": "Ctrl+8"}
    assert asyncio.run(storage.get_async(CUSTOM_ACTIONS_KEY)) is None


def test_shortcut_triggered_posts_result_notifies_and_closes():
    harness = Harness()
    harness.document.add(RectangleNode("A"), select=True)

    harness.send({"type": "shortcut-triggered", "action": "radius8"})

    assert harness.posted == [{"type": "shortcut-result", "success": True, "message": "Applied Radius 8"}]
    assert harness.document.notifications == ["Applied Radius 8"]
    assert harness.document.closed is True


def test_shortcut_triggered_failure_keeps_plugin_open():
    harness = Harness()
    harness.send({"type": "shortcut-triggered", "action": "radius8"})
    assert harness.posted == [{"type": "shortcut-result", "success": False, "message": "No layers selected"}]
    assert harness.document.closed is False


def test_close_plugin_flag_and_preference(tmp_path: Path):
    harness = Harness()
    harness.document.add(RectangleNode("A"), select=True)
    harness.send({"type": "shortcut-triggered", "action": "radius8", "closePlugin": False})
    assert harness.document.closed is False

    prefs = Preferences(tmp_path, env={})
    prefs.close_after_run = False
    harness = Harness(preferences=prefs)
    harness.document.add(RectangleNode("A"), select=True)
    harness.send({"type": "shortcut-triggered", "action": "radius8"})
    assert harness.document.closed is False


def test_not_supported_errors_are_rewritten_with_environment():
    async def _unsupported(_host):
        raise RuntimeError("createComponent is not supported in this editor")

    document = MockDocument(editor_type="whiteboard")
    document.add(RectangleNode("A"), select=True)
    harness = Harness(document=document)
    harness.router._dispatcher._handlers["createComponent"] = _unsupported

    harness.send({"type": "shortcut-triggered", "action": "createComponent"})

    expected = "error-Create Component action not supported in Whiteboard"
    assert harness.posted == [{"type": "shortcut-result", "success": False, "message": expected}]
    assert document.notifications == [expected]


def test_trigger_custom_action_by_id():
    storage = MemoryStorage({CUSTOM_ACTIONS_KEY: [{"id": "custom_9", "name": "Hello", "function": "host.notify('hi')"}]})
    harness = Harness(storage=storage)
    result = asyncio.run(harness.router.trigger("custom_9", close_plugin=False))
    assert result.success is True
    assert harness.document.notifications == ["hi", "Executed custom action: Hello"]


def test_test_run_reports_result():
    harness = Harness()
    node = harness.document.add(FrameNode("F", x=3), select=True)
    harness.send({"type": "test-run-custom-action", "functionCode": "selection[0].x = 42"})
    assert node.x == 42
    assert harness.posted == [{"type": "test-run-result", "success": True, "message": "Executed custom action: Test run"}]
    assert harness.document.closed is False


def test_test_run_without_code():
    harness = Harness()
    harness.send({"type": "test-run-custom-action"})
    assert harness.posted == [{"type": "test-run-result", "success": False, "message": "No function code provided"}]


def test_notifications():
    harness = Harness()
    harness.send({"type": "notify", "message": "Hello"})
    harness.send({"type": "notify"})
    harness.send({"type": "shortcut-set-success", "actionName": "Align Left"})
    harness.send({"type": "custom-action-added", "action": {"name": "Nudge"}})
    harness.send({"type": "custom-action-added", "action": {"name": "Nudge"}, "update": True})
    assert harness.document.notifications == [
        "Hello",
        "Successfully set shortcut for Align Left",
        'Custom action "Nudge" added',
        'Custom action "Nudge" updated',
    ]


def test_resize_clamps_and_defaults(tmp_path: Path):
    harness = Harness()
    harness.send({"type": "resize", "size": {"w": 200, "h": 900}})
    assert harness.document.ui_size == (320, 900)
    harness.send({"type": "resize"})
    assert harness.document.ui_size == (320, 450)

    prefs = Preferences(tmp_path, env={})
    prefs.window_width = 640
    harness = Harness(preferences=prefs)
    harness.send({"type": "resize"})
    assert harness.document.ui_size == (640, 450)
