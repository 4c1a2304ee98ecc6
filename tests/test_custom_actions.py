from __future__ import annotations

import asyncio

import pytest

from shortcut_plugin.custom_actions import (
    CustomAction,
    CustomActionSandbox,
    CustomActionStore,
    SecurityViolation,
    compile_custom_action,
    find_violation,
    validate_sources,
)
from shortcut_plugin.mock_document import MockDocument, RectangleNode, TextNode
from shortcut_plugin.storage import CUSTOM_ACTIONS_KEY, MemoryStorage


def _sandbox(document=None, storage=None):
    document = document or MockDocument()
    storage = storage or MemoryStorage()
    return CustomActionSandbox(document, CustomActionStore(storage)), document, storage


def test_find_violation_matches_both_spellings():
    assert find_violation("host.post_message({})") == "post_message"
    assert find_violation("figma.ui.postMessage(1)") == "postMessage"
    assert find_violation("host.notify('hi')") is None


def test_save_rejects_whole_batch_on_violation():
    storage = MemoryStorage({CUSTOM_ACTIONS_KEY: [{"id": "custom_old", "name": "Old", "function": "pass"}]})
    store = CustomActionStore(storage)
    batch = [
        {"id": "custom_a", "name": "Fine", "function": "pass"},
        {"id": "custom_b", "name": "Leaky", "function": "host.post_message('x')"},
    ]

    with pytest.raises(SecurityViolation) as excinfo:
        asyncio.run(store.save(batch))

    assert excinfo.value.token == "post_message"
    stored = asyncio.run(storage.get_async(CUSTOM_ACTIONS_KEY))
    assert [entry["id"] for entry in stored] == ["custom_old"]


def test_save_replaces_collection():
    storage = MemoryStorage()
    store = CustomActionStore(storage)
    action = CustomAction(id="custom_1", name="One", function="pass", extras={"createdAt": 1})
    asyncio.run(store.save([action, {"id": "custom_2", "name": "Two", "function": "pass"}]))

    loaded = asyncio.run(store.load())
    assert [a.id for a in loaded] == ["custom_1", "custom_2"]
    assert loaded[0].extras == {"createdAt": 1}
    assert asyncio.run(store.find("custom_2")).name == "Two"
    assert asyncio.run(store.find("custom_3")) is None


def test_load_skips_malformed_entries():
    storage = MemoryStorage({CUSTOM_ACTIONS_KEY: ["junk", {"name": "no id"}, {"id": "custom_ok", "function": "pass"}]})
    loaded = asyncio.run(CustomActionStore(storage).load())
    assert [(a.id, a.name) for a in loaded] == [("custom_ok", "custom_ok")]


def test_validate_sources_accepts_objects_and_dicts():
    validate_sources([CustomAction("custom_1", "A", "pass"), {"function": "x = 1"}, {"function": None}])
    with pytest.raises(SecurityViolation):
        validate_sources([CustomAction("custom_2", "B", "postMessage")])


def test_run_rejects_denylisted_source_before_running():
    sandbox, document, _ = _sandbox()
    node = document.add(RectangleNode("A", x=1), select=True)

    result = asyncio.run(sandbox.run_custom_action_code("selection[0].x = 99\nhost.post_message({})"))

    assert result.success is False
    assert result.message == "Security violation: post_message is not allowed in custom actions"
    assert node.x == 1


def test_run_executes_against_current_selection():
    storage = MemoryStorage({CUSTOM_ACTIONS_KEY: [{"id": "custom_w", "name": "Widen", "function": "for n in selection:\n    n.resize(n.width * 2, n.height)"}]})
    sandbox, document, _ = _sandbox(storage=storage)
    first = document.add(RectangleNode("A", width=10), select=True)

    assert asyncio.run(sandbox.run_custom_action_by_id("custom_w")).success
    document.selection = [document.add(RectangleNode("B", width=3))]
    result = asyncio.run(sandbox.run_custom_action_by_id("custom_w"))

    assert result.message == "Executed custom action: Widen"
    assert first.width == 20
    assert document.selection[0].width == 6


def test_run_can_await_and_load_fonts():
    sandbox, document, _ = _sandbox()
    text = document.add(TextNode("Hello"), select=True)
    source = "await load_fonts()\nfor n in selection:\n    n.font_size = 30\nhost.notify('done')"

    result = asyncio.run(sandbox.run_custom_action_code(source))

    assert result.success
    assert result.message == "Executed custom action: Test run"
    assert text.font_size == 30
    assert document.loaded_fonts == [{"family": "Inter", "style": "Regular"}]
    assert document.notifications == ["done"]


def test_errors_are_wrapped_with_action_name():
    sandbox, _, _ = _sandbox()
    result = asyncio.run(sandbox.run_custom_action_code("raise ValueError('nope')", name="Broken"))
    assert result.success is False
    assert result.message == 'Error executing custom action "Broken": Custom action execution failed: nope'


def test_syntax_errors_are_reported():
    sandbox, _, _ = _sandbox()
    result = asyncio.run(sandbox.run_custom_action_code("def (:"))
    assert result.success is False
    assert result.message.startswith('Error executing custom action "Test run": ')
    assert "Custom action execution failed" not in result.message


def test_empty_source_runs_as_noop():
    entry = compile_custom_action("")
    assert asyncio.run(entry(None, [], None)) is None


def test_source_with_return_value_still_succeeds():
    sandbox, _, _ = _sandbox()
    result = asyncio.run(sandbox.run_custom_action_code("return len(selection)"))
    assert (result.success, result.message) == (True, "Executed custom action: Test run")


def test_generator_source_reports_execution_failure():
    sandbox, _, _ = _sandbox()
    result = asyncio.run(sandbox.run_custom_action_code("yield 1"))
    assert result.success is False
    assert "Custom action execution failed" in result.message
    assert "return" not in result.message


def test_lookup_failure_is_reported():
    class BrokenStorage:
        async def get_async(self, key):
            raise OSError("disk unplugged")

        async def set_async(self, key, value):
            raise AssertionError("not used")

    sandbox = CustomActionSandbox(MockDocument(), CustomActionStore(BrokenStorage()))
    result = asyncio.run(sandbox.run_custom_action_by_id("custom_x"))
    assert (result.success, result.message) == (False, "Error loading custom action: disk unplugged")
