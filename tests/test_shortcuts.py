from __future__ import annotations

import logging

import pytest

from shortcut_plugin.shortcuts import ShortcutBinding, action_for, find_conflicts, parse_shortcut_map


def test_parse_string_normalises_modifiers():
    binding = ShortcutBinding.parse("shift+Alt+l")
    assert binding == ShortcutBinding("L", ("alt", "shift"))
    assert str(binding) == "Alt+Shift+L"


def test_parse_aliases_and_named_keys():
    assert ShortcutBinding.parse("Cmd+Option+enter") == ShortcutBinding("Enter", ("alt", "meta"))
    assert ShortcutBinding.parse({"key": "k", "modifiers": ["Control"]}) == ShortcutBinding("K", ("ctrl",))


def test_parse_plus_key():
    assert ShortcutBinding.parse("Ctrl++") == ShortcutBinding("+", ("ctrl",))


@pytest.mark.parametrize("raw", ["", "Alt+", "Hyper+K", 12, {"key": "K", "modifiers": "alt"}])
def test_parse_rejects_invalid(raw):
    with pytest.raises(ValueError):
        ShortcutBinding.parse(raw)


def test_payload_round_trip():
    binding = ShortcutBinding("F2", ("ctrl", "shift"))
    assert binding.to_payload() == {"key": "F2", "modifiers": ["ctrl", "shift"]}
    assert ShortcutBinding.parse(binding.to_payload()) == binding


def test_parse_map_skips_invalid_entries(caplog):
    with caplog.at_level(logging.WARNING, logger="ShortcutActions.Shortcuts"):
        bindings = parse_shortcut_map({"alignLeft": "Alt+A", "gap8": "Hyper+8", "radius0": "", "tidyUp": None})
    assert bindings == {"alignLeft": ShortcutBinding("A", ("alt",))}
    assert "gap8" in caplog.text
    assert parse_shortcut_map(["not", "a", "map"]) == {}


def test_conflicts_and_lookup():
    bindings = parse_shortcut_map({"alignLeft": "Alt+A", "custom_1": "alt+a", "gap8": "Ctrl+8"})
    conflicts = find_conflicts(bindings)
    assert conflicts == {ShortcutBinding("A", ("alt",)): ["alignLeft", "custom_1"]}
    assert action_for(bindings, "Alt+A") == "alignLeft"
    assert action_for(bindings, {"key": "8", "modifiers": ["ctrl"]}) == "gap8"
    assert action_for(bindings, "Shift+Z") is None
    assert action_for(bindings, "") is None
