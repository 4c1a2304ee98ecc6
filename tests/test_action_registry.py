from __future__ import annotations

import pytest

from shortcut_plugin import action_registry
from shortcut_plugin.handlers import BUILTIN_HANDLERS


def test_action_ids_are_unique_across_categories():
    ids = [descriptor.id for descriptor in action_registry.descriptors()]
    assert len(ids) == len(set(ids))


def test_every_builtin_has_a_handler_and_vice_versa():
    ids = {descriptor.id for descriptor in action_registry.descriptors()}
    assert ids == set(BUILTIN_HANDLERS)


def test_no_builtin_uses_custom_prefix():
    assert not any(action_registry.is_custom_id(d.id) for d in action_registry.descriptors())


def test_resolve_label():
    assert action_registry.resolve_label("alignLeft") == "Align Left"
    assert action_registry.resolve_label("flattenSelection") == "Flatten Selection"
    assert action_registry.resolve_label("doesNotExist") is None
    assert action_registry.is_builtin("radiusFull")
    assert not action_registry.is_builtin("custom_123")


def test_catalog_is_a_detached_copy():
    catalog = action_registry.catalog()
    catalog["Alignment"]["alignLeft"] = "Changed"
    assert action_registry.resolve_label("alignLeft") == "Align Left"
    assert list(catalog)[0] == "Alignment"


def test_default_actions_are_read_only():
    with pytest.raises(TypeError):
        action_registry.DEFAULT_ACTIONS["Alignment"]["alignLeft"] = "Changed"  # type: ignore[index]


def test_freeze_rejects_duplicates_and_reserved_prefix():
    with pytest.raises(ValueError):
        action_registry._freeze({"A": {"x": "X"}, "B": {"x": "Also X"}})
    with pytest.raises(ValueError):
        action_registry._freeze({"A": {"custom_x": "X"}})
