from __future__ import annotations

import asyncio
import logging

from shortcut_plugin.capabilities import (
    element_supports,
    has_capabilities,
    try_with_capabilities,
    try_with_capabilities_async,
)


class Advertised:
    capabilities = frozenset({"fills", "name"})
    name = "Shape"
    type = "RECTANGLE"
    width = 10  # present but not advertised


class Plain:
    def __init__(self) -> None:
        self.fills = []


def test_advertised_capabilities_win_over_attributes():
    node = Advertised()
    assert element_supports(node, "fills")
    assert not element_supports(node, "width")


def test_plain_handles_fall_back_to_attributes():
    node = Plain()
    assert element_supports(node, "fills")
    assert not element_supports(node, "strokes")
    assert has_capabilities(node, ["fills"])
    assert not has_capabilities(node, ["fills", "strokes"])


def test_missing_capability_skips_body():
    calls = []
    try_with_capabilities(Plain(), ("strokes",), calls.append)
    assert calls == []


def test_body_runs_when_supported():
    node = Plain()
    try_with_capabilities(node, ("fills",), lambda n: n.fills.append("red"))
    assert node.fills == ["red"]


def test_body_errors_are_logged_and_swallowed(caplog):
    def _boom(_node):
        raise RuntimeError("read-only property")

    with caplog.at_level(logging.WARNING, logger="ShortcutActions.Capabilities"):
        try_with_capabilities(Advertised(), ("fills",), _boom)

    assert "RECTANGLE 'Shape'" in caplog.text
    assert "read-only property" in caplog.text


def test_async_variant_guards_and_swallows():
    seen = []

    async def _record(node):
        seen.append(node)

    async def _fail(_node):
        raise ValueError("font not loaded")

    node = Plain()
    asyncio.run(try_with_capabilities_async(node, ("fills",), _record))
    asyncio.run(try_with_capabilities_async(node, ("strokes",), _record))
    asyncio.run(try_with_capabilities_async(node, ("fills",), _fail))
    assert seen == [node]
