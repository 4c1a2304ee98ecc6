"""Capability checks guarding every mutation of a host element.

Selections routinely mix element kinds (frames, text, vectors, instances), and
each kind supports a different subset of properties. Handlers therefore never
touch an element directly; they hand a body to :func:`try_with_capabilities`,
which runs it only when the element advertises everything the body needs.

An element advertises support through a ``capabilities`` collection of names.
Handles that do not carry one are probed by attribute presence so plain host
objects keep working.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Iterable

_LOGGER = logging.getLogger("ShortcutActions.Capabilities")


def element_supports(element: Any, capability: str) -> bool:
    """Return ``True`` when ``element`` exposes ``capability``."""

    advertised = getattr(element, "capabilities", None)
    if advertised is not None:
        return capability in advertised
    return hasattr(element, capability)


def has_capabilities(element: Any, required: Iterable[str]) -> bool:
    return all(element_supports(element, name) for name in required)


def try_with_capabilities(element: Any, required: Iterable[str], body: Callable[[Any], None]) -> None:
    """Invoke ``body(element)`` when every required capability is present.

    A missing capability is a silent no-op. Exceptions raised by ``body`` are
    logged and swallowed so one failing element never aborts the batch.
    """

    try:
        if not has_capabilities(element, required):
            return
        body(element)
    except Exception as exc:
        _LOGGER.warning("Skipping %s: %s", _describe(element), exc, exc_info=exc)


async def try_with_capabilities_async(
    element: Any,
    required: Iterable[str],
    body: Callable[[Any], Awaitable[None]],
) -> None:
    """Awaitable twin of :func:`try_with_capabilities` for bodies that suspend."""

    try:
        if not has_capabilities(element, required):
            return
        await body(element)
    except Exception as exc:
        _LOGGER.warning("Skipping %s: %s", _describe(element), exc, exc_info=exc)


def _describe(element: Any) -> str:
    name = getattr(element, "name", None)
    kind = getattr(element, "type", None) or type(element).__name__
    if name:
        return f"{kind} '{name}'"
    return str(kind)
