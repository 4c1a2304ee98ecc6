"""Font preloading for text mutations."""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

from .host import TEXT_TYPE

_LOGGER = logging.getLogger("ShortcutActions.Fonts")


def _font_key(font: Mapping[str, str]) -> tuple[str, str]:
    return (str(font.get("family", "")), str(font.get("style", "")))


def _is_font(value: Any) -> bool:
    return isinstance(value, Mapping) and "family" in value


def collect_fonts(nodes: Iterable[Any]) -> List[Mapping[str, str]]:
    """Unique fonts used by the text nodes in ``nodes``, in first-seen order.

    Rich text is walked one character at a time so every styled range is
    included; ranges the host cannot resolve are skipped.
    """

    fonts: List[Mapping[str, str]] = []
    seen: set[tuple[str, str]] = set()

    def _add(font: Any) -> None:
        if not _is_font(font):
            return
        key = _font_key(font)
        if key not in seen:
            seen.add(key)
            fonts.append(font)

    for node in nodes:
        if getattr(node, "type", None) != TEXT_TYPE:
            continue
        _add(getattr(node, "font_name", None))
        range_font = getattr(node, "get_range_font_name", None)
        if not callable(range_font):
            continue
        characters = getattr(node, "characters", "") or ""
        for index in range(len(characters)):
            try:
                _add(range_font(index, index + 1))
            except Exception:
                continue
    return fonts


async def load_fonts(host: Any, nodes: Optional[Iterable[Any]] = None) -> None:
    """Load every font used by ``nodes`` (default: the current selection)."""

    targets = list(host.selection if nodes is None else nodes)
    fonts = collect_fonts(targets)
    for font in fonts:
        await host.load_font_async(font)
    if fonts:
        _LOGGER.debug("Loaded %d font(s) for %d node(s)", len(fonts), len(targets))
