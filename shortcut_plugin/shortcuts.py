"""Keyboard shortcut bindings persisted alongside the actions they trigger."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

_LOGGER = logging.getLogger("ShortcutActions.Shortcuts")

MODIFIER_ORDER = ("ctrl", "alt", "shift", "meta")
_MODIFIER_ALIASES = {
    "control": "ctrl",
    "ctl": "ctrl",
    "option": "alt",
    "opt": "alt",
    "cmd": "meta",
    "command": "meta",
    "super": "meta",
    "win": "meta",
}


@dataclass(frozen=True)
class ShortcutBinding:
    """A key plus an ordered, de-duplicated set of modifiers."""

    key: str
    modifiers: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, raw: Any) -> "ShortcutBinding":
        """Accept ``"Alt+Shift+L"`` strings or ``{"key", "modifiers"}`` mappings."""

        if isinstance(raw, ShortcutBinding):
            return raw
        if isinstance(raw, str):
            tokens = [token.strip() for token in raw.split("+")]
            if len(tokens) > 1 and not tokens[-1] and not tokens[-2]:
                # "Ctrl++" binds the plus key itself.
                tokens = tokens[:-2] + ["+"]
            key = tokens[-1] if tokens else ""
            modifiers = tokens[:-1]
        elif isinstance(raw, Mapping):
            key = raw.get("key")
            modifiers = raw.get("modifiers") or []
            if not isinstance(modifiers, (list, tuple)):
                raise ValueError(f"Shortcut modifiers must be a list, got {modifiers!r}")
        else:
            raise ValueError(f"Unsupported shortcut value {raw!r}")
        if not isinstance(key, str) or not key.strip():
            raise ValueError("Shortcut key cannot be empty")
        return cls(key=_normalize_key(key), modifiers=_normalize_modifiers(modifiers))

    def to_payload(self) -> Dict[str, Any]:
        return {"key": self.key, "modifiers": list(self.modifiers)}

    def __str__(self) -> str:
        parts = [modifier.capitalize() for modifier in self.modifiers]
        parts.append(self.key)
        return "+".join(parts)


def _normalize_key(key: str) -> str:
    token = key.strip()
    return token.upper() if len(token) == 1 else token.capitalize()


def _normalize_modifiers(modifiers: Any) -> Tuple[str, ...]:
    seen = set()
    for modifier in modifiers:
        if not isinstance(modifier, str):
            raise ValueError(f"Shortcut modifier must be a string, got {modifier!r}")
        token = modifier.strip().lower()
        token = _MODIFIER_ALIASES.get(token, token)
        if token not in MODIFIER_ORDER:
            raise ValueError(f"Unknown shortcut modifier '{modifier}'")
        seen.add(token)
    return tuple(name for name in MODIFIER_ORDER if name in seen)


def parse_shortcut_map(raw: Any) -> Dict[str, ShortcutBinding]:
    """Parse the stored ``action id -> binding`` map, skipping invalid entries."""

    bindings: Dict[str, ShortcutBinding] = {}
    if not isinstance(raw, Mapping):
        return bindings
    for action_id, value in raw.items():
        if value in (None, "", {}):
            continue
        try:
            bindings[str(action_id)] = ShortcutBinding.parse(value)
        except ValueError as exc:
            _LOGGER.warning("Skipping invalid shortcut for %s: %s", action_id, exc)
    return bindings


def find_conflicts(bindings: Mapping[str, ShortcutBinding]) -> Dict[ShortcutBinding, List[str]]:
    """Bindings claimed by more than one action."""

    owners: Dict[ShortcutBinding, List[str]] = {}
    for action_id, binding in bindings.items():
        owners.setdefault(binding, []).append(action_id)
    return {binding: ids for binding, ids in owners.items() if len(ids) > 1}


def action_for(bindings: Mapping[str, ShortcutBinding], pressed: Any) -> Optional[str]:
    """Return the action bound to ``pressed``; the first owner wins on conflict."""

    try:
        target = ShortcutBinding.parse(pressed)
    except ValueError:
        return None
    for action_id, binding in bindings.items():
        if binding == target:
            return action_id
    return None
