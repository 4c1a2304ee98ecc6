"""Catalog of built-in actions, grouped by category."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

CUSTOM_PREFIX = "custom_"


@dataclass(frozen=True)
class ActionDescriptor:
    id: str
    label: str
    category: str


_DEFAULT_ACTIONS: Dict[str, Dict[str, str]] = {
    "Alignment": {
        "alignLeft": "Align Left",
        "alignRight": "Align Right",
        "alignTop": "Align Top",
        "alignBottom": "Align Bottom",
        "alignHorizontalCenter": "Align Horizontal Center",
        "alignVerticalCenter": "Align Vertical Center",
        "distributeHorizontal": "Distribute Horizontally",
        "distributeVertical": "Distribute Vertically",
    },
    "Auto-layout & Spacing": {
        "layoutHorizontal": "Apply Auto-layout Horizontal",
        "layoutVertical": "Apply Auto-layout Vertical",
        "tidyUp": "Tidy Up",
        "gap0": "Set Gap 0",
        "gap8": "Set Gap 8",
        "gap16": "Set Gap 16",
        "paddingUniform8": "Padding 8",
        "spaceBetween": "Space Between",
        "justifyContentStart": "Justify Content Start",
        "justifyContentCenter": "Justify Content Center",
        "justifyContentEnd": "Justify Content End",
        "alignItemsStart": "Align Items Start",
        "alignItemsCenter": "Align Items Center",
        "alignItemsEnd": "Align Items End",
        "placeItemsCenter": "Place Items Center",
    },
    "Sizing": {
        "fullWidth": "Full Width",
        "fullHeight": "Full Height",
        "widthHug": "Width Hug",
        "widthFill": "Width Fill",
        "widthFixed": "Width Fixed",
        "heightHug": "Height Hug",
        "heightFill": "Height Fill",
        "heightFixed": "Height Fixed",
    },
    "Corner & Radius": {
        "radius0": "Radius 0",
        "radius4": "Radius 4",
        "radius8": "Radius 8",
        "radius16": "Radius 16",
        "radiusFull": "Radius Full",
        "cornerSmoothingIos": "iOS Corner Smoothing",
    },
    "Border & Stroke": {
        "strokeAlignInside": "Stroke Align Inside",
        "strokeAlignCenter": "Stroke Align Center",
        "strokeAlignOutside": "Stroke Align Outside",
        "borderBox": "Border Box",
        "contentBox": "Content Box",
        "swapFillStroke": "Swap Fill/Stroke",
        "removeFill": "Remove Fill",
        "removeStroke": "Remove Stroke",
        "strokeWidthHalf": "Stroke 0.5px",
    },
    "Text": {
        "fontSizeIncrease": "Font Size +1",
        "fontSizeDecrease": "Font Size -1",
        "letterSpacingIncrease": "Letter Spacing +1",
        "letterSpacingDecrease": "Letter Spacing -1",
        "lineHeightIncrease": "Line Height +1",
        "lineHeightDecrease": "Line Height -1",
        "textAlignLeft": "Text Align Left",
        "textAlignCenter": "Text Align Center",
        "textAlignRight": "Text Align Right",
        "textAlignJustify": "Text Align Justify",
    },
    "Components": {
        "createComponent": "Create Component",
        "createComponentForEach": "Create Component For Each",
        "convertInstanceToComponent": "Convert Instance to Component",
        "detachInstance": "Detach Instance",
        "resetInstance": "Reset Instance",
    },
    "Positioning": {
        "absolute": "Set Absolute Position",
        "relative": "Set Relative Position",
        "flipHorizontal": "Flip Horizontal",
        "flipVertical": "Flip Vertical",
    },
    "Boolean & Vector": {
        "booleanUnion": "Union Selection",
        "booleanSubtract": "Subtract Selection",
        "booleanIntersect": "Intersect Selection",
        "booleanExclude": "Exclude Selection",
        "outlineStroke": "Outline Stroke",
        "flattenSelection": "Flatten Selection",
    },
}


def _freeze(actions: Dict[str, Dict[str, str]]) -> Mapping[str, Mapping[str, str]]:
    seen: Dict[str, str] = {}
    frozen: Dict[str, Mapping[str, str]] = {}
    for category, entries in actions.items():
        for action_id in entries:
            if action_id in seen:
                raise ValueError(f"Action id '{action_id}' is defined in both '{seen[action_id]}' and '{category}'")
            if action_id.startswith(CUSTOM_PREFIX):
                raise ValueError(f"Built-in action id '{action_id}' uses the reserved custom prefix")
            seen[action_id] = category
        frozen[category] = MappingProxyType(dict(entries))
    return MappingProxyType(frozen)


DEFAULT_ACTIONS: Mapping[str, Mapping[str, str]] = _freeze(_DEFAULT_ACTIONS)


def resolve_label(action_id: str) -> Optional[str]:
    """Return the label of a built-in action, or ``None`` when unknown."""

    for entries in DEFAULT_ACTIONS.values():
        label = entries.get(action_id)
        if label is not None:
            return label
    return None


def is_builtin(action_id: str) -> bool:
    return resolve_label(action_id) is not None


def is_custom_id(action_id: str) -> bool:
    return action_id.startswith(CUSTOM_PREFIX)


def descriptors() -> Iterator[ActionDescriptor]:
    for category, entries in DEFAULT_ACTIONS.items():
        for action_id, label in entries.items():
            yield ActionDescriptor(id=action_id, label=label, category=category)


def catalog() -> Dict[str, Dict[str, str]]:
    """Plain-dict copy of the catalog, safe to serialise for the UI."""

    return {category: dict(entries) for category, entries in DEFAULT_ACTIONS.items()}
