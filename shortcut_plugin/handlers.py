"""Built-in action implementations.

Every handler is a coroutine taking the host document. Per-element handlers
feed each selected element through the capability guard; selection-level
handlers compute new positions with :mod:`shortcut_plugin.geometry` first and
then apply them.
"""
from __future__ import annotations

import logging
from functools import partial
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from . import geometry
from .capabilities import element_supports, try_with_capabilities, try_with_capabilities_async
from .fonts import load_fonts
from .geometry import HORIZONTAL, VERTICAL, Box
from .host import (
    COMPONENT_TYPES,
    INSTANCE_TYPE,
    LAYOUT_HORIZONTAL,
    LAYOUT_NONE,
    LAYOUT_VERTICAL,
    TEXT_TYPE,
    in_auto_layout,
)

_LOGGER = logging.getLogger("ShortcutActions.Handlers")

Handler = Callable[[Any], Awaitable[None]]

_COORDINATE = {HORIZONTAL: "x", VERTICAL: "y"}
_SIZE = {HORIZONTAL: "width", VERTICAL: "height"}
_SIZING = {HORIZONTAL: "layout_sizing_horizontal", VERTICAL: "layout_sizing_vertical"}

FULL_RADIUS = 999999
IOS_CORNER_SMOOTHING = 0.6
BOOLEAN_MIN_SELECTION = 2


def _selection(host: Any) -> List[Any]:
    return list(host.selection)


def _each(host: Any, required: tuple[str, ...], body: Callable[[Any], None]) -> None:
    for node in _selection(host):
        try_with_capabilities(node, required, body)


def _set_attr(name: str, value: Any) -> Callable[[Any], None]:
    def _apply(node: Any) -> None:
        setattr(node, name, value)

    return _apply


def _place(nodes: List[Any], axis: str, positions: List[float]) -> None:
    attr = _COORDINATE[axis]
    for node, value in zip(nodes, positions):
        try_with_capabilities(node, (attr,), _set_attr(attr, value))


# Alignment ----------------------------------------------------------------


async def align(host: Any, *, axis: str, edge: str) -> None:
    nodes = _selection(host)
    if not nodes:
        return
    boxes = [Box.of(node) for node in nodes]
    if edge == "start":
        targets = geometry.align_start(boxes, axis)
    elif edge == "end":
        targets = geometry.align_end(boxes, axis)
    else:
        targets = geometry.align_center(boxes, axis)
    _place(nodes, axis, targets)


async def distribute(host: Any, *, axis: str) -> None:
    nodes = _selection(host)
    placements = geometry.distribute([Box.of(node) for node in nodes], axis)
    attr = _COORDINATE[axis]
    for index, value in placements:
        try_with_capabilities(nodes[index], (attr,), _set_attr(attr, value))


async def tidy_up(host: Any) -> None:
    axis = geometry.tidy_axis([Box.of(node) for node in _selection(host)])
    if axis is None:
        return
    await distribute(host, axis=axis)


# Auto-layout & spacing ----------------------------------------------------


async def set_layout_direction(host: Any, *, mode: str) -> None:
    def _apply(node: Any) -> None:
        previous = node.layout_mode
        justify = getattr(node, "primary_axis_align_items", None)
        items = getattr(node, "counter_axis_align_items", None)
        node.layout_mode = mode
        # Rotating the main axis swaps which alignment reads as "justify".
        if previous != mode and justify is not None and items is not None:
            node.primary_axis_align_items = items
            node.counter_axis_align_items = justify

    _each(host, ("layout_mode",), _apply)


async def set_gap(host: Any, *, value: float) -> None:
    def _apply(node: Any) -> None:
        if node.layout_mode != LAYOUT_NONE:
            node.item_spacing = value

    _each(host, ("item_spacing", "layout_mode"), _apply)


async def set_uniform_padding(host: Any, *, value: float) -> None:
    def _apply(node: Any) -> None:
        if node.layout_mode == LAYOUT_NONE:
            return
        node.padding_left = value
        node.padding_right = value
        node.padding_top = value
        node.padding_bottom = value

    _each(host, ("padding_left", "padding_right", "padding_top", "padding_bottom", "layout_mode"), _apply)


async def set_primary_alignment(host: Any, *, value: str) -> None:
    _each(host, ("primary_axis_align_items",), _set_attr("primary_axis_align_items", value))


async def set_counter_alignment(host: Any, *, value: str) -> None:
    _each(host, ("counter_axis_align_items",), _set_attr("counter_axis_align_items", value))


async def place_items_center(host: Any) -> None:
    await set_primary_alignment(host, value="CENTER")
    await set_counter_alignment(host, value="CENTER")


# Sizing -------------------------------------------------------------------


def _fill_parent(node: Any, axis: str) -> None:
    parent = node.parent
    size_attr = _SIZE[axis]
    coord_attr = _COORDINATE[axis]

    def _stretch(target: Any) -> None:
        if axis == HORIZONTAL:
            target.resize(getattr(parent, size_attr), target.height)
        else:
            target.resize(target.width, getattr(parent, size_attr))
        setattr(target, coord_attr, 0)

    if in_auto_layout(node):
        def _apply(target: Any) -> None:
            if target.layout_positioning == "ABSOLUTE":
                if element_supports(parent, size_attr) and element_supports(target, "resize"):
                    _stretch(target)
            else:
                setattr(target, _SIZING[axis], "FILL")

        try_with_capabilities(node, ("layout_grow", "layout_align", "layout_positioning"), _apply)
    elif parent is not None and element_supports(parent, size_attr):
        try_with_capabilities(node, ("resize",), _stretch)


async def fill_parent(host: Any, *, axis: str) -> None:
    for node in _selection(host):
        _fill_parent(node, axis)


async def set_sizing(host: Any, *, axis: str, mode: str) -> None:
    _each(host, ("layout_grow", "layout_align"), _set_attr(_SIZING[axis], mode))


# Corner & stroke ----------------------------------------------------------


async def set_radius(host: Any, *, value: float) -> None:
    _each(host, ("corner_radius",), _set_attr("corner_radius", value))


async def set_corner_smoothing(host: Any, *, value: float) -> None:
    _each(host, ("corner_smoothing",), _set_attr("corner_smoothing", value))


async def set_stroke_align(host: Any, *, value: str) -> None:
    _each(host, ("stroke_align",), _set_attr("stroke_align", value))


async def set_strokes_in_layout(host: Any, *, value: bool) -> None:
    _each(host, ("strokes_included_in_layout",), _set_attr("strokes_included_in_layout", value))


async def swap_fill_stroke(host: Any) -> None:
    def _apply(node: Any) -> None:
        fills = node.fills
        node.fills = node.strokes
        node.strokes = fills

    _each(host, ("fills", "strokes"), _apply)


async def remove_paints(host: Any, *, attr: str) -> None:
    _each(host, (attr,), _set_attr(attr, []))


async def set_stroke_width(host: Any, *, width: float) -> None:
    def _apply(node: Any) -> None:
        node.strokes = [
            {
                "type": "SOLID",
                "color": {"r": 0, "g": 0, "b": 0},
                "opacity": 1,
                "width": width,
            }
        ]

    _each(host, ("strokes",), _apply)


# Text ---------------------------------------------------------------------


def _text_nodes(host: Any) -> List[Any]:
    return [node for node in _selection(host) if getattr(node, "type", None) == TEXT_TYPE]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _bump_pixels(current: Any, delta: float) -> Optional[Dict[str, Any]]:
    if _is_number(current):
        return {"value": current + delta, "unit": "PIXELS"}
    if isinstance(current, Mapping) and current.get("unit") == "PIXELS" and _is_number(current.get("value")):
        return {"value": current["value"] + delta, "unit": "PIXELS"}
    return None


async def _each_text(host: Any, required: tuple[str, ...], body: Callable[[Any], None]) -> None:
    async def _apply(node: Any) -> None:
        await load_fonts(host, [node])
        body(node)

    for node in _text_nodes(host):
        await try_with_capabilities_async(node, required, _apply)


async def adjust_font_size(host: Any, *, delta: float) -> None:
    def _apply(node: Any) -> None:
        if _is_number(node.font_size):
            node.font_size = node.font_size + delta

    await _each_text(host, ("font_name", "font_size"), _apply)


async def adjust_spacing(host: Any, *, attr: str, delta: float) -> None:
    def _apply(node: Any) -> None:
        bumped = _bump_pixels(getattr(node, attr), delta)
        if bumped is not None:
            setattr(node, attr, bumped)

    await _each_text(host, ("font_name", attr), _apply)


async def set_text_align(host: Any, *, value: str) -> None:
    await _each_text(host, ("font_name", "text_align_horizontal"), _set_attr("text_align_horizontal", value))


# Components ---------------------------------------------------------------


async def create_component(host: Any) -> None:
    nodes = _selection(host)
    if not nodes:
        return
    if len(nodes) == 1:
        node = nodes[0]
        component = host.create_component()
        component.resize(node.width, node.height)
        component.x = node.x
        component.y = node.y
        node.x = 0
        node.y = 0
        component.append_child(node)
    else:
        group = host.group(nodes, nodes[0].parent)
        component = host.create_component()
        component.resize(group.width, group.height)
        component.x = group.x
        component.y = group.y
        for child in list(group.children):
            component.append_child(child)
        group.remove()
    host.selection = [component]


async def create_component_for_each(host: Any) -> None:
    nodes = _selection(host)
    if not nodes:
        return
    created = []
    for node in nodes:
        component = host.create_component()
        component.resize(node.width, node.height)
        component.x = node.x
        component.y = node.y
        component.name = node.name
        clone = node.clone()
        clone.x = 0
        clone.y = 0
        component.append_child(clone)
        node.remove()
        created.append(component)
    host.selection = created


async def convert_instance_to_component(host: Any) -> None:
    created = []
    for node in _selection(host):
        if node.type in COMPONENT_TYPES:
            continue
        # Detaching invalidates the instance handle, so keep the name first.
        original_name = node.name
        if node.type == INSTANCE_TYPE:
            source = node.detach_instance()
            source.name = original_name
        else:
            source = node
        try:
            component = host.create_component_from_node(source)
        except Exception as exc:
            _LOGGER.debug("Host refused to convert '%s' into a component: %s", original_name, exc)
            continue
        component.name = original_name
        created.append(component)
    if created:
        host.selection = created


async def detach_instance(host: Any) -> None:
    detached: List[Any] = []

    def _apply(node: Any) -> None:
        if node.type == INSTANCE_TYPE:
            detached.append(node.detach_instance())

    _each(host, ("detach_instance",), _apply)
    if detached:
        host.selection = detached


async def reset_instance(host: Any) -> None:
    def _apply(node: Any) -> None:
        if node.type == INSTANCE_TYPE:
            node.reset_overrides()

    _each(host, ("reset_overrides",), _apply)


# Positioning --------------------------------------------------------------


async def set_positioning(host: Any, *, value: str) -> None:
    for node in _selection(host):
        if in_auto_layout(node):
            try_with_capabilities(node, ("layout_positioning",), _set_attr("layout_positioning", value))
        else:
            host.notify(f"{node.name} is not in an auto layout frame")


async def flip(host: Any, *, axis: str) -> None:
    size_attr = _SIZE[axis]

    def _apply(node: Any) -> None:
        node.relative_transform = geometry.flip_transform(node.relative_transform, getattr(node, size_attr), axis)

    _each(host, ("relative_transform", size_attr), _apply)


# Boolean & vector ---------------------------------------------------------


async def boolean_operation(host: Any, *, operation: str) -> None:
    nodes = _selection(host)
    if len(nodes) < BOOLEAN_MIN_SELECTION:
        return
    getattr(host, operation)(nodes, nodes[0].parent)


async def flatten_selection(host: Any) -> None:
    nodes = _selection(host)
    if len(nodes) < BOOLEAN_MIN_SELECTION:
        return
    host.flatten(nodes)


async def outline_stroke(host: Any) -> None:
    _each(host, ("outline_stroke",), lambda node: node.outline_stroke())


BUILTIN_HANDLERS: Mapping[str, Handler] = {
    "alignLeft": partial(align, axis=HORIZONTAL, edge="start"),
    "alignRight": partial(align, axis=HORIZONTAL, edge="end"),
    "alignTop": partial(align, axis=VERTICAL, edge="start"),
    "alignBottom": partial(align, axis=VERTICAL, edge="end"),
    "alignHorizontalCenter": partial(align, axis=HORIZONTAL, edge="center"),
    "alignVerticalCenter": partial(align, axis=VERTICAL, edge="center"),
    "distributeHorizontal": partial(distribute, axis=HORIZONTAL),
    "distributeVertical": partial(distribute, axis=VERTICAL),
    "layoutHorizontal": partial(set_layout_direction, mode=LAYOUT_HORIZONTAL),
    "layoutVertical": partial(set_layout_direction, mode=LAYOUT_VERTICAL),
    "tidyUp": tidy_up,
    "gap0": partial(set_gap, value=0),
    "gap8": partial(set_gap, value=8),
    "gap16": partial(set_gap, value=16),
    "paddingUniform8": partial(set_uniform_padding, value=8),
    "spaceBetween": partial(set_primary_alignment, value="SPACE_BETWEEN"),
    "justifyContentStart": partial(set_primary_alignment, value="MIN"),
    "justifyContentCenter": partial(set_primary_alignment, value="CENTER"),
    "justifyContentEnd": partial(set_primary_alignment, value="MAX"),
    "alignItemsStart": partial(set_counter_alignment, value="MIN"),
    "alignItemsCenter": partial(set_counter_alignment, value="CENTER"),
    "alignItemsEnd": partial(set_counter_alignment, value="MAX"),
    "placeItemsCenter": place_items_center,
    "fullWidth": partial(fill_parent, axis=HORIZONTAL),
    "fullHeight": partial(fill_parent, axis=VERTICAL),
    "widthHug": partial(set_sizing, axis=HORIZONTAL, mode="HUG"),
    "widthFill": partial(set_sizing, axis=HORIZONTAL, mode="FILL"),
    "widthFixed": partial(set_sizing, axis=HORIZONTAL, mode="FIXED"),
    "heightHug": partial(set_sizing, axis=VERTICAL, mode="HUG"),
    "heightFill": partial(set_sizing, axis=VERTICAL, mode="FILL"),
    "heightFixed": partial(set_sizing, axis=VERTICAL, mode="FIXED"),
    "radius0": partial(set_radius, value=0),
    "radius4": partial(set_radius, value=4),
    "radius8": partial(set_radius, value=8),
    "radius16": partial(set_radius, value=16),
    "radiusFull": partial(set_radius, value=FULL_RADIUS),
    "cornerSmoothingIos": partial(set_corner_smoothing, value=IOS_CORNER_SMOOTHING),
    "strokeAlignInside": partial(set_stroke_align, value="INSIDE"),
    "strokeAlignCenter": partial(set_stroke_align, value="CENTER"),
    "strokeAlignOutside": partial(set_stroke_align, value="OUTSIDE"),
    "borderBox": partial(set_strokes_in_layout, value=False),
    "contentBox": partial(set_strokes_in_layout, value=True),
    "swapFillStroke": swap_fill_stroke,
    "removeFill": partial(remove_paints, attr="fills"),
    "removeStroke": partial(remove_paints, attr="strokes"),
    "strokeWidthHalf": partial(set_stroke_width, width=0.5),
    "fontSizeIncrease": partial(adjust_font_size, delta=1),
    "fontSizeDecrease": partial(adjust_font_size, delta=-1),
    "letterSpacingIncrease": partial(adjust_spacing, attr="letter_spacing", delta=1),
    "letterSpacingDecrease": partial(adjust_spacing, attr="letter_spacing", delta=-1),
    "lineHeightIncrease": partial(adjust_spacing, attr="line_height", delta=1),
    "lineHeightDecrease": partial(adjust_spacing, attr="line_height", delta=-1),
    "textAlignLeft": partial(set_text_align, value="LEFT"),
    "textAlignCenter": partial(set_text_align, value="CENTER"),
    "textAlignRight": partial(set_text_align, value="RIGHT"),
    "textAlignJustify": partial(set_text_align, value="JUSTIFIED"),
    "createComponent": create_component,
    "createComponentForEach": create_component_for_each,
    "convertInstanceToComponent": convert_instance_to_component,
    "detachInstance": detach_instance,
    "resetInstance": reset_instance,
    "absolute": partial(set_positioning, value="ABSOLUTE"),
    "relative": partial(set_positioning, value="AUTO"),
    "flipHorizontal": partial(flip, axis=HORIZONTAL),
    "flipVertical": partial(flip, axis=VERTICAL),
    "booleanUnion": partial(boolean_operation, operation="union"),
    "booleanSubtract": partial(boolean_operation, operation="subtract"),
    "booleanIntersect": partial(boolean_operation, operation="intersect"),
    "booleanExclude": partial(boolean_operation, operation="exclude"),
    "outlineStroke": outline_stroke,
    "flattenSelection": flatten_selection,
}
