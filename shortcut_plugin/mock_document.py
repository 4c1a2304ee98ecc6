"""In-memory stand-in for the host document.

Used by the developer harness (``python load.py --action alignLeft``) and the test suite
to exercise actions without a running editor. Node kinds advertise what they
support through a ``CAPABILITIES`` set, mirroring how the real host exposes a
different property surface per node type.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .host import INSTANCE_TYPE, LAYOUT_NONE

_LOGGER = logging.getLogger("ShortcutActions.MockDocument")

_GEOMETRY = frozenset({"name", "x", "y", "width", "height", "parent", "relative_transform", "resize", "clone", "remove"})
_LAYOUT_CHILD = frozenset(
    {"layout_grow", "layout_align", "layout_positioning", "layout_sizing_horizontal", "layout_sizing_vertical"}
)
_PAINTS = frozenset({"fills", "strokes", "stroke_align", "strokes_included_in_layout"})
_CORNERS = frozenset({"corner_radius", "corner_smoothing"})
_CONTAINER = frozenset({"children", "append_child"})
_AUTO_LAYOUT = frozenset(
    {
        "layout_mode",
        "item_spacing",
        "padding_left",
        "padding_right",
        "padding_top",
        "padding_bottom",
        "primary_axis_align_items",
        "counter_axis_align_items",
    }
)
_TEXT = frozenset(
    {
        "font_name",
        "font_size",
        "letter_spacing",
        "line_height",
        "text_align_horizontal",
        "characters",
        "get_range_font_name",
    }
)

DEFAULT_FONT = {"family": "Inter", "style": "Regular"}


class MockNode:
    """Base scene node with position, size and a 2x3 relative transform."""

    type = "NODE"
    CAPABILITIES: frozenset = _GEOMETRY

    def __init__(self, name: str = "", *, x: float = 0, y: float = 0, width: float = 100, height: float = 100, **props: Any) -> None:
        self.name = name or self.type.title()
        self.parent: Optional[MockNode] = None
        self.width = float(width)
        self.height = float(height)
        self.relative_transform: List[List[float]] = [[1.0, 0.0, float(x)], [0.0, 1.0, float(y)]]
        self.removed = False
        for key, value in props.items():
            if key not in self.CAPABILITIES:
                raise AttributeError(f"{type(self).__name__} has no capability '{key}'")
            setattr(self, key, value)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} x={self.x} y={self.y} w={self.width} h={self.height}>"

    @property
    def capabilities(self) -> frozenset:
        return self.CAPABILITIES

    @property
    def x(self) -> float:
        return self.relative_transform[0][2]

    @x.setter
    def x(self, value: float) -> None:
        self.relative_transform[0][2] = float(value)

    @property
    def y(self) -> float:
        return self.relative_transform[1][2]

    @y.setter
    def y(self, value: float) -> None:
        self.relative_transform[1][2] = float(value)

    def resize(self, width: float, height: float) -> None:
        if width < 0 or height < 0:
            raise ValueError("Size must be non-negative")
        self.width = float(width)
        self.height = float(height)

    def clone(self) -> "MockNode":
        parent = self.parent
        # Keep the parent shared instead of copying the whole tree above us.
        duplicate = copy.deepcopy(self, memo={id(parent): parent} if parent is not None else None)
        duplicate.parent = None
        if parent is not None:
            parent.append_child(duplicate)
        return duplicate

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None
        self.removed = True


class ContainerMixin:
    children: List[MockNode]

    def _init_children(self) -> None:
        if not hasattr(self, "children"):
            self.children = []

    def append_child(self, child: MockNode) -> None:
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self  # type: ignore[assignment]
        child.removed = False
        self.children.append(child)


class PageNode(ContainerMixin, MockNode):
    type = "PAGE"
    CAPABILITIES = frozenset({"name", "children", "append_child"})

    def __init__(self, name: str = "Page 1") -> None:
        super().__init__(name, width=0, height=0)
        self._init_children()


class FrameNode(ContainerMixin, MockNode):
    type = "FRAME"
    CAPABILITIES = _GEOMETRY | _LAYOUT_CHILD | _PAINTS | _CORNERS | _CONTAINER | _AUTO_LAYOUT

    def __init__(self, name: str = "", **kwargs: Any) -> None:
        self.layout_mode = LAYOUT_NONE
        self.item_spacing = 0.0
        self.padding_left = self.padding_right = self.padding_top = self.padding_bottom = 0.0
        self.primary_axis_align_items = "MIN"
        self.counter_axis_align_items = "MIN"
        _child_defaults(self)
        _paint_defaults(self)
        self.corner_radius = 0.0
        self.corner_smoothing = 0.0
        super().__init__(name, **kwargs)
        self._init_children()


class RectangleNode(MockNode):
    type = "RECTANGLE"
    CAPABILITIES = _GEOMETRY | _LAYOUT_CHILD | _PAINTS | _CORNERS | frozenset({"outline_stroke"})

    def __init__(self, name: str = "", **kwargs: Any) -> None:
        _child_defaults(self)
        _paint_defaults(self)
        self.corner_radius = 0.0
        self.corner_smoothing = 0.0
        super().__init__(name, **kwargs)

    def outline_stroke(self) -> Optional["VectorNode"]:
        if not self.strokes:
            return None
        outline = VectorNode(f"{self.name} outline", x=self.x, y=self.y, width=self.width, height=self.height)
        outline.fills = copy.deepcopy(self.strokes)
        if self.parent is not None:
            self.parent.append_child(outline)
        return outline


class VectorNode(MockNode):
    type = "VECTOR"
    CAPABILITIES = _GEOMETRY | _LAYOUT_CHILD | _PAINTS | frozenset({"outline_stroke"})

    def __init__(self, name: str = "", **kwargs: Any) -> None:
        _child_defaults(self)
        _paint_defaults(self)
        super().__init__(name, **kwargs)

    def outline_stroke(self) -> Optional["VectorNode"]:
        return RectangleNode.outline_stroke(self)  # type: ignore[arg-type]


class TextNode(MockNode):
    type = "TEXT"
    CAPABILITIES = _GEOMETRY | _LAYOUT_CHILD | _PAINTS | _TEXT

    def __init__(self, name: str = "", *, range_fonts: Optional[Sequence[Dict[str, str]]] = None, **kwargs: Any) -> None:
        _child_defaults(self)
        _paint_defaults(self)
        self.characters = kwargs.pop("characters", name or "Text")
        self.font_name: Any = dict(DEFAULT_FONT)
        self.font_size: Any = 16.0
        self.letter_spacing: Any = {"value": 0.0, "unit": "PIXELS"}
        self.line_height: Any = {"unit": "AUTO"}
        self.text_align_horizontal = "LEFT"
        self.range_fonts = list(range_fonts) if range_fonts is not None else None
        super().__init__(name, **kwargs)

    def get_range_font_name(self, start: int, end: int) -> Dict[str, str]:
        if self.range_fonts is None:
            if isinstance(self.font_name, dict):
                return self.font_name
            raise ValueError("Mixed fonts without range information")
        fonts = self.range_fonts[start:end]
        if not fonts:
            raise IndexError(f"No characters in range {start}:{end}")
        first = fonts[0]
        if any(font != first for font in fonts[1:]):
            raise ValueError("Range spans several fonts")
        return first


class GroupNode(ContainerMixin, MockNode):
    type = "GROUP"
    CAPABILITIES = _GEOMETRY | _LAYOUT_CHILD | _CONTAINER

    def __init__(self, name: str = "", **kwargs: Any) -> None:
        _child_defaults(self)
        super().__init__(name, **kwargs)
        self._init_children()


class ComponentNode(FrameNode):
    type = "COMPONENT"


class InstanceNode(FrameNode):
    type = "INSTANCE"
    CAPABILITIES = FrameNode.CAPABILITIES | frozenset({"detach_instance", "reset_overrides"})

    def __init__(self, name: str = "", **kwargs: Any) -> None:
        self.overridden = False
        super().__init__(name, **kwargs)

    def detach_instance(self) -> FrameNode:
        frame = FrameNode(self.name, x=self.x, y=self.y, width=self.width, height=self.height)
        for attr in sorted(FrameNode.CAPABILITIES - _GEOMETRY - _CONTAINER):
            setattr(frame, attr, copy.deepcopy(getattr(self, attr)))
        frame.relative_transform = copy.deepcopy(self.relative_transform)
        for child in list(self.children):
            frame.append_child(child)
        _replace(self, frame)
        return frame

    def reset_overrides(self) -> None:
        self.overridden = False


class BooleanOperationNode(GroupNode):
    type = "BOOLEAN_OPERATION"

    def __init__(self, name: str = "", *, operation: str = "UNION", **kwargs: Any) -> None:
        self.boolean_operation = operation
        super().__init__(name, **kwargs)


def _child_defaults(node: Any) -> None:
    node.layout_grow = 0
    node.layout_align = "INHERIT"
    node.layout_positioning = "AUTO"
    node.layout_sizing_horizontal = "FIXED"
    node.layout_sizing_vertical = "FIXED"


def _paint_defaults(node: Any) -> None:
    node.fills = [{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 1}, "opacity": 1}]
    node.strokes = []
    node.stroke_align = "INSIDE"
    node.strokes_included_in_layout = False


def _replace(old: MockNode, new: MockNode) -> None:
    parent = old.parent
    if parent is None:
        old.removed = True
        return
    index = parent.children.index(old)
    parent.children[index] = new
    new.parent = parent
    old.parent = None
    old.removed = True


def _bounds(nodes: Iterable[MockNode]) -> tuple[float, float, float, float]:
    items = list(nodes)
    left = min(node.x for node in items)
    top = min(node.y for node in items)
    right = max(node.x + node.width for node in items)
    bottom = max(node.y + node.height for node in items)
    return left, top, right - left, bottom - top


class MockDocument:
    """Host surface backed by :class:`MockNode` objects on a single page."""

    def __init__(self, editor_type: str = "design") -> None:
        self.editor_type = editor_type
        self.page = PageNode()
        self._selection: List[MockNode] = []
        self.notifications: List[str] = []
        self.loaded_fonts: List[Dict[str, str]] = []
        self.unavailable_fonts: set[str] = set()
        self.closed = False
        self.ui_size: Optional[tuple[int, int]] = None

    # Selection -------------------------------------------------------------

    @property
    def selection(self) -> List[MockNode]:
        return list(self._selection)

    @selection.setter
    def selection(self, nodes: Sequence[MockNode]) -> None:
        self._selection = list(nodes)

    def add(self, node: MockNode, parent: Optional[ContainerMixin] = None, *, select: bool = False) -> MockNode:
        (parent or self.page).append_child(node)
        if select:
            self._selection.append(node)
        return node

    # Host services ----------------------------------------------------------

    async def load_font_async(self, font: Dict[str, str]) -> None:
        if font.get("family") in self.unavailable_fonts:
            raise RuntimeError(f"Font {font.get('family')} {font.get('style')} is not available")
        self.loaded_fonts.append(dict(font))

    def notify(self, message: str) -> None:
        _LOGGER.info("notify: %s", message)
        self.notifications.append(message)

    def close_plugin(self) -> None:
        self.closed = True

    def resize_ui(self, width: int, height: int) -> None:
        self.ui_size = (int(width), int(height))

    # Structural operations ---------------------------------------------------

    def _combine(self, nodes: Sequence[MockNode], parent: Any, operation: str) -> BooleanOperationNode:
        if not nodes:
            raise ValueError("Boolean operations need at least one node")
        x, y, width, height = _bounds(nodes)
        result = BooleanOperationNode(operation.title(), operation=operation, x=x, y=y, width=width, height=height)
        (parent or self.page).append_child(result)
        for node in nodes:
            result.append_child(node)
        self._selection = [result]
        return result

    def union(self, nodes: Sequence[MockNode], parent: Any) -> BooleanOperationNode:
        return self._combine(nodes, parent, "UNION")

    def subtract(self, nodes: Sequence[MockNode], parent: Any) -> BooleanOperationNode:
        return self._combine(nodes, parent, "SUBTRACT")

    def intersect(self, nodes: Sequence[MockNode], parent: Any) -> BooleanOperationNode:
        return self._combine(nodes, parent, "INTERSECT")

    def exclude(self, nodes: Sequence[MockNode], parent: Any) -> BooleanOperationNode:
        return self._combine(nodes, parent, "EXCLUDE")

    def flatten(self, nodes: Sequence[MockNode]) -> VectorNode:
        if not nodes:
            raise ValueError("Flatten needs at least one node")
        x, y, width, height = _bounds(nodes)
        vector = VectorNode("Vector", x=x, y=y, width=width, height=height)
        (nodes[0].parent or self.page).append_child(vector)
        for node in nodes:
            node.remove()
        self._selection = [vector]
        return vector

    def group(self, nodes: Sequence[MockNode], parent: Any) -> GroupNode:
        if not nodes:
            raise ValueError("Cannot group an empty selection")
        x, y, width, height = _bounds(nodes)
        group = GroupNode("Group", x=x, y=y, width=width, height=height)
        (parent or self.page).append_child(group)
        for node in nodes:
            group.append_child(node)
        return group

    def create_component(self) -> ComponentNode:
        component = ComponentNode("Component")
        self.page.append_child(component)
        return component

    def create_component_from_node(self, node: MockNode) -> ComponentNode:
        if node.type in {"PAGE", "COMPONENT", "COMPONENT_SET", INSTANCE_TYPE}:
            raise ValueError(f"Cannot create a component from a {node.type} node")
        component = ComponentNode(node.name, x=node.x, y=node.y, width=node.width, height=node.height)
        _replace(node, component)
        node.removed = False
        component.append_child(node)
        node.x = 0
        node.y = 0
        return component
