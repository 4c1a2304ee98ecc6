"""Shape of the host document surface the plugin talks to.

The host owns the document graph; the plugin only borrows element handles for
the length of one action. These protocols list what the core calls so a real
host adapter and :mod:`shortcut_plugin.mock_document` stay interchangeable.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, Sequence

from .capabilities import element_supports

# Layout modes of an auto-arranging container.
LAYOUT_NONE = "NONE"
LAYOUT_HORIZONTAL = "HORIZONTAL"
LAYOUT_VERTICAL = "VERTICAL"

TEXT_TYPE = "TEXT"
INSTANCE_TYPE = "INSTANCE"
COMPONENT_TYPES = frozenset({"COMPONENT", "COMPONENT_SET"})

ENVIRONMENT_NAMES = {
    "design": "Design",
    "whiteboard": "Whiteboard",
    "slides": "Slides",
}

FontName = Mapping[str, str]


class Element(Protocol):
    name: str
    type: str
    x: float
    y: float
    width: float
    height: float
    parent: Optional[Any]
    relative_transform: List[List[float]]


class HostDocument(Protocol):
    """Capability surface exposed by the document-editing host."""

    editor_type: str

    @property
    def selection(self) -> List[Any]: ...

    @selection.setter
    def selection(self, nodes: Sequence[Any]) -> None: ...

    async def load_font_async(self, font: FontName) -> None: ...

    def notify(self, message: str) -> None: ...

    def close_plugin(self) -> None: ...

    def resize_ui(self, width: int, height: int) -> None: ...

    def union(self, nodes: Sequence[Any], parent: Any) -> Any: ...

    def subtract(self, nodes: Sequence[Any], parent: Any) -> Any: ...

    def intersect(self, nodes: Sequence[Any], parent: Any) -> Any: ...

    def exclude(self, nodes: Sequence[Any], parent: Any) -> Any: ...

    def flatten(self, nodes: Sequence[Any]) -> Any: ...

    def group(self, nodes: Sequence[Any], parent: Any) -> Any: ...

    def create_component(self) -> Any: ...

    def create_component_from_node(self, node: Any) -> Any: ...


def environment_name(host: Any) -> str:
    editor = str(getattr(host, "editor_type", "") or "").lower()
    return ENVIRONMENT_NAMES.get(editor, "Slides")


def in_auto_layout(element: Any) -> bool:
    """``True`` when the element's parent arranges its children automatically."""

    parent = getattr(element, "parent", None)
    if parent is None or not element_supports(parent, "layout_mode"):
        return False
    return parent.layout_mode != LAYOUT_NONE
