"""Pure layout maths for alignment, distribution, tidy and flip actions.

Every function works on :class:`Box` snapshots and returns the new coordinates
instead of mutating anything; the handlers apply the results to host elements.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

Matrix = List[List[float]]

HORIZONTAL = "horizontal"
VERTICAL = "vertical"

# Distribution is undefined below three points.
MIN_DISTRIBUTE_COUNT = 3


@dataclass(frozen=True)
class Box:
    """Axis-aligned bounding box of one element."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @classmethod
    def of(cls, element: Any) -> "Box":
        return cls(
            x=float(element.x),
            y=float(element.y),
            width=float(element.width),
            height=float(element.height),
        )

    def start(self, axis: str) -> float:
        return self.x if axis == HORIZONTAL else self.y

    def size(self, axis: str) -> float:
        return self.width if axis == HORIZONTAL else self.height

    def end(self, axis: str) -> float:
        return self.start(axis) + self.size(axis)


def _check_axis(axis: str) -> None:
    if axis not in (HORIZONTAL, VERTICAL):
        raise ValueError(f"Unknown axis '{axis}'")


# Alignment ----------------------------------------------------------------


def align_start(boxes: Sequence[Box], axis: str) -> List[float]:
    """Left (horizontal) or top (vertical) alignment targets."""

    _check_axis(axis)
    if not boxes:
        return []
    edge = min(box.start(axis) for box in boxes)
    return [edge for _ in boxes]


def align_end(boxes: Sequence[Box], axis: str) -> List[float]:
    """Right (horizontal) or bottom (vertical) alignment targets."""

    _check_axis(axis)
    if not boxes:
        return []
    edge = max(box.end(axis) for box in boxes)
    return [edge - box.size(axis) for box in boxes]


def align_center(boxes: Sequence[Box], axis: str) -> List[float]:
    """Center every box on the midpoint of the selection's extent."""

    _check_axis(axis)
    if not boxes:
        return []
    low = min(box.start(axis) for box in boxes)
    high = max(box.end(axis) for box in boxes)
    mid = (low + high) / 2
    return [mid - box.size(axis) / 2 for box in boxes]


# Distribution -------------------------------------------------------------


def distribute(boxes: Sequence[Box], axis: str) -> List[Tuple[int, float]]:
    """Evenly space boxes between the first and last one on ``axis``.

    Returns ``(index, position)`` pairs in placement order, where ``index``
    refers to the input sequence. Fewer than three boxes yield ``[]``. The gap
    may be negative when the boxes overlap more than the span allows.
    """

    _check_axis(axis)
    if len(boxes) < MIN_DISTRIBUTE_COUNT:
        return []
    order = sorted(range(len(boxes)), key=lambda idx: boxes[idx].start(axis))
    first = boxes[order[0]]
    last = boxes[order[-1]]
    total = sum(box.size(axis) for box in boxes)
    gap = (last.end(axis) - first.start(axis) - total) / (len(boxes) - 1)
    placements: List[Tuple[int, float]] = []
    cursor = first.start(axis)
    for idx in order:
        placements.append((idx, cursor))
        cursor += boxes[idx].size(axis) + gap
    return placements


def spread(boxes: Sequence[Box], axis: str) -> float:
    _check_axis(axis)
    if not boxes:
        return 0.0
    return max(box.end(axis) for box in boxes) - min(box.start(axis) for box in boxes)


def tidy_axis(boxes: Sequence[Box]) -> str | None:
    """Pick the axis tidy-up distributes along, or ``None`` below three boxes."""

    if len(boxes) < MIN_DISTRIBUTE_COUNT:
        return None
    if spread(boxes, HORIZONTAL) >= spread(boxes, VERTICAL):
        return HORIZONTAL
    return VERTICAL


# Flip ---------------------------------------------------------------------


def flip_transform(matrix: Sequence[Sequence[float]], size: float, axis: str) -> Matrix:
    """Mirror a 2x3 affine transform in place of its own bounding box.

    The matrix is ``[[a, b, tx], [c, d, ty]]``. A horizontal flip composes it
    with the local mirror ``[[-1, 0, size], [0, 1, 0]]``: the first column
    changes sign and the translation moves by ``size`` along that column, so
    the element keeps its visual bounds. Applying the same flip twice yields
    the original matrix.
    """

    _check_axis(axis)
    if len(matrix) != 2 or any(len(row) != 3 for row in matrix):
        raise ValueError("Transform must be a 2x3 matrix")
    (a, b, tx), (c, d, ty) = ([float(v) for v in row] for row in matrix)
    if axis == HORIZONTAL:
        return [[-a, b, tx + a * size], [-c, d, ty + c * size]]
    return [[a, -b, tx + b * size], [c, -d, ty + d * size]]
