from __future__ import annotations

import pytest

from shortcut_plugin import geometry
from shortcut_plugin.geometry import HORIZONTAL, VERTICAL, Box


def _boxes(*specs):
    return [Box(x, y, w, h) for x, y, w, h in specs]


def test_distribute_keeps_outer_boxes_and_spaces_middle_one():
    boxes = _boxes((0, 0, 2, 2), (5, 0, 2, 2), (20, 0, 2, 2))
    placements = dict(geometry.distribute(boxes, HORIZONTAL))
    # gap = (22 - 0 - 6) / 2 = 8
    assert placements == {0: 0.0, 1: 10.0, 2: 20.0}


def test_distribute_orders_by_position_not_selection_order():
    boxes = _boxes((0, 40, 10, 10), (0, 0, 10, 10), (0, 11, 10, 10))
    placements = geometry.distribute(boxes, VERTICAL)
    assert [index for index, _ in placements] == [1, 2, 0]
    assert dict(placements) == {1: 0.0, 2: 20.0, 0: 40.0}


@pytest.mark.parametrize("count", [0, 1, 2])
def test_distribute_needs_three_boxes(count):
    boxes = _boxes(*[(i * 30, 0, 10, 10) for i in range(count)])
    assert geometry.distribute(boxes, HORIZONTAL) == []


def test_distribute_allows_negative_gap_for_overlapping_boxes():
    boxes = _boxes((0, 0, 20, 5), (5, 0, 20, 5), (10, 0, 20, 5))
    placements = dict(geometry.distribute(boxes, HORIZONTAL))
    # span 30, total 60 -> gap -15
    assert placements == {0: 0.0, 1: 5.0, 2: 10.0}


def test_align_start_and_end():
    boxes = _boxes((10, 0, 10, 5), (40, 0, 30, 5), (25, 0, 5, 5))
    assert geometry.align_start(boxes, HORIZONTAL) == [10, 10, 10]
    assert geometry.align_end(boxes, HORIZONTAL) == [60, 40, 65]


def test_align_center_uses_selection_extent():
    boxes = _boxes((0, 0, 5, 10), (0, 30, 5, 10))
    assert geometry.align_center(boxes, VERTICAL) == [15.0, 15.0]


def test_alignment_is_idempotent():
    boxes = _boxes((3, 9, 10, 4), (17, 1, 6, 8), (8, 22, 12, 2))
    for align in (geometry.align_start, geometry.align_end, geometry.align_center):
        for axis in (HORIZONTAL, VERTICAL):
            first = align(boxes, axis)
            moved = [
                Box(pos, b.y, b.width, b.height) if axis == HORIZONTAL else Box(b.x, pos, b.width, b.height)
                for b, pos in zip(boxes, first)
            ]
            assert align(moved, axis) == first


def test_alignment_of_empty_selection_is_empty():
    assert geometry.align_start([], HORIZONTAL) == []
    assert geometry.align_center([], VERTICAL) == []


def test_unknown_axis_rejected():
    with pytest.raises(ValueError):
        geometry.align_start(_boxes((0, 0, 1, 1)), "diagonal")


def test_tidy_axis_picks_wider_spread():
    wide = _boxes((0, 0, 10, 10), (50, 5, 10, 10), (100, 0, 10, 10))
    tall = _boxes((0, 0, 10, 10), (5, 50, 10, 10), (0, 100, 10, 10))
    square = _boxes((0, 0, 10, 10), (45, 45, 10, 10), (90, 90, 10, 10))
    assert geometry.tidy_axis(wide) == HORIZONTAL
    assert geometry.tidy_axis(tall) == VERTICAL
    assert geometry.tidy_axis(square) == HORIZONTAL
    assert geometry.tidy_axis(wide[:2]) is None


def test_flip_twice_restores_transform():
    matrix = [[0.8, -0.6, 12.0], [0.6, 0.8, -4.0]]
    for axis, size in ((HORIZONTAL, 30.0), (VERTICAL, 18.0)):
        once = geometry.flip_transform(matrix, size, axis)
        assert once != matrix
        twice = geometry.flip_transform(once, size, axis)
        for row, expected in zip(twice, matrix):
            assert row == pytest.approx(expected)


def test_flip_horizontal_of_identity_keeps_bounds():
    flipped = geometry.flip_transform([[1, 0, 10], [0, 1, 5]], 40, HORIZONTAL)
    assert flipped == [[-1.0, 0.0, 50.0], [-0.0, 1.0, 5.0]]


def test_flip_rejects_malformed_matrix():
    with pytest.raises(ValueError):
        geometry.flip_transform([[1, 0], [0, 1]], 10, VERTICAL)
