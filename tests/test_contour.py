# tests/test_contour.py
import logging

import numpy as np
import pytest

from snowflake_sim import lattice
from snowflake_sim.contour import (
    classify_contours,
    extract_contours,
    hex_edges,
    walk_loops,
)


def signed_area(pts):
    x, y = pts[:, 0], pts[:, 1]
    return 0.5 * np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y)


def mask_with(cells, n=10):
    mask = np.zeros((n, n), dtype=bool)
    for cell in cells:
        mask[cell] = True
    return mask


def test_single_cell_is_a_hexagon():
    contours = extract_contours(mask_with([(5, 5)]))
    assert len(contours) == 1
    hexagon = contours[0]
    assert hexagon.shape == (6, 2)

    x, y = lattice.hex_centers(10)
    centre = np.array([x[5, 5], y[5, 5]])
    np.testing.assert_allclose(hexagon.mean(axis=0), centre)
    np.testing.assert_allclose(np.linalg.norm(hexagon - centre, axis=1), 1.0 / np.sqrt(3.0))
    assert signed_area(hexagon) == pytest.approx(np.sqrt(3.0) / 2.0)


def test_shared_edges_cancel():
    block = mask_with([(4, 4), (5, 4), (4, 5), (5, 5)])
    segments = hex_edges(block)
    # 24 edges, 5 adjacent pairs each cancel two
    assert sum(len(ends) for ends in segments.values()) == 14

    contours = extract_contours(block)
    assert len(contours) == 1
    assert len(contours[0]) == 14


def test_ring_has_outer_boundary_and_hole():
    ring = mask_with([(5 + di, 5 + dj) for di, dj in lattice.HEX_OFFSETS])
    contours = extract_contours(ring)
    assert [len(c) for c in contours] == [18, 6]
    assert signed_area(contours[0]) > 0
    assert signed_area(contours[1]) < 0
    assert classify_contours(contours) == [True, False]


def test_island_inside_hole_is_outer():
    n = 12
    cells = [
        (i, j)
        for i in range(n)
        for j in range(n)
        if max(abs(i - 5), abs(j - 5), abs(i + j - 10)) in (0, 3)
    ]
    contours = extract_contours(mask_with(cells, n))
    assert [len(c) for c in contours] == [42, 30, 6]
    assert signed_area(contours[0]) > 0
    assert signed_area(contours[1]) < 0
    assert signed_area(contours[2]) > 0
    assert classify_contours(contours) == [True, False, True]


def test_disjoint_cells_are_separate_outer_contours():
    contours = extract_contours(mask_with([(2, 2), (7, 7)]))
    assert [len(c) for c in contours] == [6, 6]
    assert classify_contours(contours) == [True, True]


def test_scale():
    mask = mask_with([(3, 4), (4, 4)])
    small = extract_contours(mask, 1.0)
    large = extract_contours(mask, 2.5)
    for a, b in zip(small, large):
        np.testing.assert_allclose(2.5 * a, b)


def test_empty_mask():
    assert extract_contours(np.zeros((6, 6), dtype=bool)) == []


def test_rejects_non_2d_mask():
    with pytest.raises(ValueError):
        extract_contours(np.zeros(6, dtype=bool))


def test_branching_vertex_is_logged_and_walked(caplog):
    segments = {"a": {"b", "c"}, "b": {"a"}, "c": {"a"}}
    with caplog.at_level(logging.WARNING, logger="snowflake_sim.contour"):
        loops = walk_loops(segments)
    assert "successors" in caplog.text
    assert segments == {}
    assert sum(len(loop) for loop in loops) >= 3


def test_open_chain_is_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="snowflake_sim.contour"):
        loops = walk_loops({(0, 0): {(1, 0)}, (1, 0): {(2, 0)}})
    assert loops == [[(0, 0), (1, 0), (2, 0)]]
    assert "did not close" in caplog.text
