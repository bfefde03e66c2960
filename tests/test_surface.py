# tests/test_surface.py
import numpy as np
import pytest

from snowflake_sim import lattice
from snowflake_sim.surface import cells_to_facets, lattice_points


def heights_with(cells, n=10, value=1.0):
    h = np.zeros((n, n))
    for cell in cells:
        h[cell] = value
    return h


def test_single_cell_has_no_facets():
    facets = cells_to_facets(heights_with([(5, 5)]))
    assert facets.shape == (0, 3, 3)


def test_single_triangle_is_closed_prism():
    facets = cells_to_facets(heights_with([(4, 4), (5, 4), (4, 5)], value=2.0), z_scale=0.5)
    # top, bottom, two side facets per outline edge
    assert facets.shape == (8, 3, 3)
    assert facets[:, :, 2].max() == pytest.approx(1.0)
    assert facets[:, :, 2].min() == pytest.approx(-1.0)


def test_hexagon_around_seed():
    cells = [(5, 5)] + [(5 + di, 5 + dj) for di, dj in lattice.HEX_OFFSETS]
    facets = cells_to_facets(heights_with(cells), xy_scale=2.0)
    assert facets.shape == (6 * 2 + 6 * 2, 3, 3)

    # a closed surface has zero total area vector
    p0, p1, p2 = facets[:, 0], facets[:, 1], facets[:, 2]
    area_vectors = np.cross(p1 - p0, p2 - p1)
    np.testing.assert_allclose(area_vectors.sum(axis=0), 0.0, atol=1e-9)

    # top facets point up
    top = facets[:, :, 2].min(axis=1) > 0
    assert np.all(area_vectors[top, 2] > 0)


def test_lattice_points_centre_seed():
    pts = lattice_points(np.ones((10, 10)), 3.0, 2.0)
    np.testing.assert_allclose(pts[5, 5], [0.0, 0.0, 2.0])
    assert np.linalg.norm(pts[6, 5] - pts[5, 5]) == pytest.approx(3.0)
    assert np.linalg.norm(pts[4, 6] - pts[5, 5]) == pytest.approx(3.0)


def test_rejects_non_2d_heights():
    with pytest.raises(ValueError):
        cells_to_facets(np.ones(4))
