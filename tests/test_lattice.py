# tests/test_lattice.py
import numpy as np
import pytest

from snowflake_sim import lattice


def test_make_state_has_single_seed():
    state = lattice.make_state(10, 0.5)
    assert state.ice.sum() == 1
    assert state.ice[5, 5]
    assert state.crystal_mass[5, 5] == 1.0
    assert state.vapor_density[5, 5] == 0.0
    assert np.all(state.vapor_density[~state.ice] == 0.5)
    assert np.all(state.boundary_mass == 0.0)
    assert state.total_mass() == pytest.approx(1.0 + 0.5 * 99)


@pytest.mark.parametrize("n", [0, -4, 7])
def test_make_state_rejects_bad_sizes(n):
    with pytest.raises(ValueError):
        lattice.make_state(n, 0.5)


def test_count_neighbors_around_seed():
    state = lattice.make_state(10, 0.5)
    counts = lattice.count_neighbors(state.ice)
    assert counts.dtype == np.uint8
    for di, dj in lattice.HEX_OFFSETS:
        assert counts[5 + di, 5 + dj] == 1
    assert counts.sum() == 6
    assert counts[5, 5] == 0
    # (1, 1) and (-1, -1) are not neighbours on this lattice
    assert counts[6, 6] == 0
    assert counts[4, 4] == 0


def test_count_neighbors_wraps_around():
    ice = np.zeros((6, 6), dtype=bool)
    ice[0, 0] = True
    counts = lattice.count_neighbors(ice)
    assert counts[5, 0] == 1
    assert counts[0, 5] == 1
    assert counts[5, 1] == 1
    assert counts[1, 5] == 1
    assert counts.sum() == 6


def test_count_neighbors_full_lattice():
    counts = lattice.count_neighbors(np.ones((4, 4), dtype=bool))
    assert np.all(counts == 6)


def test_neighbor_sum_of_uniform_field():
    field = np.full((8, 8), 0.25)
    np.testing.assert_allclose(lattice.neighbor_sum(field), 1.5)


def test_count_neighbors_rejects_1d():
    with pytest.raises(ValueError):
        lattice.count_neighbors(np.zeros(5, dtype=bool))


def test_hex_centers_neighbours_at_unit_distance():
    x, y = lattice.hex_centers(10)
    for di, dj in lattice.HEX_OFFSETS:
        dist = np.hypot(x[5 + di, 5 + dj] - x[5, 5], y[5 + di, 5 + dj] - y[5, 5])
        assert dist == pytest.approx(1.0)


def test_rotate_hex_maps_neighbours_to_neighbours():
    ice = np.zeros((10, 10), dtype=bool)
    ice[6, 5] = True
    rotated = lattice.rotate_hex(ice)
    assert rotated.sum() == 1
    assert rotated[5, 6]
    assert np.array_equal(lattice.rotate_hex(ice, 6), ice)
