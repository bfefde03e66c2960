# tests/test_reiter.py
import numpy as np
import pytest

from snowflake_sim import lattice
from snowflake_sim.reiter import (
    ReiterConfig,
    frozen_cells,
    init_grid,
    receptive_cells,
    update_grid,
)


def test_init_grid():
    s = init_grid(10, 0.4)
    assert s[5, 5] == 1.0
    assert frozen_cells(s).sum() == 1
    assert np.all(s[~frozen_cells(s)] == 0.4)


def test_receptive_cells_are_seed_and_neighbours():
    receptive = receptive_cells(init_grid(10, 0.4))
    assert receptive.sum() == 7
    assert receptive[5, 5]
    for di, dj in lattice.HEX_OFFSETS:
        assert receptive[5 + di, 5 + dj]


def test_first_update():
    alpha, gamma, beta = 0.5, 0.01, 0.4
    s = init_grid(10, beta)
    new = update_grid(s, alpha, gamma)

    # seed: all its neighbours are receptive, so nothing diffuses in
    assert new[5, 5] == pytest.approx(1.0 + gamma)
    # neighbour (6, 5) has 3 non-receptive neighbours holding beta
    assert new[6, 5] == pytest.approx(beta + gamma + alpha * (3 * beta / 6.0) / 2.0)
    # far away the field is uniform and stays put
    assert new[0, 0] == pytest.approx(beta)
    assert s[5, 5] == 1.0


def test_reiter_grows_symmetrically():
    config = ReiterConfig(n=30, alpha=1.0, beta=0.4, gamma=0.01)
    s = init_grid(config.n, config.beta)
    for _ in range(200):
        old = frozen_cells(s)
        s = update_grid(s, config.alpha, config.gamma)
        assert np.all(frozen_cells(s)[old])
    ice = frozen_cells(s)
    assert ice.sum() > 1
    for k in range(1, 6):
        np.testing.assert_array_equal(lattice.rotate_hex(ice, k), ice)


def test_gamma_adds_water_to_receptive_cells():
    s = init_grid(12, 0.4)
    receptive = receptive_cells(s)
    new = update_grid(s, 0.0, 0.05)
    np.testing.assert_allclose(new[receptive] - s[receptive], 0.05)
    np.testing.assert_allclose(new[~receptive], s[~receptive])
