from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numba import njit, prange

# Axial offsets of the six neighbours of a cell on the hexagonal lattice.
HEX_OFFSETS = np.array(
    [
        [1, 0],
        [-1, 0],
        [0, 1],
        [0, -1],
        [-1, 1],
        [1, -1],
    ],
    dtype=np.int64,
)

SQRT3 = np.sqrt(3.0)


###############################################################################
# Kernels
###############################################################################


@njit(cache=True, parallel=True)
def _count_neighbors(ice, out):
    rows, cols = ice.shape
    for i in prange(rows):
        ip = (i + 1) % rows
        im = (i + rows - 1) % rows
        for j in range(cols):
            jp = (j + 1) % cols
            jm = (j + cols - 1) % cols
            k = 0
            if ice[ip, j]:
                k += 1
            if ice[im, j]:
                k += 1
            if ice[i, jp]:
                k += 1
            if ice[i, jm]:
                k += 1
            if ice[im, jp]:
                k += 1
            if ice[ip, jm]:
                k += 1
            out[i, j] = k


@njit(cache=True, parallel=True)
def _neighbor_sum(field, out):
    rows, cols = field.shape
    for i in prange(rows):
        ip = (i + 1) % rows
        im = (i + rows - 1) % rows
        for j in range(cols):
            jp = (j + 1) % cols
            jm = (j + cols - 1) % cols
            out[i, j] = (
                field[ip, j]
                + field[im, j]
                + field[i, jp]
                + field[i, jm]
                + field[im, jp]
                + field[ip, jm]
            )


def _check_grid(grid: np.ndarray) -> None:
    if grid.ndim != 2:
        raise ValueError(f"Expected a 2-D lattice array, got shape {grid.shape}")


def count_neighbors(ice: np.ndarray) -> np.ndarray:
    """
    Number of frozen cells among the six toroidal neighbours of every cell.

    Returns a uint8 array with values in [0, 6].
    """
    ice = np.ascontiguousarray(ice, dtype=np.bool_)
    _check_grid(ice)
    out = np.empty(ice.shape, dtype=np.uint8)
    _count_neighbors(ice, out)
    return out


def neighbor_sum(field: np.ndarray) -> np.ndarray:
    """Sum of a float field over the six toroidal neighbours of every cell."""
    field = np.ascontiguousarray(field, dtype=np.float64)
    _check_grid(field)
    out = np.empty_like(field)
    _neighbor_sum(field, out)
    return out


###############################################################################
# State
###############################################################################


@dataclass
class LatticeState:
    """Per-cell fields of the Gravner-Griffeath model."""

    ice: np.ndarray
    boundary_mass: np.ndarray
    crystal_mass: np.ndarray
    vapor_density: np.ndarray

    @property
    def n(self) -> int:
        return self.ice.shape[0]

    def total_mass(self) -> float:
        return float(
            self.boundary_mass.sum()
            + self.crystal_mass.sum()
            + self.vapor_density.sum()
        )

    def copy(self) -> "LatticeState":
        return LatticeState(
            ice=self.ice.copy(),
            boundary_mass=self.boundary_mass.copy(),
            crystal_mass=self.crystal_mass.copy(),
            vapor_density=self.vapor_density.copy(),
        )


def seed_index(n: int) -> tuple[int, int]:
    return n // 2, n // 2


def check_size(n: int) -> None:
    if n <= 0 or n % 2:
        raise ValueError(f"Lattice size must be a positive even integer, got {n}")


def make_state(n: int, rho: float) -> LatticeState:
    """Fresh lattice: uniform vapor `rho` with a single frozen seed at the centre."""
    check_size(n)
    ci, cj = seed_index(n)

    ice = np.zeros((n, n), dtype=bool)
    ice[ci, cj] = True

    boundary_mass = np.zeros((n, n), dtype=np.float64)

    crystal_mass = np.zeros((n, n), dtype=np.float64)
    crystal_mass[ci, cj] = 1.0

    vapor_density = np.full((n, n), rho, dtype=np.float64)
    vapor_density[ci, cj] = 0.0

    return LatticeState(ice, boundary_mass, crystal_mass, vapor_density)


###############################################################################
# Geometry helpers
###############################################################################


def hex_centers(n: int, scale: float = 1.0) -> tuple[np.ndarray, np.ndarray]:
    """
    Euclidean centres of all cells of an n x n lattice.

    Cell (i, j) sits at (i + j/2, j*sqrt(3)/2), so the six axial neighbours
    are all at unit distance.
    """
    i, j = np.indices((n, n), dtype=np.float64)
    x = (i + 0.5 * j) * scale
    y = j * (SQRT3 / 2.0) * scale
    return x, y


def rotate_hex(field: np.ndarray, k: int = 1) -> np.ndarray:
    """
    Rotate a lattice field by k * 60 degrees about the seed cell.

    The axial map (p, q) -> (-q, p + q) sends neighbour offsets onto
    neighbour offsets and has determinant 1, so it is an automorphism of the
    toroidal lattice as well.
    """
    n = field.shape[0]
    ci, cj = seed_index(n)
    out = np.asarray(field)
    for _ in range(k % 6):
        i, j = np.indices(out.shape)
        p = i - ci
        q = j - cj
        rotated = np.empty_like(out)
        rotated[(ci - q) % n, (cj + p + q) % n] = out[i, j]
        out = rotated
    return out.copy() if out is field else out
