"""
Shape measures for grown crystals.

- Crystal radius: largest distance of a frozen cell from the seed.
- Sandbox dimension: slope of log M(<R) against log R for the frozen cells.
"""
from __future__ import annotations

import numpy as np
from scipy.stats import linregress

from .lattice import hex_centers, seed_index


def seed_distances(n: int) -> np.ndarray:
    """Euclidean distance of every cell centre from the seed cell."""
    x, y = hex_centers(n)
    ci, cj = seed_index(n)
    return np.hypot(x - x[ci, cj], y - y[ci, cj])


def crystal_radius(ice: np.ndarray) -> float:
    ice = np.asarray(ice, dtype=bool)
    if not ice.any():
        return 0.0
    return float(seed_distances(ice.shape[0])[ice].max())


def mass_radius_profile(ice: np.ndarray, radii: np.ndarray) -> np.ndarray:
    """Number of frozen cells within each radius of the seed."""
    dist = np.sort(seed_distances(ice.shape[0])[np.asarray(ice, dtype=bool)])
    return np.searchsorted(dist, np.asarray(radii, dtype=np.float64), side="right")


def sandbox_dimension(
    ice: np.ndarray, min_radius: float = 2.0, num_radii: int = 20
) -> tuple[float, float]:
    """
    Mass-radius fractal dimension of the frozen region.

    Fits log M(<R) = D log R + C over radii from `min_radius` to the crystal
    radius. Returns (D, r_squared).
    """
    r_max = crystal_radius(ice)
    if r_max <= min_radius:
        raise ValueError(
            f"Crystal radius {r_max:.2f} is too small for a fit from R={min_radius}"
        )
    radii = np.geomspace(min_radius, r_max, num_radii)
    mass = mass_radius_profile(ice, radii)
    fit = linregress(np.log(radii), np.log(mass))
    return float(fit.slope), float(fit.rvalue ** 2)


__all__ = ["crystal_radius", "mass_radius_profile", "sandbox_dimension", "seed_distances"]
