from __future__ import annotations

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.collections import PolyCollection

from .contour import HEX_CORNERS
from .lattice import SQRT3, hex_centers

# Corners of a unit-spaced hexagon around its centre.
_CORNERS = np.array([(dx / 2.0, dy / (2.0 * SQRT3)) for dx, dy in HEX_CORNERS])


def hexagons(ice: np.ndarray) -> np.ndarray:
    """(k, 6, 2) polygon corners of the frozen cells."""
    x, y = hex_centers(ice.shape[0])
    centres = np.column_stack((x[ice], y[ice]))
    return centres[:, None, :] + _CORNERS[None, :, :]


def plot_crystal(field: np.ndarray, ice: np.ndarray | None = None, ax=None, cmap="Blues_r"):
    """
    Draw frozen cells as hexagons coloured by `field` (crystal mass).

    Returns the axes.
    """
    field = np.asarray(field, dtype=np.float64)
    ice = field > 0.0 if ice is None else np.asarray(ice, dtype=bool)
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 8))

    polys = PolyCollection(hexagons(ice), array=field[ice], cmap=cmap, edgecolors="none")
    ax.add_collection(polys)
    ax.set_aspect("equal")
    ax.set_axis_off()
    if ice.any():
        ax.autoscale_view()
    return ax


__all__ = ["hexagons", "plot_crystal"]
