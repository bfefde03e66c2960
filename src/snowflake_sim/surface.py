from __future__ import annotations

import numpy as np

from .contour import add_edge, contour_edges, walk_loops
from .lattice import SQRT3, seed_index

# Corner cells of the two triangles spanned by the lattice square at (i, j):
#
#     (i, j+1) <-- (i+1, j+1)
#        /    \      /
#     (i, j) --> (i+1, j)
LOWER_TRIANGLE = ((0, 0), (1, 0), (0, 1))
UPPER_TRIANGLE = ((1, 0), (1, 1), (0, 1))


def lattice_points(heights: np.ndarray, xy_scale: float, z_scale: float) -> np.ndarray:
    """(n, m, 3) positions of the cell centres, with the seed cell at the origin."""
    rows, cols = heights.shape
    ci, cj = seed_index(rows)
    i, j = np.indices((rows, cols), dtype=np.float64)
    x = ((i - ci) + 0.5 * (j - cj)) * xy_scale
    y = (j - cj) * (SQRT3 / 2.0) * xy_scale
    z = heights * z_scale
    return np.stack((x, y, z), axis=-1)


def _mirror(points: np.ndarray) -> np.ndarray:
    out = points.copy()
    out[..., 2] *= -1.0
    return out


def cells_to_facets(heights: np.ndarray, xy_scale: float = 1.0, z_scale: float = 1.0) -> np.ndarray:
    """
    Triangulate a height field into a closed, mirror-symmetric solid.

    Every lattice triangle whose three corner cells have positive height gives
    one top facet at +z and one bottom facet at -z with reversed winding. The
    outline of the covered triangles is found by edge cancellation and each of
    its edges is closed off with two side facets.

    Returns an (F, 3, 3) float array of facets (vertex, xyz).
    """
    heights = np.asarray(heights, dtype=np.float64)
    if heights.ndim != 2:
        raise ValueError(f"Expected a 2-D height field, got shape {heights.shape}")

    pts = lattice_points(heights, xy_scale, z_scale)
    filled = heights > 0.0
    p00 = pts[:-1, :-1]
    p01 = pts[1:, :-1]
    p10 = pts[:-1, 1:]
    p11 = pts[1:, 1:]

    lower = filled[:-1, :-1] & filled[1:, :-1] & filled[:-1, 1:]
    upper = filled[1:, :-1] & filled[1:, 1:] & filled[:-1, 1:]

    facets = [
        np.stack((p00[lower], p01[lower], p10[lower]), axis=1),
        np.stack((_mirror(p10[lower]), _mirror(p01[lower]), _mirror(p00[lower])), axis=1),
        np.stack((p01[upper], p11[upper], p10[upper]), axis=1),
        np.stack((_mirror(p10[upper]), _mirror(p11[upper]), _mirror(p01[upper])), axis=1),
    ]

    segments = {}
    for corners, covered in ((LOWER_TRIANGLE, lower), (UPPER_TRIANGLE, upper)):
        for i, j in np.argwhere(covered):
            i = int(i)
            j = int(j)
            for k in range(3):
                di, dj = corners[k]
                ei, ej = corners[(k + 1) % 3]
                add_edge(segments, (i + di, j + dj), (i + ei, j + ej))

    sides = []
    for loop in walk_loops(segments):
        for a, b in contour_edges(loop):
            top0 = pts[a]
            top1 = pts[b]
            bottom0 = _mirror(top0)
            bottom1 = _mirror(top1)
            sides.append((top1, top0, bottom1))
            sides.append((bottom0, bottom1, top0))
    if sides:
        facets.append(np.asarray(sides, dtype=np.float64))

    return np.concatenate(facets, axis=0) if facets else np.empty((0, 3, 3))


__all__ = ["cells_to_facets", "lattice_points"]
