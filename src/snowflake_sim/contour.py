"""
Boundary extraction by edge cancellation.

Each true cell contributes its six hexagon edges, oriented the same way
around every cell. An edge shared by two true cells appears once in each
direction and the pair cancels; what survives is the boundary of the true
region, which is then walked into closed loops.

Vertices live in a doubled integer system: cell (i, j) is centred on
(2i + j, 3j) and its corners are that centre plus `HEX_CORNERS`. The final
projection `(s x / 2, s y / (2 sqrt 3))` puts cell centres on the Euclidean
positions returned by `lattice.hex_centers`.
"""

from __future__ import annotations

import logging
from typing import Dict, Hashable, Iterable, List, Set, Tuple

import numpy as np
from matplotlib.path import Path

from .lattice import SQRT3

logger = logging.getLogger(__name__)

HEX_CORNERS = ((1, 1), (0, 2), (-1, 1), (-1, -1), (0, -2), (1, -1))

Segments = Dict[Hashable, Set[Hashable]]


def add_edge(segments: Segments, start, end) -> None:
    """Insert a directed edge, cancelling it against its reverse if present."""
    reverse = segments.get(end)
    if reverse is not None and start in reverse:
        reverse.discard(start)
        if not reverse:
            del segments[end]
    else:
        segments.setdefault(start, set()).add(end)


def walk_loops(segments: Segments) -> List[list]:
    """
    Consume the edge map into vertex loops.

    Each loop lists its vertices once; the closing edge from the last
    vertex back to the first is implied. A vertex with more than one
    successor, or a walk that runs out of edges before closing, is logged
    and the walk carries on with whatever successor is available.
    """
    loops = []
    while segments:
        start = next(iter(segments))
        loop = [start]
        current = start
        while current in segments:
            successors = segments[current]
            if len(successors) != 1:
                logger.warning(
                    "Vertex %s has %d successors, expected 1", current, len(successors)
                )
            nxt = successors.pop()
            if not successors:
                del segments[current]
            if nxt == start:
                break
            loop.append(nxt)
            current = nxt
        else:
            logger.warning("Contour starting at %s did not close", start)
        loops.append(loop)
    return loops


def hex_edges(mask: np.ndarray) -> Segments:
    """Surviving (uncancelled) hexagon edges of the true cells of `mask`."""
    segments: Segments = {}
    for i, j in np.argwhere(mask):
        cx = 2 * int(i) + int(j)
        cy = 3 * int(j)
        for k, (dx, dy) in enumerate(HEX_CORNERS):
            ex, ey = HEX_CORNERS[(k + 1) % 6]
            add_edge(segments, (cx + dx, cy + dy), (cx + ex, cy + ey))
    return segments


def extract_contours(mask: np.ndarray, scale: float = 1.0) -> List[np.ndarray]:
    """
    Closed boundary polylines of the true region of `mask`.

    Returns a list of (k, 2) float arrays, one per boundary component. The
    list is sorted longest first; treating the longest loop as the outer
    boundary is only a heuristic (see `classify_contours`).
    """
    mask = np.asarray(mask, dtype=bool)
    if mask.ndim != 2:
        raise ValueError(f"Expected a 2-D mask, got shape {mask.shape}")

    loops = walk_loops(hex_edges(mask))
    loops.sort(key=len, reverse=True)

    contours = []
    for loop in loops:
        pts = np.asarray(loop, dtype=np.float64)
        pts[:, 0] *= scale / 2.0
        pts[:, 1] *= scale / (2.0 * SQRT3)
        contours.append(pts)
    return contours


def classify_contours(contours: Iterable[np.ndarray]) -> List[bool]:
    """
    True for outer boundaries, False for holes.

    Uses the nesting depth of each loop: a loop enclosed by an even number of
    other loops is an outer boundary. Boundary loops never share a vertex, so
    the first vertex of a loop is a valid test point.
    """
    contours = list(contours)
    paths = [Path(c, closed=False) for c in contours]
    outer = []
    for idx, pts in enumerate(contours):
        point = tuple(pts[0])
        depth = sum(
            1 for other, path in enumerate(paths)
            if other != idx and path.contains_point(point)
        )
        outer.append(depth % 2 == 0)
    return outer


def contour_edges(loop: List[Tuple]) -> List[Tuple]:
    """Directed edges of a loop, including the implied closing edge."""
    return list(zip(loop, loop[1:] + loop[:1]))


__all__ = [
    "HEX_CORNERS",
    "add_edge",
    "classify_contours",
    "contour_edges",
    "extract_contours",
    "hex_edges",
    "walk_loops",
]
