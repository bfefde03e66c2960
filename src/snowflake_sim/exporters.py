# src/snowflake_sim/exporters.py
from __future__ import annotations

import csv
import os
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Sequence

import numpy as np
import trimesh
from matplotlib.figure import Figure
from matplotlib.patches import PathPatch
from matplotlib.path import Path as MplPath

###############################################################################
# SVG
###############################################################################


def outline_path(contours: Sequence[np.ndarray]) -> MplPath:
    """One compound path with a closed subpath per contour."""
    vertices = []
    codes = []
    for pts in contours:
        if len(pts) == 0:
            continue
        vertices.extend(pts)
        vertices.append(pts[0])
        codes.append(MplPath.MOVETO)
        codes.extend([MplPath.LINETO] * (len(pts) - 1))
        codes.append(MplPath.CLOSEPOLY)
    return MplPath(np.asarray(vertices, dtype=np.float64).reshape(-1, 2), codes or None)


def write_svg(
    path: str | os.PathLike[str],
    contours: Sequence[np.ndarray],
    width: float,
    height: float,
) -> None:
    """
    Draw the contours as a filled black shape into an SVG file.

    Holes are traversed against the outer loops, so the non-zero fill rule
    leaves them empty. The y axis points down as in SVG user space.
    """
    fig = Figure(figsize=(width / 72.0, height / 72.0), dpi=72)
    ax = fig.add_axes((0.0, 0.0, 1.0, 1.0))
    ax.set_xlim(0.0, width)
    ax.set_ylim(height, 0.0)
    ax.set_axis_off()
    fig.patch.set_visible(False)
    if any(len(c) for c in contours):
        ax.add_patch(PathPatch(outline_path(contours), facecolor="black", edgecolor="none"))
    fig.savefig(path, format="svg")


###############################################################################
# STL
###############################################################################


def write_stl(path: str | os.PathLike[str], facets: np.ndarray) -> None:
    """
    Write facets of shape (F, 3, 3) as a binary STL file.

    Vertices are not merged, so facet order and winding are kept as given;
    trimesh derives the unit normals from the winding.
    """
    facets = np.asarray(facets, dtype=np.float64).reshape(-1, 3, 3)
    mesh = trimesh.Trimesh(
        vertices=facets.reshape(-1, 3),
        faces=np.arange(len(facets) * 3).reshape(-1, 3),
        process=False,
    )
    mesh.export(os.fspath(path), file_type="stl")


def read_stl(path: str | os.PathLike[str]) -> np.ndarray:
    """Facets of an STL file as an (F, 3, 3) float array."""
    mesh = trimesh.load(os.fspath(path), file_type="stl", force="mesh", process=False)
    return np.asarray(mesh.triangles, dtype=np.float64)


###############################################################################
# Parameter log
###############################################################################


@dataclass
class ParameterRecord:
    timestamp: str
    step: int
    params: Dict[str, Any]


@dataclass
class ParameterLog:
    """Timestamped configurations, one record per change."""

    records: List[ParameterRecord] = field(default_factory=list)

    def record(self, step: int, config: Any) -> bool:
        params = asdict(config)
        if self.records and self.records[-1].params == params:
            return False
        stamp = time.strftime("%Y-%m-%dT%H:%M:%S")
        self.records.append(ParameterRecord(timestamp=stamp, step=step, params=params))
        return True

    def write_csv(self, path: str | os.PathLike[str]) -> None:
        names: List[str] = []
        for rec in self.records:
            for key in rec.params:
                if key not in names:
                    names.append(key)
        with open(path, "w", newline="") as fh:
            writer = csv.DictWriter(fh, fieldnames=["timestamp", "step", *names])
            writer.writeheader()
            for rec in self.records:
                writer.writerow({"timestamp": rec.timestamp, "step": rec.step, **rec.params})


__all__ = [
    "ParameterLog",
    "ParameterRecord",
    "outline_path",
    "read_stl",
    "write_stl",
    "write_svg",
]
