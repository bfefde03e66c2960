"""
Snow-Crystal Simulation Library

This package provides two hexagonal-lattice snow-crystal automata:
- GravnerGriffeathSimulator: diffusion, freezing, attachment, melting, noise
- ReiterSimulator: single-field diffusion with receptive-cell growth

plus boundary contour tracing and surface triangulation for export.
"""

from .gravner_griffeath import (
    GravnerGriffeathConfig,
    GravnerGriffeathSimulator,
    InvariantViolation,
)
from .reiter import ReiterConfig, ReiterSimulator
from .simulation import CrystalSimulator, Snapshot
from .contour import classify_contours, extract_contours
from .surface import cells_to_facets
from . import utils

__all__ = [
    # Simulators
    "CrystalSimulator",
    "GravnerGriffeathSimulator",
    "ReiterSimulator",
    # Configuration classes
    "GravnerGriffeathConfig",
    "ReiterConfig",
    # Results and errors
    "Snapshot",
    "InvariantViolation",
    # Geometry
    "extract_contours",
    "classify_contours",
    "cells_to_facets",
    # Utilities
    "utils",
]
