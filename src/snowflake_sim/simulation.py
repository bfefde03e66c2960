"""
Common driver for the snow-crystal models.

A simulator owns the current lattice state and the step counter. `step()`
builds a complete new state from the committed one and swaps it in under a
lock, so readers calling `snapshot()` from another thread only ever see
whole steps. Resets requested with `request_reset()` are applied at the
start of the next step, never in the middle of one.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from . import contour, exporters, surface, utils

logger = logging.getLogger(__name__)

MASS_LOG_INTERVAL = 100


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of one committed step."""

    step: int
    ice: np.ndarray
    field: np.ndarray

    @property
    def n(self) -> int:
        return self.ice.shape[0]


def _read_only(arr: np.ndarray) -> np.ndarray:
    view = arr.view()
    view.flags.writeable = False
    return view


class CrystalSimulator:
    """
    Base class: subclasses provide the model through `_initial_state`,
    `_advance`, `_snapshot` and `_total_mass`.
    """

    model = "base"
    config_class: Any = None

    def __init__(self, config=None, seed: int | None = None):
        self.config = config or self.config_class()
        self.seed = seed
        self.rng = utils.make_rng(seed)
        self.parameter_log = exporters.ParameterLog()

        self._lock = threading.RLock()
        self._step_lock = threading.Lock()
        self._reset_pending = False
        self._state = None
        self._step = 0
        self._last_config = None
        self.reset()

    # ------------------------------------------------------------------ model
    def _initial_state(self, config):
        raise NotImplementedError

    def _advance(self, state, config, rng):
        raise NotImplementedError

    def _snapshot(self, state, step: int) -> Snapshot:
        raise NotImplementedError

    def _total_mass(self, state) -> float:
        raise NotImplementedError

    # ------------------------------------------------------------------ control
    @property
    def step_count(self) -> int:
        with self._lock:
            return self._step

    def set_config(self, config) -> None:
        """Replace the desired configuration; picked up by the next step."""
        self.config = config

    def reset(self, config=None) -> None:
        """
        Rebuild the state from the seed and zero the step counter.

        A `config` passed here replaces `self.config`, so later steps run
        with the lattice size the state was rebuilt for.
        """
        with self._step_lock:
            if config is not None:
                self.config = config
            self._rebuild(self.config)

    def request_reset(self) -> None:
        """Schedule a reset for the start of the next step."""
        self._reset_pending = True

    def _rebuild(self, config) -> None:
        state = self._initial_state(config)
        with self._lock:
            self._state = state
            self._step = 0
            self._reset_pending = False
            self._last_config = None

    def step(self, config=None, rng: Optional[np.random.Generator] = None) -> int:
        """
        Advance exactly one step and return the new step number.

        `config` defaults to a snapshot of `self.config` taken before the
        step starts; `rng` defaults to the simulator's seeded generator.
        """
        config = config or self.config
        rng = rng or self.rng
        with self._step_lock:
            if self._reset_pending:
                self._rebuild(config)

            with self._lock:
                state = self._state
                step = self._step

            if config != self._last_config:
                logger.info("step %d: %s", step, config)
                self.parameter_log.record(step, config)
                self._last_config = config
            if step % MASS_LOG_INTERVAL == 0:
                logger.debug("step %d: total mass %.6f", step, self._total_mass(state))

            new_state = self._advance(state, config, rng)

            with self._lock:
                self._state = new_state
                self._step = step + 1
                return self._step

    def run(self, steps: int) -> None:
        for _ in range(steps):
            self.step()

    # ------------------------------------------------------------------ output
    def snapshot(self) -> Snapshot:
        with self._lock:
            if self._state is None:
                raise RuntimeError("Simulation has no state. Call reset() first.")
            snap = self._snapshot(self._state, self._step)
        return Snapshot(step=snap.step, ice=_read_only(snap.ice), field=_read_only(snap.field))

    def total_mass(self) -> float:
        with self._lock:
            return self._total_mass(self._state)

    def export_outline(self, scale: float = 1.0) -> list[np.ndarray]:
        """Boundary polylines of the current ice mask, longest first."""
        return contour.extract_contours(self.snapshot().ice, scale)

    def export_surface(self, xy_scale: float = 1.0, z_scale: float = 1.0) -> np.ndarray:
        """Closed triangulated surface of the crystal, shape (F, 3, 3)."""
        return surface.cells_to_facets(self.snapshot().field, xy_scale, z_scale)

    def save_svg(self, path: str | os.PathLike[str], scale: float = 1.0) -> bool:
        n = self.snapshot().n
        width = 1.5 * n * scale
        height = np.sqrt(3.0) * n * scale / 2.0
        try:
            exporters.write_svg(path, self.export_outline(scale), width, height)
        except OSError as exc:
            logger.error("Failed to write SVG to %s: %s", path, exc)
            return False
        return True

    def save_stl(
        self, path: str | os.PathLike[str], xy_scale: float = 1.0, z_scale: float = 1.0
    ) -> bool:
        try:
            exporters.write_stl(path, self.export_surface(xy_scale, z_scale))
        except OSError as exc:
            logger.error("Failed to write STL to %s: %s", path, exc)
            return False
        return True

    def save_parameter_log(self, path: str | os.PathLike[str]) -> bool:
        try:
            self.parameter_log.write_csv(path)
        except OSError as exc:
            logger.error("Failed to write parameter log to %s: %s", path, exc)
            return False
        return True


__all__ = ["CrystalSimulator", "Snapshot"]
