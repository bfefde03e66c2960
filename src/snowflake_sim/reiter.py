"""
Reiter's snow-crystal model.

A single field `s` holds the water content of every cell; cells with
`s >= 1` are frozen. Cells that are frozen or touch a frozen cell are
receptive: they keep their water and gain `gamma` per step. All other water
diffuses with rate `alpha` as if receptive cells held none.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Mapping, Optional

import numpy as np
from numba import njit, prange

from . import lattice
from .simulation import CrystalSimulator, Snapshot


@dataclass(frozen=True)
class ReiterConfig:
    n: int = 200
    alpha: float = 0.502  # diffusion rate
    beta: float = 0.4  # background water level
    gamma: float = 0.0001  # water added to receptive cells per step

    def replace(self, **changes: Any) -> "ReiterConfig":
        return replace(self, **changes)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ReiterConfig":
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})


@njit(cache=True, parallel=True)
def _update_kernel(s, receptive, u_sum, alpha, gamma, out):
    rows, cols = s.shape
    for i in prange(rows):
        for j in range(cols):
            if receptive[i, j]:
                # u = 0, so diffusion only brings in the neighbours' share
                out[i, j] = s[i, j] + gamma + alpha * (u_sum[i, j] / 6.0) / 2.0
            else:
                u = s[i, j]
                out[i, j] = u + alpha * (u_sum[i, j] / 6.0 - u) / 2.0


def init_grid(n: int, beta: float) -> np.ndarray:
    lattice.check_size(n)
    s = np.full((n, n), beta, dtype=np.float64)
    ci, cj = lattice.seed_index(n)
    s[ci, cj] = 1.0
    return s


def frozen_cells(s: np.ndarray) -> np.ndarray:
    return s >= 1.0


def receptive_cells(s: np.ndarray) -> np.ndarray:
    frozen = frozen_cells(s)
    return frozen | (lattice.count_neighbors(frozen) > 0)


def update_grid(s: np.ndarray, alpha: float, gamma: float) -> np.ndarray:
    """Return the field after one step; `s` is not modified."""
    receptive = receptive_cells(s)
    u = np.where(receptive, 0.0, s)
    u_sum = lattice.neighbor_sum(u)
    out = np.empty_like(s, dtype=np.float64)
    _update_kernel(s, receptive, u_sum, float(alpha), float(gamma), out)
    return out


class ReiterSimulator(CrystalSimulator):
    """Driver for the Reiter model."""

    model = "reiter"
    config_class = ReiterConfig

    def _initial_state(self, config: ReiterConfig) -> np.ndarray:
        return init_grid(config.n, config.beta)

    def _advance(self, state, config: ReiterConfig, rng: Optional[np.random.Generator]):
        return update_grid(state, config.alpha, config.gamma)

    def _snapshot(self, state: np.ndarray, step: int) -> Snapshot:
        ice = frozen_cells(state)
        return Snapshot(step=step, ice=ice, field=np.where(ice, state, 0.0))

    def _total_mass(self, state: np.ndarray) -> float:
        return float(state.sum())


__all__ = [
    "ReiterConfig",
    "ReiterSimulator",
    "frozen_cells",
    "init_grid",
    "receptive_cells",
    "update_grid",
]
