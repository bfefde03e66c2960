"""
Gravner-Griffeath snow-crystal automaton.

Every step runs five stages over the toroidal hexagonal lattice:

1.  **Diffusion:** vapor is averaged over each non-ice cell and its six
    neighbours. Frozen neighbours hold no vapor, so the cell's own density is
    reflected in their place (zero-flux wall).
2.  **Freezing:** boundary cells (non-ice with at least one ice neighbour)
    split their vapor into boundary mass `(1 - kappa) d` and crystal mass
    `kappa d`.
3.  **Attachment:** boundary cells join the crystal depending on how many
    ice neighbours they have, their boundary mass and the surrounding vapor.
4.  **Melting:** cells on the outer surface of the updated crystal return
    `mu b` and `gamma c` to the vapor field.
5.  **Noise:** optional multiplicative `1 +/- sigma` perturbation of vapor.

The neighbour counts are taken once from the pre-step ice mask and reused by
every stage. Each stage reads complete input arrays and writes new ones, so
every cell of a stage is updated simultaneously.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Mapping, Optional

import numpy as np
from numba import njit, prange

from . import lattice
from .lattice import LatticeState
from .simulation import CrystalSimulator, Snapshot, _read_only


class InvariantViolation(RuntimeError):
    """A cell flagged as boundary has no frozen neighbour."""


@dataclass(frozen=True)
class GravnerGriffeathConfig:
    """Parameter snapshot for one step of the Gravner-Griffeath model."""

    n: int = 200
    rho: float = 0.5  # initial vapor density
    beta: float = 1.4  # tip attachment threshold for b (anisotropy)
    alpha: float = 0.1  # concave attachment threshold for b
    theta: float = 0.005  # concave attachment threshold for d
    kappa: float = 0.001  # freezing split
    mu: float = 0.06  # melting rate of b
    gamma: float = 0.001  # sublimation rate of c
    sigma: float = 0.0  # noise amplitude

    def replace(self, **changes: Any) -> "GravnerGriffeathConfig":
        return replace(self, **changes)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GravnerGriffeathConfig":
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})


###############################################################################
# Stage kernels
###############################################################################


@njit(cache=True, parallel=True)
def _diffuse_kernel(ice, d, counts, out):
    rows, cols = d.shape
    for i in prange(rows):
        ip = (i + 1) % rows
        im = (i + rows - 1) % rows
        for j in range(cols):
            if ice[i, j]:
                out[i, j] = 0.0
            else:
                jp = (j + 1) % cols
                jm = (j + cols - 1) % cols
                out[i, j] = (
                    d[i, j]
                    + d[ip, j]
                    + d[im, j]
                    + d[i, jp]
                    + d[i, jm]
                    + d[im, jp]
                    + d[ip, jm]
                    + counts[i, j] * d[i, j]
                ) / 7.0


@njit(cache=True, parallel=True)
def _freeze_kernel(boundary, b, c, d, kappa, b_out, c_out, d_out):
    rows, cols = d.shape
    for i in prange(rows):
        for j in range(cols):
            if boundary[i, j]:
                b_out[i, j] = b[i, j] + (1.0 - kappa) * d[i, j]
                c_out[i, j] = c[i, j] + kappa * d[i, j]
                d_out[i, j] = 0.0
            else:
                b_out[i, j] = b[i, j]
                c_out[i, j] = c[i, j]
                d_out[i, j] = d[i, j]


@njit(cache=True, parallel=True)
def _attach_kernel(ice, boundary, counts, b, c, d, alpha, beta, theta,
                   ice_out, b_out, c_out):
    rows, cols = d.shape
    for i in prange(rows):
        ip = (i + 1) % rows
        im = (i + rows - 1) % rows
        for j in range(cols):
            ice_out[i, j] = ice[i, j]
            b_out[i, j] = b[i, j]
            c_out[i, j] = c[i, j]
            if not boundary[i, j]:
                continue

            k = counts[i, j]
            if k <= 2:
                # tips and flat spots
                frozen = b[i, j] >= beta
            elif k == 3:
                # concave spots freeze early once the vapor around them is spent
                if b[i, j] >= 1.0:
                    frozen = True
                elif b[i, j] >= alpha:
                    jp = (j + 1) % cols
                    jm = (j + cols - 1) % cols
                    vapor = (
                        d[ip, j]
                        + d[im, j]
                        + d[i, jp]
                        + d[i, jm]
                        + d[im, jp]
                        + d[ip, jm]
                    )
                    frozen = vapor < theta
                else:
                    frozen = False
            else:
                frozen = True

            if frozen:
                ice_out[i, j] = True
                c_out[i, j] = c[i, j] + b[i, j]
                b_out[i, j] = 0.0


@njit(cache=True, parallel=True)
def _melt_kernel(ice, b, c, d, mu, gamma, b_out, c_out, d_out):
    rows, cols = d.shape
    for i in prange(rows):
        ip = (i + 1) % rows
        im = (i + rows - 1) % rows
        for j in range(cols):
            jp = (j + 1) % cols
            jm = (j + cols - 1) % cols
            surface = not ice[i, j] and (
                ice[ip, j]
                or ice[im, j]
                or ice[i, jp]
                or ice[i, jm]
                or ice[im, jp]
                or ice[ip, jm]
            )
            if surface:
                mu_b = mu * b[i, j]
                gamma_c = gamma * c[i, j]
                b_out[i, j] = b[i, j] - mu_b
                c_out[i, j] = c[i, j] - gamma_c
                d_out[i, j] = d[i, j] + mu_b + gamma_c
            else:
                b_out[i, j] = b[i, j]
                c_out[i, j] = c[i, j]
                d_out[i, j] = d[i, j]


###############################################################################
# Stages
###############################################################################


def boundary_cells(ice: np.ndarray, counts: np.ndarray) -> np.ndarray:
    """Non-ice cells with at least one frozen neighbour."""
    return ~ice & (counts > 0)


def diffuse(ice: np.ndarray, vapor: np.ndarray, counts: np.ndarray) -> np.ndarray:
    out = np.empty_like(vapor, dtype=np.float64)
    _diffuse_kernel(ice, vapor, counts, out)
    return out


def freeze(boundary, boundary_mass, crystal_mass, vapor, kappa: float):
    b_out = np.empty_like(boundary_mass)
    c_out = np.empty_like(crystal_mass)
    d_out = np.empty_like(vapor)
    _freeze_kernel(boundary, boundary_mass, crystal_mass, vapor, float(kappa),
                   b_out, c_out, d_out)
    return b_out, c_out, d_out


def attach(ice, boundary, counts, boundary_mass, crystal_mass, vapor,
           alpha: float, beta: float, theta: float):
    """
    Decide which boundary cells join the crystal.

    `vapor` must be the field produced by freezing. Raises InvariantViolation
    if a cell flagged as boundary is frozen already or has no ice neighbour.
    """
    bad = boundary & (ice | (counts == 0))
    if bad.any():
        i, j = np.argwhere(bad)[0]
        raise InvariantViolation(
            f"cell ({i}, {j}) is flagged as boundary but has "
            f"{int(counts[i, j])} frozen neighbours (ice={bool(ice[i, j])})"
        )

    ice_out = np.empty_like(ice)
    b_out = np.empty_like(boundary_mass)
    c_out = np.empty_like(crystal_mass)
    _attach_kernel(ice, boundary, counts, boundary_mass, crystal_mass, vapor,
                   float(alpha), float(beta), float(theta),
                   ice_out, b_out, c_out)
    return ice_out, b_out, c_out


def melt(ice, boundary_mass, crystal_mass, vapor, mu: float, gamma: float):
    """`ice` is the mask produced by attachment."""
    b_out = np.empty_like(boundary_mass)
    c_out = np.empty_like(crystal_mass)
    d_out = np.empty_like(vapor)
    _melt_kernel(ice, boundary_mass, crystal_mass, vapor, float(mu), float(gamma),
                 b_out, c_out, d_out)
    return b_out, c_out, d_out


def perturb(vapor: np.ndarray, sigma: float, rng: np.random.Generator) -> np.ndarray:
    """Multiply each cell's vapor by 1 + sigma or 1 - sigma on a fair coin."""
    heads = rng.random(vapor.shape) < 0.5
    return np.where(heads, vapor * (1.0 + sigma), vapor * (1.0 - sigma))


def update(
    state: LatticeState,
    config: GravnerGriffeathConfig,
    rng: Optional[np.random.Generator] = None,
) -> LatticeState:
    """
    Advance the lattice by one step and return the new state.

    The input state is left untouched. `rng` is only consulted when
    `config.sigma` is non-zero.
    """
    ice = state.ice
    counts = lattice.count_neighbors(ice)
    boundary = boundary_cells(ice, counts)

    d = diffuse(ice, state.vapor_density, counts)
    b, c, d = freeze(boundary, state.boundary_mass, state.crystal_mass, d, config.kappa)
    ice_new, b, c = attach(ice, boundary, counts, b, c, d,
                           config.alpha, config.beta, config.theta)
    b, c, d = melt(ice_new, b, c, d, config.mu, config.gamma)

    if config.sigma != 0.0:
        if rng is None:
            rng = np.random.default_rng()
        d = perturb(d, config.sigma, rng)

    return LatticeState(ice=ice_new, boundary_mass=b, crystal_mass=c, vapor_density=d)


###############################################################################
# Simulator
###############################################################################


class GravnerGriffeathSimulator(CrystalSimulator):
    """Driver for the Gravner-Griffeath model."""

    model = "gravner_griffeath"
    config_class = GravnerGriffeathConfig

    def _initial_state(self, config: GravnerGriffeathConfig) -> LatticeState:
        return lattice.make_state(config.n, config.rho)

    def _advance(self, state, config, rng):
        return update(state, config, rng)

    def _snapshot(self, state: LatticeState, step: int) -> Snapshot:
        ice = state.ice
        field = np.where(ice, state.crystal_mass, 0.0)
        return Snapshot(step=step, ice=ice, field=field)

    def _total_mass(self, state: LatticeState) -> float:
        return state.total_mass()

    @property
    def state(self) -> LatticeState:
        """The last committed lattice state, as read-only views."""
        with self._lock:
            state = self._state
        return LatticeState(
            ice=_read_only(state.ice),
            boundary_mass=_read_only(state.boundary_mass),
            crystal_mass=_read_only(state.crystal_mass),
            vapor_density=_read_only(state.vapor_density),
        )


__all__ = [
    "GravnerGriffeathConfig",
    "GravnerGriffeathSimulator",
    "InvariantViolation",
    "attach",
    "boundary_cells",
    "diffuse",
    "freeze",
    "melt",
    "perturb",
    "update",
]
