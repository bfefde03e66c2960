#!/usr/bin/env python3
"""
Single Snow-Crystal Simulation Runner

Runs one of the two lattice models for a fixed number of steps and writes
the requested outputs (SVG outline, STL surface, parameter CSV, PNG render).
"""

import argparse
import logging
import sys
import time
from pathlib import Path

# Add package source to path when running from a checkout
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from snowflake_sim import (
    GravnerGriffeathConfig,
    GravnerGriffeathSimulator,
    ReiterConfig,
    ReiterSimulator,
    utils,
)
from snowflake_sim.analysis import crystal_radius

MODELS = {
    "gg": (GravnerGriffeathSimulator, GravnerGriffeathConfig),
    "reiter": (ReiterSimulator, ReiterConfig),
}

PARAM_FLAGS = ("rho", "beta", "alpha", "theta", "kappa", "mu", "gamma", "sigma")


def build_config(args):
    _, config_class = MODELS[args.model]
    params = utils.load_params(args.config) if args.config else {}
    if args.n is not None:
        params["n"] = args.n
    for name in PARAM_FLAGS:
        value = getattr(args, name)
        if value is not None:
            params[name] = value
    return config_class.from_dict(params)


def save_png(sim, path):
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    from snowflake_sim.plotting import plot_crystal

    snap = sim.snapshot()
    ax = plot_crystal(snap.field, snap.ice)
    ax.set_title(f"{sim.model}, step {snap.step}")
    try:
        ax.figure.savefig(path, dpi=150)
    except OSError as exc:
        print(f"Failed to write {path}: {exc}")
        return False
    finally:
        plt.close(ax.figure)
    return True


def main():
    parser = argparse.ArgumentParser(
        description="Run a single snow-crystal simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--model", choices=sorted(MODELS), default="gg",
                        help="Simulation model to use (default: gg)")
    parser.add_argument("--steps", type=int, default=1000, help="Number of steps")
    parser.add_argument("--n", type=int, default=None, help="Lattice size (even)")
    parser.add_argument("--config", type=str, default=None,
                        help="JSON or TOML parameter file")
    for name in PARAM_FLAGS:
        parser.add_argument(f"--{name}", type=float, default=None)
    parser.add_argument("--seed", type=int, default=42,
                        help="Random seed for the noise stage (default: 42)")
    parser.add_argument("--out-dir", type=str, default="results")
    parser.add_argument("--svg", action="store_true", help="Write the outline as SVG")
    parser.add_argument("--stl", action="store_true", help="Write the surface as STL")
    parser.add_argument("--csv", action="store_true", help="Write the parameter log")
    parser.add_argument("--png", action="store_true", help="Render the crystal")
    parser.add_argument("--xy-scale", type=float, default=1.0)
    parser.add_argument("--z-scale", type=float, default=1.0)
    parser.add_argument("-v", "--verbose", action="store_true")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    config = build_config(args)
    simulator_class, _ = MODELS[args.model]
    sim = simulator_class(config, seed=args.seed)

    print(f"Running {sim.model} simulation: n={config.n}, steps={args.steps}, seed={args.seed}")
    start_time = time.time()
    sim.run(args.steps)
    elapsed_time = time.time() - start_time

    snap = sim.snapshot()
    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    stem = out_dir / utils.default_output_stem(sim.model, config.n, args.steps)

    written = []
    if args.svg and sim.save_svg(stem.with_suffix(".svg"), args.xy_scale):
        written.append(stem.with_suffix(".svg"))
    if args.stl and sim.save_stl(stem.with_suffix(".stl"), args.xy_scale, args.z_scale):
        written.append(stem.with_suffix(".stl"))
    if args.csv and sim.save_parameter_log(stem.with_suffix(".csv")):
        written.append(stem.with_suffix(".csv"))
    if args.png and save_png(sim, stem.with_suffix(".png")):
        written.append(stem.with_suffix(".png"))

    print(f"\nSimulation completed in {elapsed_time:.2f} seconds")
    print(f"   Frozen cells: {int(snap.ice.sum())}")
    print(f"   Crystal radius: {crystal_radius(snap.ice):.2f}")
    print(f"   Total mass: {sim.total_mass():.4f}")
    for path in written:
        print(f"   Output saved to: {path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
