# src/snowflake_sim/utils.py
from __future__ import annotations

import json
import os
import time
import tomllib
from pathlib import Path
from typing import Any, Dict

import numpy as np


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Seeded generator for the noise stage (None draws fresh entropy)."""
    return np.random.default_rng(seed)


def now_str() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


def default_output_stem(model: str, n: int, steps: int) -> str:
    return f"{model}_N{n}_T{steps}_{now_str()}"


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load simulation parameters from JSON or TOML.

    A TOML file may keep the parameters under a `[params]` table.
    """
    path = str(path)
    with open(path, "rb") as fh:
        data = fh.read()
    suffix = Path(path).suffix.lower()
    if suffix in {".json", ""}:
        params = json.loads(data.decode("utf-8"))
    elif suffix in {".toml", ".tml"}:
        params = tomllib.loads(data.decode("utf-8"))
    else:
        raise ValueError(f"Unsupported parameter file format: {suffix}")
    if isinstance(params.get("params"), dict):
        params = params["params"]
    return params
