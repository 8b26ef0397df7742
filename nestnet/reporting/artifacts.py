"""Run artifact writers."""

from __future__ import annotations

import json
import platform
import time
from pathlib import Path
from typing import Mapping, Sequence

import numpy as np

from ..core.types import Topology
from .metrics import git_sha


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    dataset_provenance: Mapping[str, object],
    topology: Topology,
    parameters: int,
) -> str:
    """Write ``manifest.json`` with the config, network shape and environment."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "git_sha": git_sha(),
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": config,
        "dataset": dict(dataset_provenance),
        "topology": topology.as_dict(),
        "parameters": int(parameters),
        "environment": {
            "python": platform.python_version(),
            "numpy": np.__version__,
        },
    }
    path.write_text(json.dumps(manifest, indent=2))
    return str(path)


def write_predictions(
    path: str | Path,
    *,
    inputs: Sequence[Sequence[float]],
    targets: Sequence[Sequence[float]],
    outputs: Sequence[Sequence[float]],
    metrics: Mapping[str, float],
) -> str:
    """Write the trained network's output for every row next to its target."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = [
        {
            "input": np.asarray(x, dtype=np.float64).tolist(),
            "target": np.asarray(t, dtype=np.float64).tolist(),
            "output": np.asarray(y, dtype=np.float64).tolist(),
        }
        for x, t, y in zip(inputs, targets, outputs)
    ]
    payload = {"metrics": {k: float(v) for k, v in metrics.items()}, "rows": rows}
    path.write_text(json.dumps(payload, indent=2))
    return str(path)


__all__ = ["write_manifest", "write_predictions"]
