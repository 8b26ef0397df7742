"""Config-driven training runs with presets and run artifacts."""

from __future__ import annotations

import json
import logging
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, Mapping, Sequence

import numpy as np

from .. import data as datasets
from ..core.types import RunResult
from ..models import build_model
from ..reporting.artifacts import write_manifest, write_predictions
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import ErrorCurvePlot
from ..reporting.summary import write_summary
from .metrics import evaluate
from .trainer import Trainer

logger = logging.getLogger(__name__)

_INNER_XOR = {"layers": [2, 3, 1], "activation": "tanh", "input_activation": "linear"}

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor": {
        "data": {"name": "xor", "options": {}},
        "model": {
            "type": "feedforward",
            "layers": [2, 3, 1],
            "activation": "tanh",
            "input_activation": "linear",
            "policy": "digital",
            "error": "rms",
        },
        "train": {
            "epochs": 10000,
            "lr": 0.1,
            "momentum": 0.9,
            "seed": 0,
            "target_error": None,
            "run_dir": "runs/xor",
            "enable_plots": False,
        },
    },
    "compound-logic": {
        "data": {"name": "compound_logic", "options": {}},
        "model": {
            "type": "nested",
            "modules": [dict(_INNER_XOR), dict(_INNER_XOR)],
            "hidden": [3],
            "outputs": 1,
            "activation": "tanh",
            "policy": "digital",
            "error": "rms",
        },
        "train": {
            "epochs": 2000,
            "lr": 0.01,
            "momentum": 0.0,
            "seed": 0,
            "target_error": None,
            "run_dir": "runs/compound-logic",
            "enable_plots": False,
        },
    },
    "and-gate": {
        "data": {"name": "and", "options": {}},
        "model": {
            "type": "feedforward",
            "layers": [2, 1],
            "activation": "tanh",
            "input_activation": "linear",
            "policy": "digital",
            "error": "rms",
        },
        "train": {
            "epochs": 500,
            "lr": 0.1,
            "momentum": 0.5,
            "seed": 0,
            "target_error": 0.05,
            "run_dir": "runs/and-gate",
            "enable_plots": False,
        },
    },
}

_REQUIRED_SECTIONS = {"data", "model", "train"}
_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None


def read_config_file(path: str | Path) -> Mapping[str, object]:
    """Decode a JSON or YAML config file into a mapping."""

    path = Path(path)
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load YAML config files") from exc
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = read_config_file(file)
                missing = _REQUIRED_SECTIONS - set(data)
                if missing:
                    raise KeyError(
                        f"Preset {file.name} is missing required sections: {', '.join(sorted(missing))}"
                    )
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    """Return every preset, with preset files overriding built-ins of the same name."""

    combined: Dict[str, Mapping[str, object]] = {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    available = presets()
    if name not in available:
        raise KeyError(f"Unknown preset {name!r}. Available presets: {', '.join(sorted(available))}")
    return available[name]


def merge_config(base: Mapping[str, object], override: Mapping[str, object]) -> Dict[str, object]:
    """Recursively merge ``override`` into a copy of ``base``."""

    merged: Dict[str, object] = deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_config(merged[key], value)  # type: ignore[arg-type]
        else:
            merged[key] = deepcopy(value)
    return merged


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Build the dataset and network described by ``config``, train, and write artifacts."""

    missing = _REQUIRED_SECTIONS - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    dataset = datasets.get(str(data_cfg["name"]), **dict(data_cfg.get("options") or {}))
    seed = int(train_cfg.get("seed", 0))
    epochs = int(train_cfg.get("epochs", 1))
    learning_rate = float(train_cfg.get("lr", 0.1))
    momentum = float(train_cfg.get("momentum", 0.0))
    target_error = train_cfg.get("target_error")
    target_error = float(target_error) if target_error is not None else None

    network, layers = build_model(model_cfg, np.random.default_rng(seed))
    if network.input_size != dataset.d_in:
        raise ValueError(f"Network takes {network.input_size} inputs but dataset {dataset.name} has {dataset.d_in}")
    if network.output_size != dataset.d_out:
        raise ValueError(
            f"Network produces {network.output_size} outputs but dataset {dataset.name} has {dataset.d_out}"
        )

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)
    topology = network.topology(layers)

    _print_startup_summary(
        dataset_name=dataset.name,
        layers=layers,
        model_type=str(model_cfg.get("type", "feedforward")),
        policy=network.policy.as_dict(),
        epochs=epochs,
        learning_rate=learning_rate,
        momentum=momentum,
        param_count=network.parameter_count(),
    )

    jsonl = JsonlSink(run_dir / "metrics.jsonl", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv")
    plot = ErrorCurvePlot(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    trainer = Trainer(network, learning_rate, momentum, callbacks=[jsonl, csv_sink, plot])

    started = time.perf_counter()
    result = trainer.run(
        dataset.inputs,
        dataset.targets,
        epochs,
        target_error=target_error,
        checkpoint_dir=run_dir,
    )
    logger.info(
        "Trained %s for %d epochs in %.2fs, final error %.6f",
        dataset.name,
        result.epochs,
        time.perf_counter() - started,
        result.final_error,
    )

    outputs = trainer.predict(dataset.inputs)
    metrics = evaluate(outputs, dataset.targets)
    safe_config = json.loads(json.dumps(config))
    write_predictions(
        run_dir / "predictions.json",
        inputs=dataset.inputs,
        targets=dataset.targets,
        outputs=outputs,
        metrics=metrics,
    )
    write_manifest(
        run_dir / "manifest.json",
        config=safe_config,
        dataset_provenance=dataset.provenance,
        topology=topology,
        parameters=network.parameter_count(),
    )
    write_summary(jsonl.path, run_dir / "summary.json", tail=int(train_cfg.get("summary_tail", 32)))
    (run_dir / "config.json").write_text(json.dumps(safe_config, indent=2))
    return result


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if train_cfg.get("run_dir"):
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


def _print_startup_summary(
    *,
    dataset_name: str,
    layers: Sequence[int],
    model_type: str,
    policy: Mapping[str, bool],
    epochs: int,
    learning_rate: float,
    momentum: float,
    param_count: int,
) -> None:
    print("=== nestnet run ===")
    print(f"Dataset       : {dataset_name}")
    print(f"Model         : {model_type}")
    print(f"Layers        : {list(layers)}")
    print(f"Signal policy : {dict(policy)}")
    print(f"Epochs        : {epochs}")
    print(f"Learning rate : {learning_rate}")
    print(f"Momentum      : {momentum}")
    print(f"Parameters    : {param_count}")
    print("===================")


__all__ = ["load_preset", "merge_config", "presets", "read_config_file", "run_pipeline"]
