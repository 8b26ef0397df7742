"""Evaluation metrics for trained networks."""

from __future__ import annotations

from typing import Mapping

import numpy as np

from ..core.aggregators import (
    MeanAbsoluteCalculator,
    RmsCalculator,
    calculator_names,
    get_calculator,
)
from ..core.types import Array


def sign_accuracy(predictions: Array, targets: Array) -> float:
    """Fraction of outputs whose sign matches the target's sign."""

    preds = np.asarray(predictions, dtype=np.float64)
    targs = np.asarray(targets, dtype=np.float64)
    if preds.size == 0:
        return 0.0
    return float(np.mean((preds >= 0.0) == (targs >= 0.0)))


def evaluate(predictions: Array, targets: Array) -> Mapping[str, float]:
    """Return the metrics reported at the end of a run."""

    preds = np.asarray(predictions, dtype=np.float64)
    targs = np.asarray(targets, dtype=np.float64)
    diff = targs - preds
    return {
        "rmse": float(np.sqrt(np.mean(diff**2))) if diff.size else 0.0,
        "mae": float(np.mean(np.abs(diff))) if diff.size else 0.0,
        "sign_accuracy": sign_accuracy(preds, targs),
    }


__all__ = [
    "MeanAbsoluteCalculator",
    "RmsCalculator",
    "calculator_names",
    "evaluate",
    "get_calculator",
    "sign_accuracy",
]
