"""Activation functions consumed by neurons."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable

from .types import ActivationFunction


@dataclass(frozen=True)
class Linear:
    """Identity activation, used for input-layer neurons."""

    name: str = "linear"

    def invoke(self, x: float) -> float:
        return float(x)

    def invoke_derivative(self, x: float) -> float:
        return 1.0


@dataclass(frozen=True)
class HyperbolicTangent:
    """``tanh`` activation with derivative ``1 - tanh(x)**2``."""

    name: str = "tanh"

    def invoke(self, x: float) -> float:
        return math.tanh(x)

    def invoke_derivative(self, x: float) -> float:
        return 1.0 - math.tanh(x) ** 2


@dataclass(frozen=True)
class Rectifier:
    """ReLU activation."""

    name: str = "relu"

    def invoke(self, x: float) -> float:
        return max(float(x), 0.0)

    def invoke_derivative(self, x: float) -> float:
        return 1.0 if x > 0.0 else 0.0


_REGISTRY: Dict[str, ActivationFunction] = {
    "linear": Linear(),
    "tanh": HyperbolicTangent(),
    "relu": Rectifier(),
}


def get_activation(name: str) -> ActivationFunction:
    """Return the shared activation instance registered under ``name``."""

    try:
        return _REGISTRY[name]
    except KeyError as exc:
        available = ", ".join(sorted(_REGISTRY))
        raise KeyError(f"Unknown activation {name!r}. Available activations: {available}") from exc


def names() -> Iterable[str]:
    return sorted(_REGISTRY)


__all__ = ["HyperbolicTangent", "Linear", "Rectifier", "get_activation", "names"]
