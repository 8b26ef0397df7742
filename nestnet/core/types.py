"""Core typing contracts for nestnet."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Protocol, Sequence, runtime_checkable

import numpy as np

Array = np.ndarray
Signals = Sequence[float] | Array


class ActivationFunction(Protocol):
    """Nonlinearity applied by a neuron to its biased input."""

    def invoke(self, x: float) -> float:
        """Return the activated value of ``x``."""

    def invoke_derivative(self, x: float) -> float:
        """Return the derivative of the activation evaluated at ``x``."""


class ErrorCalculator(Protocol):
    """Running statistic over the error signals of one training epoch."""

    def reset(self) -> None:
        """Forget every signal added so far."""

    def add_to_error_calc(self, signals: Signals) -> None:
        """Fold ``signals`` into the running statistic."""

    def calculate(self) -> float:
        """Return the statistic over everything added since the last reset."""


@runtime_checkable
class SupervisedLearner(Protocol):
    """Node capability required at both ends of a backpropagation connection."""

    def calculate_error(self, signal: float) -> None: ...

    def apply_weight_adjustments(self, learning_rate: float, momentum: float) -> None: ...

    def clear_cached_errors(self) -> None: ...


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :meth:`nestnet.training.trainer.Trainer.run`."""

    epochs: int
    final_error: float
    stopped_early: bool = False
    checkpoint_path: str = ""


@dataclass(frozen=True)
class Topology:
    """Shape of a network as recorded in run manifests."""

    input_size: int
    output_size: int
    neurons: int
    connections: int
    layers: List[int] = field(default_factory=list)

    def as_dict(self) -> Dict[str, object]:
        return {
            "input_size": self.input_size,
            "output_size": self.output_size,
            "neurons": self.neurons,
            "connections": self.connections,
            "layers": list(self.layers),
        }
