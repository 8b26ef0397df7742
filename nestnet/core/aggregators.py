"""Running error statistics consumed by :class:`~nestnet.core.network.BackpropNetwork`."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable

import numpy as np

from .errors import EmptyAggregateError
from .types import ErrorCalculator, Signals


@dataclass
class RmsCalculator:
    """Root-mean-square of every error signal added since the last reset."""

    _count: int = field(default=0, init=False, repr=False)
    _squared_sum: float = field(default=0.0, init=False, repr=False)

    def reset(self) -> None:
        self._count = 0
        self._squared_sum = 0.0

    def add_to_error_calc(self, signals: Signals) -> None:
        values = np.asarray(signals, dtype=np.float64).reshape(-1)
        self._squared_sum += float(np.sum(values * values))
        self._count += int(values.size)

    def calculate(self) -> float:
        if self._count == 0:
            raise EmptyAggregateError(
                "No error values have been provided; call add_to_error_calc before calculate"
            )
        return math.sqrt(self._squared_sum / self._count)


@dataclass
class MeanAbsoluteCalculator:
    """Mean absolute error over every signal added since the last reset."""

    _count: int = field(default=0, init=False, repr=False)
    _absolute_sum: float = field(default=0.0, init=False, repr=False)

    def reset(self) -> None:
        self._count = 0
        self._absolute_sum = 0.0

    def add_to_error_calc(self, signals: Signals) -> None:
        values = np.asarray(signals, dtype=np.float64).reshape(-1)
        self._absolute_sum += float(np.sum(np.abs(values)))
        self._count += int(values.size)

    def calculate(self) -> float:
        if self._count == 0:
            raise EmptyAggregateError(
                "No error values have been provided; call add_to_error_calc before calculate"
            )
        return self._absolute_sum / self._count


_CALCULATORS: Dict[str, Callable[[], ErrorCalculator]] = {
    "rms": RmsCalculator,
    "mae": MeanAbsoluteCalculator,
}


def get_calculator(name: str) -> ErrorCalculator:
    """Return a fresh error aggregator registered under ``name``."""

    try:
        factory = _CALCULATORS[name]
    except KeyError as exc:
        available = ", ".join(sorted(_CALCULATORS))
        raise KeyError(f"Unknown error calculator {name!r}. Available calculators: {available}") from exc
    return factory()


def calculator_names() -> Iterable[str]:
    return sorted(_CALCULATORS)


__all__ = ["MeanAbsoluteCalculator", "RmsCalculator", "calculator_names", "get_calculator"]
