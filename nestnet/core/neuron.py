"""Leaf nodes: single-output neurons."""

from __future__ import annotations

import logging

import numpy as np

from .connection import random_weight
from .errors import EmptyInputError, InvalidArgumentError
from .node import Node
from .signals import as_signal
from .types import ActivationFunction, Array, Signals

logger = logging.getLogger(__name__)


class Neuron(Node):
    """Sums its inbound signals, adds a bias and applies an activation.

    A neuron without inbound connections is an input node: it accepts one
    external scalar and its bias is pinned to zero.
    """

    def __init__(
        self,
        activation: ActivationFunction,
        *,
        bias: float | None = None,
        name: str | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        if activation is None:
            raise InvalidArgumentError("activation function is required")
        super().__init__(name)
        self.activation = activation
        self._bias = float(bias) if bias is not None else random_weight(rng)
        self._pending_input = 0.0
        self._cached_outputs = np.zeros(1, dtype=np.float64)

    @property
    def input_size(self) -> int:
        return 1 if self.is_input_node else len(self.inbound_connections)

    @property
    def output_size(self) -> int:
        return 1

    @property
    def cached_outputs(self) -> Array:
        return self._cached_outputs

    @property
    def pending_input_signal(self) -> float:
        return self._pending_input

    @property
    def bias(self) -> float:
        return 0.0 if self.is_input_node else self._bias

    @bias.setter
    def bias(self, value: float) -> None:
        self._bias = 0.0 if self.is_input_node else float(value)

    def fire(self, signal: float) -> None:
        self._pending_input += signal
        if not self._all_inbound_fired():
            logger.debug("%s waiting: pending=%s", self.name, self._pending_input)
            return
        output = self._activate()
        self._clear_inbound_fired()
        self._fire_outbound(output)

    def fire_all(self, inputs: Signals) -> None:
        signal = as_signal(inputs)
        if signal.size == 0:
            raise EmptyInputError(f"{self.name} cannot fire with an empty input vector")
        self._pending_input += float(signal.sum())
        self._fire_outbound(self._activate())

    def _activate(self) -> float:
        biased = self._pending_input + self.bias
        output = float(self.activation.invoke(biased))
        self._cached_outputs[0] = output
        self._pending_input = 0.0
        logger.debug("%s activated: biased=%s output=%s", self.name, biased, output)
        return output

    def _fire_outbound(self, output: float) -> None:
        for connection in self.outbound_connections:
            connection.fire(output)

    def _reset_state(self) -> None:
        super()._reset_state()
        self._pending_input = 0.0


class BackpropNeuron(Neuron):
    """Neuron that computes its error delta and learns its bias."""

    def __init__(
        self,
        activation: ActivationFunction,
        *,
        bias: float | None = None,
        name: str | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        super().__init__(activation, bias=bias, name=name, rng=rng)
        self._cached_error = 0.0
        self.pending_bias_adjustment = 0.0
        self.previous_bias_adjustment = 0.0

    @property
    def cached_errors(self) -> Array:
        return np.array([self._cached_error], dtype=np.float64)

    def calculate_error(self, signal: float) -> None:
        self._cached_error += signal
        if not all(connection.is_reporting_error for connection in self.outbound_connections):
            logger.debug("%s waiting for errors: cached=%s", self.name, self._cached_error)
            return
        self._backpropagate()

    def calculate_errors(self, signals: Signals) -> None:
        signal = as_signal(signals)
        if signal.size == 0:
            raise EmptyInputError(f"{self.name} cannot take an empty error vector")
        self._cached_error += float(signal.sum())
        self._backpropagate()

    def _backpropagate(self) -> None:
        for connection in self.outbound_connections:
            connection.clear_reporting_flag()
        error_delta = self._cached_error * self.activation.invoke_derivative(self._cached_outputs[0])
        self.pending_bias_adjustment += error_delta
        logger.debug("%s error delta=%s", self.name, error_delta)
        for connection in self.inbound_connections:
            connection.report_error(error_delta)

    def apply_weight_adjustments(self, learning_rate: float, momentum: float) -> None:
        if not self._last_arrival("_adjust_arrivals"):
            return
        adjustment = (
            learning_rate * self.pending_bias_adjustment
            + momentum * self.previous_bias_adjustment
        )
        self.bias += adjustment
        self.previous_bias_adjustment = adjustment
        self.pending_bias_adjustment = 0.0
        for connection in self.outbound_connections:
            connection.apply_weight_adjustments(learning_rate, momentum)

    def clear_cached_errors(self) -> None:
        if not self._last_arrival("_clear_arrivals"):
            return
        self._cached_error = 0.0
        for connection in self.outbound_connections:
            connection.clear_cached_errors()

    def reset_pending_adjustments(self) -> None:
        self.pending_bias_adjustment = 0.0

    def _reset_state(self) -> None:
        super()._reset_state()
        self._cached_error = 0.0


__all__ = ["BackpropNeuron", "Neuron"]
