"""Composite nodes: networks of neurons and of other networks."""

from __future__ import annotations

import logging
from typing import Iterator, List, Mapping, Sequence

import numpy as np

from .aggregators import RmsCalculator
from .connection import BackpropConnection, Connection
from .errors import EmptyInputError, InvalidArgumentError, SizeMismatchError
from .neuron import BackpropNeuron, Neuron
from .node import Node
from .signals import SignalPolicy, allocate, as_signal, get_policy
from .types import Array, ErrorCalculator, Signals, Topology

logger = logging.getLogger(__name__)


class Network(Node):
    """A node whose work is done by an ordered input layer and output layer.

    ``input_size`` and ``output_size`` are the sums over the input and output
    layers, and insertion order maps the flat input/output vectors onto the
    layer nodes.  Signals crossing the network boundary through connections are
    quantised and reshaped according to ``policy``.
    """

    def __init__(
        self,
        *,
        policy: SignalPolicy | str | Mapping[str, bool] | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(name)
        self.policy = get_policy(policy)
        self.input_nodes: List[Node] = []
        self.output_nodes: List[Node] = []
        self._cached_outputs = np.zeros(0, dtype=np.float64)

    # ------------------------------------------------------------------
    # Wiring

    def add_input_node(self, node: Node) -> None:
        if node is None:
            raise InvalidArgumentError("input node is required")
        if not any(existing is node for existing in self.input_nodes):
            self.input_nodes.append(node)

    def add_output_node(self, node: Node) -> None:
        if node is None:
            raise InvalidArgumentError("output node is required")
        if not any(existing is node for existing in self.output_nodes):
            self.output_nodes.append(node)

    @property
    def input_size(self) -> int:
        return sum(node.input_size for node in self.input_nodes)

    @property
    def output_size(self) -> int:
        return sum(node.output_size for node in self.output_nodes)

    @property
    def cached_outputs(self) -> Array:
        return self._cached_outputs

    # ------------------------------------------------------------------
    # Forward pass

    def fire(self, signal: float) -> None:
        if not self._all_inbound_fired():
            logger.debug("%s waiting for inbound connections", self.name)
            return
        received = [connection.output for connection in self.inbound_connections]
        self._clear_inbound_fired()
        self.compute_outputs(self.policy.shape(received, self.input_size))
        self._fire_outputs()

    def fire_all(self, inputs: Signals) -> None:
        signal = as_signal(inputs)
        if signal.size == 0:
            raise EmptyInputError(f"{self.name} cannot fire with an empty input vector")
        self.compute_outputs(self.policy.shape(signal, self.input_size))
        self._fire_outputs()

    def compute_outputs(self, inputs: Signals) -> Array:
        """Run a forward pass and return this network's outputs."""

        signal = self.policy.fit_inputs(inputs, self.input_size)
        logger.debug("%s computing outputs for %s", self.name, signal)
        cursor = 0
        for node in self.input_nodes:
            size = node.input_size
            node.fire_all(signal[cursor:cursor + size])
            cursor += size
        if self.output_nodes:
            self._cached_outputs = np.concatenate(
                [np.asarray(node.cached_outputs, dtype=np.float64) for node in self.output_nodes]
            )
        else:
            self._cached_outputs = np.zeros(0, dtype=np.float64)
        return self._cached_outputs.copy()

    def _fire_outputs(self) -> None:
        if not self.outbound_connections:
            return
        values = self.policy.shape(self._cached_outputs, len(self.outbound_connections))
        for connection, value in zip(self.outbound_connections, values):
            connection.fire(float(value))

    # ------------------------------------------------------------------
    # Graph inspection

    def nodes(self) -> Iterator[Node]:
        """Yield every node reachable from the layers, nested networks included.

        The walk is depth-first from the input layer along outbound connections
        (in registration order), descending into each nested network as it is
        reached, then picks up any output node the walk missed.
        """

        seen: set[int] = set()

        def visit(node: Node) -> Iterator[Node]:
            if id(node) in seen:
                return
            seen.add(id(node))
            yield node
            if isinstance(node, Network):
                yield from node.nodes()
            for connection in node.outbound_connections:
                yield from visit(connection.target)

        for node in [*self.input_nodes, *self.output_nodes]:
            yield from visit(node)

    def neurons(self) -> List[Neuron]:
        return [node for node in self.nodes() if isinstance(node, Neuron)]

    def connections(self) -> List[Connection]:
        return [
            connection
            for node in self.nodes()
            for connection in node.outbound_connections
        ]

    def topology(self, layers: Sequence[int] | None = None) -> Topology:
        return Topology(
            input_size=self.input_size,
            output_size=self.output_size,
            neurons=len(self.neurons()),
            connections=len(self.connections()),
            layers=list(layers or []),
        )

    def parameter_count(self) -> int:
        trainable = [neuron for neuron in self.neurons() if not neuron.is_input_node]
        return len(self.connections()) + len(trainable)

    def state_dict(self) -> Mapping[str, Array]:
        return {
            "weights": np.array([c.weight for c in self.connections()], dtype=np.float64),
            "biases": np.array([n.bias for n in self.neurons()], dtype=np.float64),
        }

    def load_state_dict(self, state: Mapping[str, Array]) -> None:
        connections = self.connections()
        neurons = self.neurons()
        for key, expected in (("weights", len(connections)), ("biases", len(neurons))):
            if key not in state:
                raise KeyError(f"Missing {key} in state dict")
            if len(state[key]) != expected:
                raise SizeMismatchError(
                    f"State dict holds {len(state[key])} {key} but the network has {expected}"
                )
        for connection, weight in zip(connections, state["weights"]):
            connection.weight = float(weight)
        for neuron, bias in zip(neurons, state["biases"]):
            neuron.bias = float(bias)

    def reset(self) -> None:
        """Clear fired/reporting flags and per-pass caches across the whole graph."""

        self._reset_state()
        for node in self.nodes():
            node._reset_state()
        for connection in [*self.inbound_connections, *self.connections()]:
            connection.reset()


class BackpropNetwork(Network):
    """Network that backpropagates errors through its layers and can be trained."""

    def __init__(
        self,
        error_calculator: ErrorCalculator | None = None,
        *,
        policy: SignalPolicy | str | Mapping[str, bool] | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(policy=policy, name=name)
        self.error_calculator = error_calculator if error_calculator is not None else RmsCalculator()
        self._cached_errors = np.zeros(0, dtype=np.float64)

    @property
    def cached_errors(self) -> Array:
        return self._cached_errors

    # ------------------------------------------------------------------
    # Backward pass

    def calculate_error(self, signal: float) -> None:
        if not all(connection.is_reporting_error for connection in self.outbound_connections):
            logger.debug("%s waiting for outbound errors", self.name)
            return
        reported = [connection.error_signal for connection in self.outbound_connections]
        for connection in self.outbound_connections:
            connection.clear_reporting_flag()
        self.calculate_errors(self.policy.shape(reported, self.output_size))

    def calculate_errors(self, errors: Signals) -> None:
        """Backpropagate one error value per output slot through the network."""

        signal = as_signal(errors)
        if signal.size == 0:
            raise EmptyInputError(f"{self.name} cannot take an empty error vector")
        if signal.size != self.output_size:
            raise SizeMismatchError(
                f"Expected {self.output_size} error signals but received {signal.size}"
            )
        cursor = 0
        for node in self.output_nodes:
            size = node.output_size
            node.calculate_errors(signal[cursor:cursor + size])
            cursor += size
        if self.input_nodes:
            self._cached_errors = np.concatenate(
                [np.asarray(node.cached_errors, dtype=np.float64) for node in self.input_nodes]
            )
        else:
            self._cached_errors = np.zeros(0, dtype=np.float64)
        logger.debug("%s cached errors %s", self.name, self._cached_errors)
        self._report_errors()

    def _report_errors(self) -> None:
        if not self.inbound_connections:
            return
        values = allocate(self._cached_errors, len(self.inbound_connections))
        for connection, value in zip(self.inbound_connections, values):
            connection.report_error(float(value))

    def apply_weight_adjustments(self, learning_rate: float, momentum: float) -> None:
        if not self._last_arrival("_adjust_arrivals"):
            return
        for node in self.input_nodes:
            node.apply_weight_adjustments(learning_rate, momentum)
        for connection in self.outbound_connections:
            connection.apply_weight_adjustments(learning_rate, momentum)

    def clear_cached_errors(self) -> None:
        if not self._last_arrival("_clear_arrivals"):
            return
        self._cached_errors = np.zeros(self.input_size, dtype=np.float64)
        for node in self.input_nodes:
            node.clear_cached_errors()
        for connection in self.outbound_connections:
            connection.clear_cached_errors()

    def reset_pending_adjustments(self) -> None:
        """Discard the weight and bias adjustments accumulated so far this epoch."""

        for node in self.nodes():
            if isinstance(node, BackpropNeuron):
                node.reset_pending_adjustments()
        for connection in self.connections():
            if isinstance(connection, BackpropConnection):
                connection.reset_pending_adjustments()

    def _reset_state(self) -> None:
        super()._reset_state()
        self._cached_errors = np.zeros(0, dtype=np.float64)

    # ------------------------------------------------------------------
    # Training

    def train(
        self,
        num_epochs: int,
        learning_rate: float,
        momentum: float,
        training_set: Sequence[Signals],
        ideal_outputs: Sequence[Signals],
    ) -> float:
        """Run batch gradient descent and return the last epoch's error statistic.

        Errors accumulate over every example of an epoch and the weights and
        biases move once at the end of it.
        """

        inputs = [as_signal(row) for row in training_set]
        ideals = [as_signal(row) for row in ideal_outputs]
        if len(inputs) != len(ideals):
            raise InvalidArgumentError(
                f"{len(inputs)} training rows but {len(ideals)} ideal output rows"
            )
        for ideal in ideals:
            if ideal.size != self.output_size:
                raise SizeMismatchError(
                    f"Ideal outputs hold {ideal.size} values but the network produces {self.output_size}"
                )

        for epoch in range(num_epochs):
            self.error_calculator.reset()
            for row, ideal in zip(inputs, ideals):
                actual = self.compute_outputs(row)
                errors = ideal - actual
                self.error_calculator.add_to_error_calc(errors)
                self.calculate_errors(errors)
                self.clear_cached_errors()
            self.apply_weight_adjustments(learning_rate, momentum)
            logger.debug("%s finished epoch %d", self.name, epoch)
        return self.error_calculator.calculate()


__all__ = ["BackpropNetwork", "Network"]
