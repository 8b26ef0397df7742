"""Weighted edges between nodes."""

from __future__ import annotations

import logging

import numpy as np

from .errors import AlreadyFiredError, InvalidArgumentError
from .node import Node
from .types import SupervisedLearner

logger = logging.getLogger(__name__)

_DEFAULT_RNG = np.random.default_rng()


def random_weight(rng: np.random.Generator | None = None) -> float:
    """Draw an initial weight or bias uniformly from ``[-1.0, 1.0]``."""

    generator = rng if rng is not None else _DEFAULT_RNG
    return float(generator.uniform(-1.0, 1.0))


class Connection:
    """Directed edge carrying ``input * weight`` from ``source`` to ``target``.

    The connection holds plain references to its endpoints and registers
    itself on both of them when constructed.
    """

    def __init__(
        self,
        source: Node,
        target: Node,
        weight: float | None = None,
        *,
        rng: np.random.Generator | None = None,
    ) -> None:
        if source is None:
            raise InvalidArgumentError("source node is required")
        if target is None:
            raise InvalidArgumentError("target node is required")
        self._check_endpoint(source, "source")
        self._check_endpoint(target, "target")
        self.source = source
        self.target = target
        self.name = f"{source.name}->{target.name}"
        self.weight = float(weight) if weight is not None else random_weight(rng)
        self.cached_input = 0.0
        self.output = 0.0
        self.is_fired = False
        source.add_outbound_connection(self)
        target.add_inbound_connection(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name}, weight={self.weight:.6f})"

    def _check_endpoint(self, node: Node, role: str) -> None:
        if not isinstance(node, Node):
            raise InvalidArgumentError(f"{role} must be a Node, got {type(node).__name__}")

    def fire(self, signal: float) -> None:
        if self.is_fired:
            raise AlreadyFiredError(
                f"{self.name} has already fired and must be cleared before it can fire again"
            )
        self.cached_input = float(signal)
        self.output = self.cached_input * self.weight
        self.is_fired = True
        logger.debug("%s fired: input=%s weight=%s output=%s", self.name, signal, self.weight, self.output)
        self.target.fire(self.output)

    def clear_fire(self) -> None:
        self.is_fired = False

    def reset(self) -> None:
        self.clear_fire()


class BackpropConnection(Connection):
    """Connection that also carries error signals backwards and learns its weight."""

    def __init__(
        self,
        source: Node,
        target: Node,
        weight: float | None = None,
        *,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.error_signal = 0.0
        self.is_reporting_error = False
        self.pending_weight_adjustment = 0.0
        self.previous_weight_adjustment = 0.0
        super().__init__(source, target, weight, rng=rng)

    def _check_endpoint(self, node: Node, role: str) -> None:
        super()._check_endpoint(node, role)
        if not isinstance(node, SupervisedLearner):
            raise InvalidArgumentError(
                f"{role} {node.name} cannot learn; use a backpropagation node"
            )

    def report_error(self, signal: float) -> None:
        """Accumulate the delta-rule term and pass the weighted error to ``source``."""

        self.pending_weight_adjustment += signal * self.cached_input
        self.error_signal = signal * self.weight
        self.is_reporting_error = True
        logger.debug(
            "%s reporting error=%s pending=%s",
            self.name,
            self.error_signal,
            self.pending_weight_adjustment,
        )
        self.source.calculate_error(self.error_signal)

    def apply_weight_adjustments(self, learning_rate: float, momentum: float) -> None:
        adjustment = (
            learning_rate * self.pending_weight_adjustment
            + momentum * self.previous_weight_adjustment
        )
        self.weight += adjustment
        self.previous_weight_adjustment = adjustment
        self.pending_weight_adjustment = 0.0
        logger.debug("%s adjusted by %s to %s", self.name, adjustment, self.weight)
        self.target.apply_weight_adjustments(learning_rate, momentum)

    def clear_reporting_flag(self) -> None:
        self.is_reporting_error = False

    def clear_cached_errors(self) -> None:
        self.error_signal = 0.0
        self.clear_reporting_flag()
        self.target.clear_cached_errors()

    def reset_pending_adjustments(self) -> None:
        self.pending_weight_adjustment = 0.0

    def reset(self) -> None:
        super().reset()
        self.error_signal = 0.0
        self.clear_reporting_flag()


__all__ = ["BackpropConnection", "Connection", "random_weight"]
