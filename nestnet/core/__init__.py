"""Graph primitives for nestnet: nodes, connections, neurons and networks."""

from . import activations, aggregators, errors, signals, types

__all__ = ["activations", "aggregators", "errors", "signals", "types"]
