"""Builders for layered and nested backpropagation networks."""

from __future__ import annotations

from typing import List, Mapping, Sequence, Tuple

import numpy as np

from .core.activations import get_activation
from .core.aggregators import get_calculator
from .core.connection import BackpropConnection
from .core.network import BackpropNetwork
from .core.neuron import BackpropNeuron
from .core.node import Node
from .core.signals import SignalPolicy

PolicySpec = SignalPolicy | str | Mapping[str, bool] | None


def _layer(size: int, activation: str, rng: np.random.Generator | None, prefix: str) -> List[BackpropNeuron]:
    fn = get_activation(activation)
    return [BackpropNeuron(fn, name=f"{prefix}_{i}", rng=rng) for i in range(size)]


def connect_layers(
    sources: Sequence[Node],
    targets: Sequence[Node],
    rng: np.random.Generator | None = None,
) -> List[BackpropConnection]:
    """Fully connect ``sources`` to ``targets`` in source-major order."""

    return [
        BackpropConnection(source, target, rng=rng)
        for source in sources
        for target in targets
    ]


def build_feedforward(
    layer_sizes: Sequence[int],
    *,
    activation: str = "tanh",
    input_activation: str = "linear",
    rng: np.random.Generator | None = None,
    policy: PolicySpec = None,
    error: str = "rms",
    name: str | None = None,
) -> BackpropNetwork:
    """Build a fully connected network, e.g. ``[2, 3, 1]`` for XOR.

    The first layer uses ``input_activation`` and every later layer uses
    ``activation``.
    """

    sizes = [int(size) for size in layer_sizes]
    if len(sizes) < 2 or any(size < 1 for size in sizes):
        raise ValueError(f"layer_sizes needs at least two positive sizes, got {list(layer_sizes)}")

    network = BackpropNetwork(get_calculator(error), policy=policy, name=name)
    prefix = network.name
    layers = [_layer(sizes[0], input_activation, rng, f"{prefix}.in")]
    for depth, size in enumerate(sizes[1:-1], start=1):
        layers.append(_layer(size, activation, rng, f"{prefix}.h{depth}"))
    layers.append(_layer(sizes[-1], activation, rng, f"{prefix}.out"))

    for sources, targets in zip(layers[:-1], layers[1:]):
        connect_layers(sources, targets, rng)
    for neuron in layers[0]:
        network.add_input_node(neuron)
    for neuron in layers[-1]:
        network.add_output_node(neuron)
    return network


def build_nested(
    modules: Sequence[BackpropNetwork],
    hidden: Sequence[int],
    outputs: int,
    *,
    activation: str = "tanh",
    rng: np.random.Generator | None = None,
    policy: PolicySpec = None,
    error: str = "rms",
    name: str | None = None,
) -> BackpropNetwork:
    """Build a network whose input layer is made of other networks.

    Each module is fully connected to the first hidden layer, so the outer
    network's input size is the sum of the modules' input sizes.
    """

    if not modules:
        raise ValueError("build_nested needs at least one module network")
    network = BackpropNetwork(get_calculator(error), policy=policy, name=name)
    prefix = network.name
    layers: List[Sequence[Node]] = [list(modules)]
    for depth, size in enumerate(hidden, start=1):
        layers.append(_layer(int(size), activation, rng, f"{prefix}.h{depth}"))
    layers.append(_layer(int(outputs), activation, rng, f"{prefix}.out"))

    for sources, targets in zip(layers[:-1], layers[1:]):
        connect_layers(sources, targets, rng)
    for module in modules:
        network.add_input_node(module)
    for neuron in layers[-1]:
        network.add_output_node(neuron)
    return network


def build_model(
    model_cfg: Mapping[str, object],
    rng: np.random.Generator | None = None,
) -> Tuple[BackpropNetwork, List[int]]:
    """Build the network described by a pipeline ``model`` section.

    Returns the network and the layer sizes recorded in the run manifest.
    """

    kind = str(model_cfg.get("type", "feedforward"))
    activation = str(model_cfg.get("activation", "tanh"))
    policy = model_cfg.get("policy")
    error = str(model_cfg.get("error", "rms"))

    if kind == "feedforward":
        layers = [int(size) for size in model_cfg.get("layers", [])]  # type: ignore[union-attr]
        network = build_feedforward(
            layers,
            activation=activation,
            input_activation=str(model_cfg.get("input_activation", "linear")),
            rng=rng,
            policy=policy,  # type: ignore[arg-type]
            error=error,
        )
        return network, layers

    if kind == "nested":
        module_cfgs = list(model_cfg.get("modules", []))  # type: ignore[arg-type]
        modules = []
        for module_cfg in module_cfgs:
            module_cfg = dict(module_cfg)
            module_cfg.setdefault("type", "feedforward")
            module, _ = build_model(module_cfg, rng)
            modules.append(module)
        hidden = [int(size) for size in model_cfg.get("hidden", [])]  # type: ignore[union-attr]
        outputs = int(model_cfg.get("outputs", 1))  # type: ignore[arg-type]
        network = build_nested(
            modules,
            hidden,
            outputs,
            activation=activation,
            rng=rng,
            policy=policy,  # type: ignore[arg-type]
            error=error,
        )
        return network, [network.input_size, *hidden, outputs]

    raise ValueError(f"Unknown model type: {kind}")


__all__ = ["build_feedforward", "build_model", "build_nested", "connect_layers"]
