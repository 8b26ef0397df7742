"""nestnet public API."""

from .core import activations, errors, signals, types  # noqa: F401
from .core.aggregators import RmsCalculator
from .core.connection import BackpropConnection, Connection
from .core.network import BackpropNetwork, Network
from .core.neuron import BackpropNeuron, Neuron
from .core.signals import SignalPolicy
from .models import build_feedforward, build_model, build_nested
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer

__all__ = [
    "BackpropConnection",
    "BackpropNetwork",
    "BackpropNeuron",
    "Connection",
    "Network",
    "Neuron",
    "RmsCalculator",
    "SignalPolicy",
    "Trainer",
    "activations",
    "build_feedforward",
    "build_model",
    "build_nested",
    "errors",
    "load_preset",
    "presets",
    "run_pipeline",
    "signals",
    "types",
]
