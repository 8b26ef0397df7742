"""Signal quantisation and reshaping helpers used at network boundaries."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import SizeMismatchError
from .types import Array, Signals


def as_signal(values: Signals) -> Array:
    """Return ``values`` as a flat ``float64`` vector."""

    return np.asarray(values, dtype=np.float64).reshape(-1)


def digitize(values: Signals) -> Array:
    """Quantise ``values`` to exactly ``+1.0`` (for ``x >= 0``) or ``-1.0``."""

    signal = as_signal(values)
    return np.where(signal >= 0.0, 1.0, -1.0)


def _bucket_sizes(total: int, count: int) -> Array:
    ratio, excess = divmod(total, count)
    sizes = np.full(count, ratio, dtype=np.int64)
    sizes[:excess] += 1
    return sizes


def aggregate(values: Signals, count: int) -> Array:
    """Sum ``values`` into ``count`` buckets of consecutive elements.

    The first ``len(values) % count`` buckets take one extra element, so every
    source element is consumed exactly once.
    """

    signal = as_signal(values)
    if count <= 0 or signal.size < count:
        raise SizeMismatchError(
            f"Cannot aggregate {signal.size} values into {count} buckets"
        )
    sizes = _bucket_sizes(signal.size, count)
    offsets = np.concatenate(([0], np.cumsum(sizes)[:-1]))
    return np.add.reduceat(signal, offsets)


def distribute(values: Signals, count: int) -> Array:
    """Repeat ``values`` to fill ``count`` slots.

    Every element repeats ``count // len(values)`` times and the first
    ``count % len(values)`` elements repeat once more.
    """

    signal = as_signal(values)
    if signal.size == 0 or count < signal.size:
        raise SizeMismatchError(
            f"Cannot distribute {signal.size} values over {count} slots"
        )
    return np.repeat(signal, _bucket_sizes(count, signal.size))


def allocate(values: Signals, count: int) -> Array:
    """Aggregate or distribute ``values`` so the result has ``count`` elements."""

    signal = as_signal(values)
    if signal.size >= count:
        return aggregate(signal, count)
    return distribute(signal, count)


@dataclass(frozen=True)
class SignalPolicy:
    """How a network quantises and reshapes signals crossing its boundary.

    Attributes
    ----------
    digitize:
        Quantise boundary signals to ``±1.0``.  When false, signals pass raw.
    digitize_first:
        Digitize before reshaping (sums of ``±1.0`` survive aggregation) rather
        than after (every reshaped value is exactly ``±1.0``).
    strict_size:
        Require ``compute_outputs`` inputs to match ``input_size`` exactly.
        Otherwise any non-zero multiple of ``input_size`` is accepted and
        aggregated down.
    """

    digitize: bool = True
    digitize_first: bool = True
    strict_size: bool = False

    def shape(self, values: Signals, count: int) -> Array:
        """Return ``values`` quantised and reshaped to ``count`` elements."""

        signal = as_signal(values)
        if not self.digitize:
            return allocate(signal, count)
        if self.digitize_first:
            return allocate(digitize(signal), count)
        return digitize(allocate(signal, count))

    def fit_inputs(self, values: Signals, input_size: int) -> Array:
        """Validate ``values`` against ``input_size`` for a forward pass."""

        signal = as_signal(values)
        if self.strict_size or input_size == 0:
            if signal.size != input_size:
                raise SizeMismatchError(
                    f"Expected {input_size} inputs but received {signal.size}"
                )
            return signal
        if signal.size == 0 or signal.size % input_size != 0:
            raise SizeMismatchError(
                f"{signal.size} inputs do not divide evenly into input size {input_size}"
            )
        if signal.size == input_size:
            return signal
        return aggregate(signal, input_size)

    def as_dict(self) -> dict:
        return {
            "digitize": self.digitize,
            "digitize_first": self.digitize_first,
            "strict_size": self.strict_size,
        }


DIGITAL = SignalPolicy()
ANALOG = SignalPolicy(digitize=False)
STRICT = SignalPolicy(strict_size=True)

_POLICIES = {"digital": DIGITAL, "analog": ANALOG, "strict": STRICT}


def get_policy(spec: str | dict | SignalPolicy | None) -> SignalPolicy:
    """Resolve a policy from a preset name, a mapping of fields, or an instance."""

    if spec is None:
        return DIGITAL
    if isinstance(spec, SignalPolicy):
        return spec
    if isinstance(spec, str):
        try:
            return _POLICIES[spec]
        except KeyError as exc:
            available = ", ".join(sorted(_POLICIES))
            raise KeyError(f"Unknown signal policy {spec!r}. Available policies: {available}") from exc
    return SignalPolicy(**dict(spec))


__all__ = [
    "ANALOG",
    "DIGITAL",
    "STRICT",
    "SignalPolicy",
    "aggregate",
    "allocate",
    "as_signal",
    "digitize",
    "distribute",
    "get_policy",
]
