"""Boolean truth tables encoded as ``±1`` signals."""

from __future__ import annotations

import itertools
from typing import Callable, Sequence

import numpy as np

from .registry import DatasetSpec, as_table, register_dataset

TRUE = 1.0
FALSE = -1.0


def _encode(value: bool) -> float:
    return TRUE if value else FALSE


def truth_table(
    arity: int, rule: Callable[[Sequence[bool]], bool], name: str
) -> DatasetSpec:
    """Enumerate every ``±1`` input combination of ``arity`` bits and apply ``rule``."""

    rows = list(itertools.product((False, True), repeat=arity))
    inputs = as_table([[_encode(bit) for bit in row] for row in rows])
    targets = as_table([[_encode(rule(row))] for row in rows])
    return DatasetSpec(
        name=name,
        inputs=inputs,
        targets=targets,
        provenance={"type": "truth_table", "arity": arity, "rows": len(rows)},
    )


@register_dataset("xor")
def xor(**_: object) -> DatasetSpec:
    return truth_table(2, lambda bits: bits[0] != bits[1], "xor")


@register_dataset("and")
def and_gate(**_: object) -> DatasetSpec:
    return truth_table(2, lambda bits: bits[0] and bits[1], "and")


@register_dataset("or")
def or_gate(**_: object) -> DatasetSpec:
    return truth_table(2, lambda bits: bits[0] or bits[1], "or")


@register_dataset("compound_logic")
def compound_logic(**_: object) -> DatasetSpec:
    """``(a OR b) XOR (c OR d)`` over four inputs."""

    return truth_table(4, lambda bits: (bits[0] or bits[1]) != (bits[2] or bits[3]), "compound_logic")


@register_dataset("parity")
def parity(arity: int = 3, **_: object) -> DatasetSpec:
    """Odd parity over ``arity`` inputs."""

    spec = truth_table(int(arity), lambda bits: sum(bits) % 2 == 1, "parity")
    return DatasetSpec(
        name=spec.name,
        inputs=spec.inputs,
        targets=spec.targets,
        provenance={**spec.provenance, "arity": int(arity)},
    )


def signs(values: np.ndarray) -> np.ndarray:
    """Map raw outputs back to ``±1`` truth values."""

    return np.where(np.asarray(values, dtype=np.float64) >= 0.0, TRUE, FALSE)


__all__ = ["FALSE", "TRUE", "and_gate", "compound_logic", "or_gate", "parity", "signs", "truth_table", "xor"]
