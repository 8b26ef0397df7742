"""Dataset registry for in-memory training tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping

import numpy as np

from ..core.types import Array


@dataclass(frozen=True)
class DatasetSpec:
    """A complete training table.

    Attributes
    ----------
    name:
        Registry name of the dataset.
    inputs:
        ``(rows, d_in)`` array of input vectors.
    targets:
        ``(rows, d_out)`` array of ideal outputs, aligned with ``inputs``.
    provenance:
        Free-form metadata recorded in run manifests.
    """

    name: str
    inputs: Array
    targets: Array
    provenance: Dict[str, Any] = field(default_factory=dict)

    @property
    def d_in(self) -> int:
        return int(self.inputs.shape[1])

    @property
    def d_out(self) -> int:
        return int(self.targets.shape[1])

    def __len__(self) -> int:
        return int(self.inputs.shape[0])


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory, either as a decorator or directly."""

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    return _decorator


def get(name: str, **options: Any) -> DatasetSpec:
    """Build the dataset registered under ``name``."""

    if name not in _REGISTRY:
        available = ", ".join(available_datasets())
        raise KeyError(f"Unknown dataset {name!r}. Available datasets: {available}")
    spec = _REGISTRY[name](**options)
    if spec.inputs.shape[0] != spec.targets.shape[0]:
        raise ValueError(
            f"Dataset {name} has {spec.inputs.shape[0]} input rows "
            f"but {spec.targets.shape[0]} target rows"
        )
    return spec


def available_datasets() -> Iterable[str]:
    return sorted(_REGISTRY)


def as_table(rows: Iterable[Iterable[float]]) -> Array:
    """Stack ``rows`` into a 2-D ``float64`` table."""

    return np.atleast_2d(np.asarray(list(rows), dtype=np.float64))


__all__ = ["DatasetSpec", "as_table", "available_datasets", "get", "register_dataset"]
