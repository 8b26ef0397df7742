"""Dataset registry and built-in truth tables."""

# Ensure built-in datasets register themselves when the package is imported.
from . import logic as _logic  # noqa: F401
from .registry import DatasetSpec, as_table, available_datasets, get, register_dataset

__all__ = [
    "DatasetSpec",
    "as_table",
    "available_datasets",
    "get",
    "register_dataset",
]
