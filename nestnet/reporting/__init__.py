"""Run artifacts and metric sinks for nestnet."""

from .artifacts import write_manifest, write_predictions
from .metrics import CsvSink, JsonlSink
from .plots import ErrorCurvePlot
from .summary import write_summary

__all__ = [
    "CsvSink",
    "ErrorCurvePlot",
    "JsonlSink",
    "write_manifest",
    "write_predictions",
    "write_summary",
]
