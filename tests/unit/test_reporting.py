import csv
import json
from pathlib import Path

import pytest

from nestnet.reporting.metrics import CsvSink, JsonlSink
from nestnet.reporting.plots import ErrorCurvePlot
from nestnet.reporting.summary import compute_auc, write_summary


def test_sinks_write_one_row_per_epoch(tmp_path):
    jsonl = JsonlSink(tmp_path / "m.jsonl", seed=3, sha="abc")
    table = CsvSink(tmp_path / "m.csv")
    for epoch, error in enumerate([0.9, 0.5, 0.25], start=1):
        jsonl.on_epoch(epoch, {"error": error})
        table.on_epoch(epoch, {"error": error})
    jsonl.close()
    table.close()

    records = [json.loads(line) for line in jsonl.path.read_text().splitlines()]
    assert [r["epoch"] for r in records] == [1, 2, 3]
    assert records[0] == {"epoch": 1, "run": "train", "seed": 3, "sha": "abc", "error": 0.9}

    with table.path.open() as handle:
        rows = list(csv.DictReader(handle))
    assert [float(r["error"]) for r in rows] == [0.9, 0.5, 0.25]


def test_summary_reduces_each_metric(tmp_path):
    jsonl = JsonlSink(tmp_path / "m.jsonl", seed=0, sha="abc")
    for epoch, error in enumerate([4.0, 2.0, 1.0], start=1):
        jsonl.on_epoch(epoch, {"error": error})
    jsonl.close()

    summary = json.loads(Path(write_summary(jsonl.path, tmp_path / "s.json", tail=2)).read_text())

    assert summary["records"] == 3
    assert summary["tail_window"] == 2
    assert summary["metrics"]["error"] == {
        "min": 1.0,
        "max": 4.0,
        "mean": pytest.approx(7.0 / 3.0),
        "last": 1.0,
        "tail_auc": 1.5,
    }
    assert "seed" not in summary["metrics"]


def test_compute_auc_on_short_series():
    assert compute_auc([]) == 0.0
    assert compute_auc([2.0]) == 0.0
    assert compute_auc([0.0, 2.0, 2.0]) == pytest.approx(3.0)


def test_error_plot_is_inert_when_disabled(tmp_path):
    plot = ErrorCurvePlot(tmp_path / "run")
    plot.on_epoch(1, {"error": 0.5})
    plot.close()
    assert not (tmp_path / "run").exists()


def test_error_plot_writes_png(tmp_path):
    pytest.importorskip("matplotlib")
    plot = ErrorCurvePlot(tmp_path, enable_plots=True)
    for epoch in range(1, 4):
        plot.on_epoch(epoch, {"error": 1.0 / epoch})
    plot.close()
    assert plot.path.exists()


def test_csv_columns_are_fixed_by_the_first_epoch(tmp_path):
    table = CsvSink(tmp_path / "m.csv")
    table.on_epoch(1, {"error": 0.5, "mae": 0.4})
    table.on_epoch(2, {"error": 0.3, "extra": 1.0})
    table.close()

    with table.path.open() as handle:
        rows = list(csv.DictReader(handle))
    assert list(rows[0]) == ["epoch", "run", "error", "mae"]
    assert rows[1] == {"epoch": "2", "run": "train", "error": "0.3", "mae": ""}


def test_closed_sink_refuses_more_records(tmp_path):
    jsonl = JsonlSink(tmp_path / "m.jsonl", sha="abc")
    jsonl.on_epoch(1, {"error": 1.0, "flag": True})
    jsonl.close()
    assert jsonl.closed
    assert jsonl.records == 1
    assert "flag" not in json.loads(jsonl.path.read_text())
    with pytest.raises(RuntimeError):
        jsonl.on_epoch(2, {"error": 0.5})


def test_compute_auc_matches_numpy_trapezoid():
    points = [3.0, 1.0, 4.0, 1.0, 5.0]
    assert compute_auc(points) == pytest.approx(2.0 + 2.5 + 2.5 + 3.0)
