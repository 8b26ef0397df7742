"""Per-epoch metric sinks.

Sinks are trainer callbacks: ``on_epoch(epoch, metrics)`` is called once per
epoch and ``close()`` once when the run ends, successfully or not.
"""

from __future__ import annotations

import csv
import json
import subprocess
from pathlib import Path
from typing import IO, Dict, List, Mapping


def git_sha() -> str:
    """Return the current commit, or ``"unknown"`` outside a git checkout."""

    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
    except (OSError, subprocess.CalledProcessError):  # pragma: no cover - git may be unavailable
        return "unknown"
    return out.decode().strip()


class _EpochSink:
    """Own one output file for the lifetime of a run."""

    newline: str | None = None

    def __init__(self, path: str | Path, *, run: str = "train") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.run = run
        self.records = 0
        self._handle: IO[str] | None = self.path.open("w", encoding="utf-8", newline=self.newline)

    def _record(self, epoch: int, metrics: Mapping[str, object]) -> Dict[str, object]:
        record: Dict[str, object] = {"epoch": int(epoch), "run": self.run}
        for key, value in metrics.items():
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                record[key] = float(value)
        return record

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if self._handle is None:
            raise RuntimeError(f"{self.path} is closed")
        self._write(self._handle, self._record(epoch, metrics))
        self._handle.flush()
        self.records += 1

    def _write(self, handle: IO[str], record: Dict[str, object]) -> None:
        raise NotImplementedError

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    @property
    def closed(self) -> bool:
        return self._handle is None

    def __call__(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.on_epoch(epoch, metrics)


class JsonlSink(_EpochSink):
    """One JSON object per line, tagged with the run seed and commit."""

    def __init__(
        self,
        path: str | Path,
        *,
        run: str = "train",
        seed: int | None = None,
        sha: str | None = None,
    ) -> None:
        super().__init__(path, run=run)
        self.seed = seed
        self.sha = sha or git_sha()

    def _record(self, epoch: int, metrics: Mapping[str, object]) -> Dict[str, object]:
        record = super()._record(epoch, metrics)
        tagged: Dict[str, object] = {
            "epoch": record.pop("epoch"),
            "run": record.pop("run"),
            "seed": self.seed,
            "sha": self.sha,
        }
        tagged.update(record)
        return tagged

    def _write(self, handle: IO[str], record: Dict[str, object]) -> None:
        handle.write(json.dumps(record) + "\n")


class CsvSink(_EpochSink):
    """CSV table whose columns are fixed by the first record.

    Later metrics that were absent from the first epoch are dropped, and
    missing ones are left blank, so every row matches the header.
    """

    newline = ""

    def __init__(self, path: str | Path, *, run: str = "train") -> None:
        super().__init__(path, run=run)
        self.fieldnames: List[str] = []
        self._writer: csv.DictWriter | None = None

    def _write(self, handle: IO[str], record: Dict[str, object]) -> None:
        if self._writer is None:
            self.fieldnames = ["epoch", "run", *sorted(k for k in record if k not in {"epoch", "run"})]
            self._writer = csv.DictWriter(handle, fieldnames=self.fieldnames, extrasaction="ignore", restval="")
            self._writer.writeheader()
        self._writer.writerow(record)


__all__ = ["CsvSink", "JsonlSink", "git_sha"]
