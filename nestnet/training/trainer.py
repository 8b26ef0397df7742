"""Epoch loop with callbacks, early stopping and checkpoints."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence

import numpy as np

from ..core.network import BackpropNetwork
from ..core.types import Array, RunResult, Signals


class Trainer:
    """Drive :meth:`BackpropNetwork.train` one epoch at a time.

    Each epoch is a single ``train(1, ...)`` call; momentum memory lives on the
    connections and neurons, so this matches one ``train(epochs, ...)`` call
    while letting callbacks observe every epoch.
    """

    def __init__(
        self,
        network: BackpropNetwork,
        learning_rate: float,
        momentum: float = 0.0,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        self.network = network
        self.learning_rate = float(learning_rate)
        self.momentum = float(momentum)
        self.callbacks = list(callbacks or [])
        self.history: list[float] = []

    def run(
        self,
        training_set: Sequence[Signals],
        ideal_outputs: Sequence[Signals],
        epochs: int,
        *,
        target_error: float | None = None,
        checkpoint_dir: str | Path | None = None,
    ) -> RunResult:
        if epochs < 1:
            raise ValueError("epochs must be at least 1")

        error = float("nan")
        completed = 0
        stopped_early = False
        checkpoint_path = ""
        try:
            for epoch in range(1, epochs + 1):
                error = self.network.train(
                    1, self.learning_rate, self.momentum, training_set, ideal_outputs
                )
                completed = epoch
                self.history.append(error)
                self._emit_epoch(epoch, {"error": error})
                if target_error is not None and error <= target_error:
                    stopped_early = epoch < epochs
                    break

            if checkpoint_dir is not None:
                path = Path(checkpoint_dir) / "last.ckpt"
                self._save_checkpoint(path, self.network.state_dict())
                checkpoint_path = str(path)
        finally:
            self._close_callbacks()
        return RunResult(
            epochs=completed,
            final_error=float(error),
            stopped_early=stopped_early,
            checkpoint_path=checkpoint_path,
        )

    def predict(self, inputs: Sequence[Signals]) -> Array:
        """Return one row of outputs per input row."""

        rows = [self.network.compute_outputs(row) for row in inputs]
        if not rows:
            return np.zeros((0, self.network.output_size), dtype=np.float64)
        return np.vstack(rows)

    # ------------------------------------------------------------------
    # Internal helpers

    def _emit_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)

    def _close_callbacks(self) -> None:
        for callback in self.callbacks:
            close = getattr(callback, "close", None)
            if callable(close):
                close()

    @staticmethod
    def _save_checkpoint(path: Path, state: Mapping[str, Array]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as handle:
            np.savez_compressed(handle, **dict(state))


def load_checkpoint(network: BackpropNetwork, path: str | Path) -> None:
    """Restore weights and biases saved by :class:`Trainer`."""

    with np.load(Path(path)) as payload:
        network.load_state_dict({key: payload[key] for key in payload.files})


__all__ = ["Trainer", "load_checkpoint"]
