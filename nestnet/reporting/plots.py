"""Headless error-curve plotting."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Tuple


class ErrorCurvePlot:
    """Collect the epoch error and draw ``error.png`` on close.

    matplotlib is imported only when plots are enabled and forced onto the
    ``Agg`` backend.
    """

    def __init__(self, run_dir: str | Path, enable_plots: bool = False, metric: str = "error"):
        self.enable_plots = enable_plots
        self.metric = metric
        self.run_dir = Path(run_dir)
        self.path = self.run_dir / f"{metric}.png"
        self._history: List[Tuple[int, float]] = []

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if self.enable_plots and self.metric in metrics:
            self._history.append((int(epoch), float(metrics[self.metric])))

    def close(self) -> None:
        if not self.enable_plots or not self._history:
            return
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt

        self.run_dir.mkdir(parents=True, exist_ok=True)
        epochs, values = zip(*self._history)
        fig, ax = plt.subplots()
        ax.plot(epochs, values)
        ax.set_xlabel("Epoch")
        ax.set_ylabel(self.metric)
        ax.set_title("Training error")
        fig.savefig(self.path)
        plt.close(fig)

    __call__ = on_epoch


__all__ = ["ErrorCurvePlot"]
