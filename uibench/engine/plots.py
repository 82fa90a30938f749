"""
Benchmark comparison plots.
"""

import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from uibench.engine.comparison import METRIC_LABELS

logger = logging.getLogger(__name__)


def plot_benchmark_comparison(
    comparison: pd.DataFrame,
    tolerance: float = 0.15,
    metrics: list[str] | None = None,
    label_states: bool = True,
    figsize: tuple[float, float] | None = None,
) -> Any:
    """
    Faceted scatter of computed against benchmark values.

    One panel per metric with the benchmark on the x-axis and the computed
    value on the y-axis. Solid line at parity, dashed lines at
    ±``tolerance``.

    Args:
        comparison: Long frame from ``compare_to_benchmark``
        tolerance: Relative band drawn around parity
        metrics: Metrics to plot (default: all present, in order)
        label_states: Annotate points with state codes
        figsize: Figure size (default scales with panel count)

    Returns:
        Matplotlib figure
    """
    import matplotlib.pyplot as plt

    if metrics is None:
        metrics = list(dict.fromkeys(comparison["metric"]))
    if not metrics:
        raise ValueError("No metrics to plot")

    figsize = figsize or (5 * len(metrics), 5)
    fig, axes = plt.subplots(1, len(metrics), figsize=figsize, squeeze=False)

    for ax, metric in zip(axes[0], metrics):
        data = comparison[
            (comparison["metric"] == metric)
            & comparison["computed"].notna()
            & comparison["benchmark"].notna()
        ]

        if data.empty:
            ax.text(0.5, 0.5, "No data", ha="center", va="center", transform=ax.transAxes)
            ax.set_title(METRIC_LABELS.get(metric, metric))
            continue

        within = data["within_tolerance"].astype(bool)
        ax.scatter(
            data.loc[within, "benchmark"], data.loc[within, "computed"],
            s=18, color="tab:blue", label=f"Within ±{tolerance:.0%}",
        )
        ax.scatter(
            data.loc[~within, "benchmark"], data.loc[~within, "computed"],
            s=18, color="tab:red", label=f"Outside ±{tolerance:.0%}",
        )

        if label_states:
            for _, row in data.iterrows():
                ax.annotate(
                    row["state"], (row["benchmark"], row["computed"]),
                    fontsize=6, xytext=(2, 2), textcoords="offset points",
                )

        lo = float(min(data["benchmark"].min(), data["computed"].min()))
        hi = float(max(data["benchmark"].max(), data["computed"].max()))
        pad = (hi - lo) * 0.05 or abs(hi) * 0.05 or 1.0
        grid = np.linspace(max(lo - pad, 0), hi + pad, 2)

        # Reference lines at parity and the tolerance band
        ax.plot(grid, grid, color="black", linewidth=1, label="Parity")
        ax.plot(grid, grid * (1 + tolerance), color="grey", linestyle="--", linewidth=0.8)
        ax.plot(grid, grid * (1 - tolerance), color="grey", linestyle="--", linewidth=0.8)

        ax.set_xlim(grid[0], grid[-1])
        ax.set_ylim(grid[0], grid[-1] * (1 + tolerance))
        ax.set_xlabel("Benchmark (BAM)")
        ax.set_ylabel("Computed")
        ax.set_title(METRIC_LABELS.get(metric, metric))
        ax.legend(fontsize=7, loc="upper left")

    fig.tight_layout()
    return fig


def save_figure(fig: Any, path: Path, dpi: int = 150) -> Path:
    """Write a figure to disk and close it."""
    import matplotlib.pyplot as plt

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Saved figure to {path}")
    return path
