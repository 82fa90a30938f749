"""
Comparison of computed state statistics against administrative benchmarks.
"""

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

METRICS = ["aww", "wba", "replacement_rate"]

METRIC_LABELS = {
    "aww": "Average weekly wage",
    "wba": "Average weekly benefit",
    "replacement_rate": "Replacement rate",
    "wba_at_benchmark_aww": "Benefit at benchmark wage",
}


@dataclass
class MetricSummary:
    """Agreement statistics for one metric."""

    metric: str
    n_states: int
    share_within: float
    mean_abs_pct_error: float
    median_ratio: float
    correlation: float


@dataclass
class ComparisonResult:
    """Long-format comparison plus per-metric summaries."""

    comparison: pd.DataFrame
    tolerance: float
    metrics: dict[str, MetricSummary] = field(default_factory=dict)
    missing_benchmark: list[str] = field(default_factory=list)
    missing_computed: list[str] = field(default_factory=list)

    def outside_tolerance(self) -> pd.DataFrame:
        """Rows where the computed value misses the tolerance band."""
        df = self.comparison
        return df[df["ratio"].notna() & ~df["within_tolerance"]]

    def summary(self) -> str:
        """Generate text summary of agreement with the benchmark."""
        lines = []
        lines.append(f"\n{'='*70}")
        lines.append(f"Benchmark Comparison (tolerance ±{self.tolerance:.0%})")
        lines.append(f"{'='*70}")
        lines.append(
            f"{'Metric':<26} {'States':>7} {'Within':>8} {'MAPE':>8} {'Med.ratio':>10} {'Corr':>7}"
        )
        lines.append("-" * 70)
        for m in self.metrics.values():
            lines.append(
                f"{METRIC_LABELS.get(m.metric, m.metric):<26} {m.n_states:>7} "
                f"{m.share_within:>8.1%} {m.mean_abs_pct_error:>8.1%} "
                f"{m.median_ratio:>10.3f} {m.correlation:>7.3f}"
            )

        if self.missing_benchmark:
            lines.append(f"\nNo benchmark for: {', '.join(self.missing_benchmark)}")
        if self.missing_computed:
            lines.append(f"No estimate for: {', '.join(self.missing_computed)}")

        outside = self.outside_tolerance()
        if not outside.empty:
            lines.append(f"\nOutside tolerance ({len(outside)}):")
            for _, row in outside.sort_values("pct_diff", key=np.abs, ascending=False).head(15).iterrows():
                lines.append(
                    f"  {row['state']:<4} {row['metric']:<22} "
                    f"computed={row['computed']:>10.3f} benchmark={row['benchmark']:>10.3f} "
                    f"({row['pct_diff']:+.1%})"
                )

        return "\n".join(lines)


def _summarize_metric(df: pd.DataFrame, metric: str) -> MetricSummary:
    valid = df[df["ratio"].notna()]
    if len(valid) >= 2 and valid["computed"].std() > 0 and valid["benchmark"].std() > 0:
        corr = float(np.corrcoef(valid["computed"], valid["benchmark"])[0, 1])
    else:
        corr = np.nan
    return MetricSummary(
        metric=metric,
        n_states=len(valid),
        share_within=float(valid["within_tolerance"].mean()) if len(valid) else np.nan,
        mean_abs_pct_error=float(valid["pct_diff"].abs().mean()) if len(valid) else np.nan,
        median_ratio=float(valid["ratio"].median()) if len(valid) else np.nan,
        correlation=corr,
    )


def compare_to_benchmark(
    summary: pd.DataFrame,
    benchmark: pd.DataFrame,
    tolerance: float = 0.15,
    metrics: list[str] | None = None,
) -> ComparisonResult:
    """
    Compare computed state statistics with benchmark values.

    Args:
        summary: Output of ``summarize_by_state``
        benchmark: Output of ``BenchmarkLoader``
        tolerance: Relative band around the benchmark, e.g. 0.15 for ±15%
        metrics: Columns present in both frames to compare

    Returns:
        ComparisonResult with a long frame of
        ``state, metric, computed, benchmark, ratio, pct_diff, within_tolerance``
    """
    if tolerance < 0:
        raise ValueError("Tolerance must be non-negative")
    metrics = metrics or [m for m in METRICS if m in summary.columns and m in benchmark.columns]

    merged = summary.merge(
        benchmark, on="state", how="outer", suffixes=("_computed", "_benchmark"), indicator=True
    )
    missing_benchmark = sorted(merged.loc[merged["_merge"] == "left_only", "state"])
    missing_computed = sorted(merged.loc[merged["_merge"] == "right_only", "state"])
    both = merged[merged["_merge"] == "both"]

    frames = []
    for metric in metrics:
        computed = both[f"{metric}_computed"].astype(float)
        bench = both[f"{metric}_benchmark"].astype(float)
        with np.errstate(divide="ignore", invalid="ignore"):
            ratio = np.where(bench > 0, computed / bench, np.nan)
        frame = pd.DataFrame({
            "state": both["state"].to_numpy(),
            "metric": metric,
            "computed": computed.to_numpy(),
            "benchmark": bench.to_numpy(),
            "ratio": ratio,
        })
        frame["pct_diff"] = frame["ratio"] - 1
        frame["within_tolerance"] = frame["pct_diff"].abs() <= tolerance + 1e-12
        frames.append(frame)

    comparison = (
        pd.concat(frames, ignore_index=True)
        if frames
        else pd.DataFrame(columns=["state", "metric", "computed", "benchmark", "ratio", "pct_diff", "within_tolerance"])
    )

    result = ComparisonResult(
        comparison=comparison,
        tolerance=tolerance,
        metrics={m: _summarize_metric(comparison[comparison["metric"] == m], m) for m in metrics},
        missing_benchmark=missing_benchmark,
        missing_computed=missing_computed,
    )

    for m in result.metrics.values():
        logger.info(
            f"{m.metric}: {m.share_within:.0%} of {m.n_states} states within ±{tolerance:.0%}"
        )
    if missing_benchmark:
        logger.warning(f"States without benchmark: {missing_benchmark}")
    if missing_computed:
        logger.warning(f"Benchmark states without estimate: {missing_computed}")

    return result
