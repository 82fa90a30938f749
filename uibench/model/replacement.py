"""
State-level aggregation of wages, benefits and replacement rates.
"""

import logging
from typing import Literal

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

ReplacementMethod = Literal["mean_of_ratios", "ratio_of_means"]

SUMMARY_COLUMNS = [
    "state",
    "n",
    "weighted_n",
    "aww",
    "wba",
    "replacement_rate",
    "share_eligible",
]


def weighted_mean(values: pd.Series, weights: pd.Series) -> float:
    """Weighted mean ignoring NaN values; NaN when total weight is zero."""
    mask = values.notna() & weights.notna()
    w = weights[mask]
    if w.sum() <= 0:
        return np.nan
    return float(np.average(values[mask], weights=w))


def summarize_by_state(
    df: pd.DataFrame,
    method: ReplacementMethod = "mean_of_ratios",
) -> pd.DataFrame:
    """
    Weighted per-state averages over records with a positive benefit.

    Args:
        df: Records with ``state``, ``weight``, ``weekly_wage``, ``wba``,
            ``wba_status`` and ``replacement_rate``
        method: ``mean_of_ratios`` averages individual WBA / wage ratios;
            ``ratio_of_means`` divides the average WBA by the average wage

    Returns:
        One row per state with ``SUMMARY_COLUMNS``
    """
    if method not in ("mean_of_ratios", "ratio_of_means"):
        raise ValueError(f"Unknown replacement rate method: {method}")

    rows = []
    for state, group in df.groupby("state"):
        assessed = group[group["wba_status"].isin(["ok", "ineligible"])]
        paid = assessed[assessed["wba_status"] == "ok"]
        w = paid["weight"]

        aww = weighted_mean(paid["weekly_wage"], w)
        wba = weighted_mean(paid["wba"], w)
        if method == "mean_of_ratios":
            rr = weighted_mean(paid["replacement_rate"], w)
        else:
            rr = wba / aww if aww and not np.isnan(aww) else np.nan

        assessed_weight = assessed["weight"].sum()
        share_eligible = (
            float(w.sum() / assessed_weight) if assessed_weight > 0 else np.nan
        )

        rows.append({
            "state": state,
            "n": len(paid),
            "weighted_n": float(w.sum()),
            "aww": aww,
            "wba": wba,
            "replacement_rate": rr,
            "share_eligible": share_eligible,
        })

    summary = pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
    logger.info(f"Summarized {len(summary)} states ({method})")
    return summary.sort_values("state").reset_index(drop=True)


def national_summary(
    df: pd.DataFrame, method: ReplacementMethod = "mean_of_ratios"
) -> pd.Series:
    """Weighted national averages on the same basis as :func:`summarize_by_state`."""
    pooled = df.assign(state="US")
    return summarize_by_state(pooled, method=method).iloc[0]
