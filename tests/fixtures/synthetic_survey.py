"""
Synthetic survey and benchmark data for tests.

Deterministic generators with fixed seeds. Column names follow the IPUMS
CPS ASEC extract the loader expects.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

# FIPS codes used by default: CA, FL, NY, TX
DEFAULT_FIPS = [6, 12, 36, 48]


def make_survey(
    n_per_group: int = 200,
    fips: list[int] | None = None,
    years: list[int] | None = None,
    annual_growth: float = 0.03,
    base_weekly_wage: float = 900.0,
    seed: int = 42,
) -> pd.DataFrame:
    """Clean CPS-style extract with log-normal weekly wages.

    Every quantile of log weekly wage grows by ``log(1 + annual_growth)``
    per earnings year, so quantile regressions should recover that slope.
    """
    rng = np.random.default_rng(seed)
    fips = fips or DEFAULT_FIPS
    years = years or [2016, 2017, 2018, 2019]

    frames = []
    for state_fips in fips:
        for year in years:
            earnings_year = year - 1
            log_wage = (
                np.log(base_weekly_wage)
                + np.log1p(annual_growth) * (earnings_year - (years[0] - 1))
                + rng.normal(0, 0.5, n_per_group)
            )
            weeks = rng.integers(1, 53, n_per_group)
            incwage = np.round(np.exp(log_wage) * weeks)
            frames.append(pd.DataFrame({
                "YEAR": year,
                "STATEFIP": state_fips,
                "ASECWT": rng.uniform(500, 3000, n_per_group).round(2),
                "INCWAGE": incwage,
                "WKSWORK1": weeks,
                "EMPSTAT": rng.choice([10, 21, 22], n_per_group, p=[0.6, 0.2, 0.2]),
                "DURUNEMP": rng.integers(0, 60, n_per_group),
                "WHYUNEMP": rng.integers(0, 7, n_per_group),
                "CITIZEN": rng.choice([1, 2, 3, 4, 5], n_per_group, p=[0.7, 0.05, 0.05, 0.1, 0.1]),
            }))
    return pd.DataFrame(pd.concat(frames, ignore_index=True))


def make_dirty_survey() -> pd.DataFrame:
    """Small extract with one record per filter rule plus two clean records."""
    rows = [
        # clean
        (2019, 6, 1000.0, 52000, 52, 1),
        (2019, 36, 1200.0, 26000, 20, 2),
        # invalid income codes
        (2019, 6, 1000.0, 99999999, 52, 1),
        (2019, 6, 1000.0, 99999998, 52, 1),
        # non-positive wage
        (2019, 6, 1000.0, 0, 52, 1),
        # weeks worked out of range
        (2019, 6, 1000.0, 30000, 0, 1),
        # non-citizen
        (2019, 6, 1000.0, 30000, 40, 5),
        # territory (Puerto Rico)
        (2019, 72, 1000.0, 30000, 40, 1),
        # excluded jurisdiction
        (2019, 11, 1000.0, 30000, 40, 1),
    ]
    return pd.DataFrame(
        rows, columns=["YEAR", "STATEFIP", "ASECWT", "INCWAGE", "WKSWORK1", "CITIZEN"]
    )


def make_benchmark(
    states: list[str] | None = None,
    aww: list[float] | None = None,
    wba: list[float] | None = None,
) -> pd.DataFrame:
    """Benchmark table formatted the way published tables are."""
    states = states or ["California", "Florida", "New York", "Texas"]
    aww = aww or [1050.25, 820.00, 1180.50, 960.75]
    wba = wba or [340.10, 250.00, 380.00, 390.40]
    return pd.DataFrame({
        "State": states,
        "Average Weekly Wage": [f"${v:,.2f}" for v in aww],
        "Average WBA": [f"${v:,.2f}" for v in wba],
        "Replacement Rate": [f"{100 * b / a:.1f}%" for a, b in zip(aww, wba)],
    })


def write_csv(df: pd.DataFrame, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path


def half_high_quarter(q1, q2, q3, q4, states):
    """Toy external calculator: half the high quarter spread over 13 weeks."""
    return [max(a, b, c, d) / 26 for a, b, c, d in zip(q1, q2, q3, q4)]


def dated_calculator(q1, q2, q3, q4, states, reference_date=None):
    """Toy calculator that encodes the reference year in its output."""
    year = int(reference_date[:4]) if reference_date else 0
    return [float(year)] * len(states)
