"""
Quantile regressions for state wage distributions.

Survey earnings refer to the year before each survey year, while the
benchmark refers to a fixed reference year. For every state and quantile
tau on a grid we fit

    Q_tau(log w_i | t_i) = a_tau + b_tau * (t_i - t0)

and move each worker along their own quantile's trend:

    w_i' = w_i * exp(b_tau(i) * (T - t_i))

where tau(i) is the worker's weighted rank within their state-year and
b_tau(i) is interpolated across the grid. States with too few observations
or a single survey year borrow the pooled national fit.

The same machinery fits per-state median regressions of the weekly benefit
on the weekly wage, which lets the calculator be evaluated at a benchmark's
average weekly wage.
"""

import logging
import warnings
from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.regression.quantile_regression import QuantReg

from config.settings import get_settings
from uibench.model.earnings import QUARTER_COLUMNS

logger = logging.getLogger(__name__)

POOLED = "US"


@dataclass
class QuantileFit:
    """A single quantile regression line."""

    state: str
    quantile: float
    intercept: float
    slope: float
    nobs: int
    pooled: bool = False


def weighted_ranks(values: np.ndarray, weights: np.ndarray) -> np.ndarray:
    """Mid-point weighted ranks in (0, 1)."""
    values = np.asarray(values, dtype=float)
    weights = np.asarray(weights, dtype=float)
    if len(values) == 0:
        return np.array([])
    if weights.sum() <= 0:
        weights = np.ones_like(values)

    order = np.argsort(values, kind="mergesort")
    w = weights[order]
    cum = np.cumsum(w)
    mid = (cum - w / 2) / cum[-1]

    ranks = np.empty_like(mid)
    ranks[order] = mid
    return ranks


def _fit_line(y: np.ndarray, x: np.ndarray, q: float) -> tuple[float, float]:
    """Intercept and slope of the q-th conditional quantile of y given x."""
    if len(np.unique(x)) < 2:
        return float(np.quantile(y, q)), 0.0

    X = sm.add_constant(x, has_constant="add")
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        result = QuantReg(y, X).fit(q=q)
    intercept, slope = result.params
    return float(intercept), float(slope)


class QuantileWageProjector:
    """Projects weekly wages to a target year along state quantile trends."""

    def __init__(
        self,
        quantiles: list[float] | None = None,
        min_obs: int | None = None,
        target_year: int | None = None,
    ):
        settings = get_settings()
        self.quantiles = sorted(quantiles or settings.quantiles)
        if not all(0 < q < 1 for q in self.quantiles):
            raise ValueError(f"Quantiles must lie in (0, 1): {self.quantiles}")
        self.min_obs = settings.min_state_obs if min_obs is None else min_obs
        self.target_year = settings.reference_year if target_year is None else target_year
        self.base_year: int | None = None
        self.fits: dict[str, list[QuantileFit]] = {}

    def fit(
        self,
        df: pd.DataFrame,
        wage_col: str = "weekly_wage",
        year_col: str = "earnings_year",
    ) -> "QuantileWageProjector":
        """
        Fit quantile trends for every state in ``df`` plus a pooled fit.

        Args:
            df: Records with ``state``, year and weekly wage columns
            wage_col: Weekly wage column
            year_col: Year the wage refers to

        Returns:
            self
        """
        data = df[df[wage_col] > 0]
        if data.empty:
            raise ValueError("No positive wages to fit quantile regressions")

        self.base_year = int(data[year_col].min())
        self.fits = {}

        y_all = np.log(data[wage_col].to_numpy(dtype=float))
        x_all = data[year_col].to_numpy(dtype=float) - self.base_year
        self.fits[POOLED] = self._fit_group(POOLED, y_all, x_all, pooled=True)

        if len(np.unique(x_all)) < 2:
            logger.warning(
                "Survey covers a single earnings year; wage projection is the identity"
            )

        n_fallback = 0
        for state, group in data.groupby("state"):
            x = group[year_col].to_numpy(dtype=float) - self.base_year
            if len(group) < self.min_obs or len(np.unique(x)) < 2:
                n_fallback += 1
                continue
            y = np.log(group[wage_col].to_numpy(dtype=float))
            self.fits[state] = self._fit_group(state, y, x)

        logger.info(
            f"Fitted wage quantile trends for {len(self.fits) - 1} states "
            f"({n_fallback} using the pooled fit), base year {self.base_year}"
        )
        return self

    def _fit_group(
        self, state: str, y: np.ndarray, x: np.ndarray, pooled: bool = False
    ) -> list[QuantileFit]:
        fits = []
        for q in self.quantiles:
            intercept, slope = _fit_line(y, x, q)
            fits.append(
                QuantileFit(
                    state=state,
                    quantile=q,
                    intercept=intercept,
                    slope=slope,
                    nobs=len(y),
                    pooled=pooled,
                )
            )
        return fits

    def _state_fits(self, state: str) -> list[QuantileFit]:
        if not self.fits:
            raise RuntimeError("Projector is not fitted; call fit() first")
        return self.fits.get(state, self.fits[POOLED])

    def slopes(self, state: str) -> np.ndarray:
        return np.array([f.slope for f in self._state_fits(state)])

    def growth_factors(
        self, state: str, ranks: np.ndarray, years: np.ndarray
    ) -> np.ndarray:
        """Growth factor for workers at ``ranks`` observed in ``years``."""
        slope = np.interp(ranks, self.quantiles, self.slopes(state))
        horizon = self.target_year - np.asarray(years, dtype=float)
        return np.exp(slope * horizon)

    def project(
        self,
        df: pd.DataFrame,
        wage_col: str = "weekly_wage",
        year_col: str = "earnings_year",
    ) -> pd.DataFrame:
        """
        Scale wages and quarterly earnings to the target year.

        Adds ``wage_rank`` and ``growth_factor``; rescales ``weekly_wage``,
        ``incwage`` and ``q1``..``q4`` where present.
        """
        out = df.copy()
        ranks = np.full(len(out), np.nan)
        factors = np.ones(len(out))
        weights = (
            out["weight"].to_numpy(dtype=float)
            if "weight" in out.columns
            else np.ones(len(out))
        )

        for (state, year), idx in out.groupby(["state", year_col]).indices.items():
            r = weighted_ranks(out[wage_col].to_numpy(dtype=float)[idx], weights[idx])
            ranks[idx] = r
            factors[idx] = self.growth_factors(state, r, np.full(len(idx), year))

        out["wage_rank"] = ranks
        out["growth_factor"] = factors
        for col in [wage_col, "incwage", *QUARTER_COLUMNS]:
            if col in out.columns:
                out[col] = out[col] * factors

        logger.info(
            f"Projected wages to {self.target_year}; "
            f"median growth factor {np.median(factors) if len(factors) else 1.0:.3f}"
        )
        return out

    def predict_quantiles(self, state: str, year: int | None = None) -> pd.Series:
        """Projected weekly wage quantiles for ``state`` in ``year``."""
        year = self.target_year if year is None else year
        fits = self._state_fits(state)
        x = year - self.base_year
        return pd.Series(
            [np.exp(f.intercept + f.slope * x) for f in fits],
            index=pd.Index(self.quantiles, name="quantile"),
            name=state,
        )

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "state": f.state,
                    "quantile": f.quantile,
                    "intercept": f.intercept,
                    "slope": f.slope,
                    "annual_growth": np.exp(f.slope) - 1,
                    "nobs": f.nobs,
                    "pooled": f.pooled,
                }
                for fits in self.fits.values()
                for f in fits
            ]
        )

    def summary(self) -> str:
        """Text table of annual wage growth by state and quantile."""
        lines = []
        lines.append(f"\n{'='*70}")
        lines.append(f"Wage Quantile Trends (base {self.base_year}, target {self.target_year})")
        lines.append(f"{'='*70}")
        header = f"{'State':<6} {'N':>7} " + " ".join(f"{'q' + format(q, '.2f'):>8}" for q in self.quantiles)
        lines.append(header)
        lines.append("-" * len(header))
        for state, fits in sorted(self.fits.items()):
            growth = " ".join(f"{(np.exp(f.slope) - 1) * 100:>7.2f}%" for f in fits)
            lines.append(f"{state:<6} {fits[0].nobs:>7} {growth}")
        return "\n".join(lines)


class BenefitScheduleModel:
    """Per-state conditional-quantile line of weekly benefit on weekly wage."""

    def __init__(self, quantile: float = 0.5, min_obs: int = 10):
        self.quantile = quantile
        self.min_obs = min_obs
        self.fits: dict[str, QuantileFit] = {}

    def fit(self, df: pd.DataFrame) -> "BenefitScheduleModel":
        """Fit on records with a valid, positive benefit."""
        data = df[(df["wba_status"] == "ok") & (df["wba"] > 0)]
        self.fits = {}
        for state, group in data.groupby("state"):
            x = group["weekly_wage"].to_numpy(dtype=float)
            if len(group) < self.min_obs or len(np.unique(x)) < 2:
                logger.debug(f"Skipping benefit schedule for {state}: {len(group)} obs")
                continue
            y = group["wba"].to_numpy(dtype=float)
            intercept, slope = _fit_line(y, x, self.quantile)
            self.fits[state] = QuantileFit(
                state=state,
                quantile=self.quantile,
                intercept=intercept,
                slope=slope,
                nobs=len(group),
            )
        logger.info(f"Fitted benefit schedules for {len(self.fits)} states")
        return self

    def predict_benefit(self, state: str, weekly_wage: float) -> float:
        """Predicted benefit at ``weekly_wage``; NaN for unfitted states."""
        fit = self.fits.get(state)
        if fit is None or pd.isna(weekly_wage):
            return np.nan
        return max(0.0, fit.intercept + fit.slope * float(weekly_wage))

    def predict_at(self, benchmark: pd.DataFrame, wage_col: str = "aww") -> pd.Series:
        """Predicted benefit for each benchmark state at its wage."""
        return pd.Series(
            [self.predict_benefit(s, w) for s, w in zip(benchmark["state"], benchmark[wage_col])],
            index=benchmark.index,
            name="wba_at_benchmark_aww",
        )
