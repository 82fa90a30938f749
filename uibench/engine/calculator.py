"""
Benefit calculator interface.

The statutory UI benefit calculator lives outside this repository. Its
contract is a single call:

    calculator(q1, q2, q3, q4, states) -> list[float]

with four equal-length sequences of non-negative quarterly earnings, a
matching sequence of two-letter state codes, and one non-negative weekly
benefit amount returned per record. Behavior for all-zero earnings and for
excluded jurisdictions is undefined, so those records never reach it.

``ScheduleCalculator`` is a parametric stand-in (fraction of high-quarter or
base-period wages between a floor and a cap) for dry runs and tests. It is
not the statutory rule set.
"""

import importlib
import inspect
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Protocol, Sequence

import numpy as np
import pandas as pd
import yaml

from config.settings import get_settings
from uibench.model.earnings import QUARTER_COLUMNS
from uibench.model.states import normalize_state, supported_states

logger = logging.getLogger(__name__)


class CalculatorError(RuntimeError):
    """Benefit calculator violated its output contract."""


class BenefitCalculator(Protocol):
    """Callable mapping quarterly earnings and states to weekly benefits."""

    def __call__(
        self,
        q1: Sequence[float],
        q2: Sequence[float],
        q3: Sequence[float],
        q4: Sequence[float],
        states: Sequence[str],
    ) -> list[float]:
        ...


def load_calculator(spec: str, reference_date: str | None = None) -> BenefitCalculator:
    """
    Import an external calculator from ``"package.module:attribute"``.

    Classes are instantiated; callables that take a ``reference_date``
    keyword have it bound.
    """
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Calculator must be 'package.module:attribute', got {spec!r}")

    module = importlib.import_module(module_name)
    try:
        target = getattr(module, attr)
    except AttributeError as e:
        raise ValueError(f"{module_name} has no attribute {attr!r}") from e

    takes_date = _accepts_reference_date(target)
    if inspect.isclass(target):
        target = target(reference_date=reference_date) if takes_date else target()
    elif takes_date and reference_date is not None:
        func = target

        def target(q1, q2, q3, q4, states):
            return func(q1, q2, q3, q4, states, reference_date=reference_date)

    if not callable(target):
        raise ValueError(f"Calculator {spec!r} is not callable")

    logger.info(f"Loaded benefit calculator {spec}")
    return target


def _accepts_reference_date(obj: Any) -> bool:
    try:
        return "reference_date" in inspect.signature(obj).parameters
    except (TypeError, ValueError):
        return False


@dataclass
class StateSchedule:
    """Parameters of a simplified benefit schedule."""

    method: str = "high_quarter"
    divisor: float = 26.0
    min_wba: float = 0.0
    max_wba: float = float("inf")
    min_base_period: float = 0.0
    rounding: str = "floor"

    def __post_init__(self):
        if self.method not in ("high_quarter", "two_high_quarters", "annual"):
            raise ValueError(f"Unknown schedule method: {self.method}")
        if self.divisor <= 0:
            raise ValueError("Schedule divisor must be positive")
        if self.rounding not in ("floor", "none"):
            raise ValueError(f"Unknown rounding: {self.rounding}")


class ScheduleCalculator:
    """Parametric benefit schedule keyed by state."""

    def __init__(
        self,
        schedules: dict[str, StateSchedule] | None = None,
        default: StateSchedule | None = None,
        reference_date: str | None = None,
    ):
        self.schedules = schedules or {}
        self.default = default or StateSchedule()
        self.reference_date = reference_date

    @classmethod
    def from_yaml(cls, path: Path, reference_date: str | None = None) -> "ScheduleCalculator":
        """
        Load schedules from YAML::

            reference_date: "2019-01-01"
            default: {method: high_quarter, divisor: 26, min_wba: 50, max_wba: 500}
            states:
              CA: {divisor: 26, min_wba: 40, max_wba: 450}
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        allowed = {f.name for f in fields(StateSchedule)}

        def build(params: dict[str, Any], base: dict[str, Any]) -> StateSchedule:
            unknown = set(params) - allowed
            if unknown:
                raise ValueError(f"Unknown schedule parameters in {path}: {sorted(unknown)}")
            return StateSchedule(**{**base, **params})

        default_params = data.get("default") or {}
        default = build(default_params, {})

        schedules = {}
        for key, params in (data.get("states") or {}).items():
            code = normalize_state(key)
            if code is None:
                raise ValueError(f"Unknown state in schedule {path}: {key}")
            schedules[code] = build(params or {}, default_params)

        reference_date = reference_date or data.get("reference_date")
        logger.info(f"Loaded benefit schedules for {len(schedules)} states from {path}")
        return cls(schedules=schedules, default=default, reference_date=reference_date)

    def schedule_for(self, state: str) -> StateSchedule:
        return self.schedules.get(state, self.default)

    def __call__(self, q1, q2, q3, q4, states) -> list[float]:
        quarters = np.column_stack([
            np.asarray(q1, dtype=float),
            np.asarray(q2, dtype=float),
            np.asarray(q3, dtype=float),
            np.asarray(q4, dtype=float),
        ])
        states = np.asarray(list(states), dtype=object)
        result = np.zeros(len(states))

        for state in pd.unique(states):
            idx = np.flatnonzero(states == state)
            sched = self.schedule_for(state)
            q = quarters[idx]
            base_period = q.sum(axis=1)

            if sched.method == "high_quarter":
                wages = q.max(axis=1)
            elif sched.method == "two_high_quarters":
                wages = np.sort(q, axis=1)[:, -2:].sum(axis=1)
            else:
                wages = base_period

            wba = np.clip(wages / sched.divisor, sched.min_wba, sched.max_wba)
            if sched.rounding == "floor":
                wba = np.floor(wba)
            wba = np.where(base_period >= sched.min_base_period, wba, 0.0)
            result[idx] = wba

        return result.tolist()


def build_calculator(
    spec: str | None = None,
    schedule_path: Path | None = None,
    reference_date: str | None = None,
) -> BenefitCalculator:
    """Calculator from settings: ``schedule`` or an import path."""
    settings = get_settings()
    spec = spec or settings.calculator
    reference_date = reference_date or settings.reference_date

    if spec == "schedule":
        path = schedule_path or settings.resolve(settings.schedule_path)
        if not Path(path).exists():
            raise FileNotFoundError(f"Benefit schedule not found: {path}")
        return ScheduleCalculator.from_yaml(Path(path), reference_date=reference_date)

    return load_calculator(spec, reference_date=reference_date)


@dataclass
class EstimationReport:
    """Counts of benefit estimation outcomes."""

    status_counts: dict[str, int] = field(default_factory=dict)
    batches: int = 0

    def summary(self) -> str:
        lines = ["Benefit estimation:"]
        for status, count in sorted(self.status_counts.items()):
            lines.append(f"  {status:<20} {count:>10,}")
        lines.append(f"  calculator calls     {self.batches:>10,}")
        return "\n".join(lines)


class BenefitEstimator:
    """Runs a benefit calculator over imputed survey records."""

    def __init__(
        self,
        calculator: BenefitCalculator | Callable[..., list[float]],
        excluded_states: list[str] | None = None,
        batch_size: int | None = None,
        strict: bool | None = None,
    ):
        settings = get_settings()
        self.calculator = calculator
        self.excluded_states = (
            settings.excluded_states if excluded_states is None else excluded_states
        )
        self.batch_size = settings.calculator_batch_size if batch_size is None else batch_size
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        self.strict = settings.strict_calculator if strict is None else strict
        self.report = EstimationReport()

    def estimate(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Add ``wba``, ``wba_status`` and ``replacement_rate``.

        Status values: ``ok`` (positive benefit), ``ineligible`` (zero
        benefit), ``unsupported_state``, ``no_earnings``, ``invalid_output``.
        """
        out = df.copy()
        out["wba"] = np.nan
        out["wba_status"] = "pending"

        quarters = out[QUARTER_COLUMNS].to_numpy(dtype=float)
        supported = out["state"].isin(supported_states(self.excluded_states)).to_numpy()
        has_earnings = (np.nan_to_num(quarters, nan=0.0) > 0).any(axis=1)

        out.loc[~supported, "wba_status"] = "unsupported_state"
        out.loc[supported & ~has_earnings, "wba_status"] = "no_earnings"

        todo = np.flatnonzero(supported & has_earnings)
        values = self._call_batched(quarters[todo], out["state"].to_numpy()[todo])

        bad = ~np.isfinite(values) | (values < 0)
        if bad.any():
            message = f"Calculator returned {int(bad.sum())} negative or non-finite values"
            if self.strict:
                raise CalculatorError(message)
            logger.warning(message)
            values = np.where(bad, np.nan, values)

        status = np.where(bad, "invalid_output", np.where(values > 0, "ok", "ineligible"))
        out.iloc[todo, out.columns.get_loc("wba")] = values
        out.iloc[todo, out.columns.get_loc("wba_status")] = status

        with np.errstate(divide="ignore", invalid="ignore"):
            out["replacement_rate"] = np.where(
                out["weekly_wage"] > 0, out["wba"] / out["weekly_wage"], np.nan
            )

        self.report.status_counts = out["wba_status"].value_counts().to_dict()
        logger.info(
            "Benefit estimates: "
            + ", ".join(f"{k}={v:,}" for k, v in sorted(self.report.status_counts.items()))
        )
        return out

    def _call_batched(self, quarters: np.ndarray, states: np.ndarray) -> np.ndarray:
        results: list[np.ndarray] = []
        self.report.batches = 0
        for start in range(0, len(states), self.batch_size):
            stop = min(start + self.batch_size, len(states))
            q = quarters[start:stop]
            batch_states = [str(s) for s in states[start:stop]]

            values = self.calculator(
                q[:, 0].tolist(),
                q[:, 1].tolist(),
                q[:, 2].tolist(),
                q[:, 3].tolist(),
                batch_states,
            )
            values = np.asarray(list(values), dtype=float)
            if len(values) != len(batch_states):
                raise CalculatorError(
                    f"Calculator returned {len(values)} values for {len(batch_states)} records"
                )
            results.append(values)
            self.report.batches += 1
            logger.debug(f"Calculator batch {start}-{stop}: {len(values)} values")

        if not results:
            return np.array([], dtype=float)
        return np.concatenate(results)
