"""
CPS ASEC survey extract loader.

Reads an IPUMS-style person extract, renames columns to canonical names and
applies the sample filters used for benefit estimation:

- valid, positive annual wage income
- weeks worked in 1-52
- citizens only (optional)
- state known to the registry and supported by the benefit calculator
- unemployed job losers with a short spell (optional ``job_losers`` sample)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from config.settings import get_settings
from uibench.data.base import DataSource
from uibench.model.states import normalize_states, supported_states

logger = logging.getLogger(__name__)


class SurveyFormatError(ValueError):
    """Survey extract is missing required columns or is unparseable."""


# Canonical name -> default IPUMS column
SURVEY_COLUMNS = {
    "year": "YEAR",
    "statefip": "STATEFIP",
    "weight": "ASECWT",
    "incwage": "INCWAGE",
    "wkswork": "WKSWORK1",
    "empstat": "EMPSTAT",
    "durunemp": "DURUNEMP",
    "whyunemp": "WHYUNEMP",
    "citizen": "CITIZEN",
}

REQUIRED_COLUMNS = ["year", "statefip", "incwage", "wkswork"]

# INCWAGE top codes: 99999999 = N.I.U., 99999998 = missing
INVALID_INCOME_CODES = [99999998, 99999999]

NONCITIZEN_CODE = 5

# EMPSTAT 20-22: unemployed
UNEMPLOYED_CODES = [20, 21, 22]

# WHYUNEMP 1-3: job loser on layoff, other job loser, temporary job ended
JOB_LOSER_CODES = [1, 2, 3]

SAMPLES = ("all_workers", "job_losers")


@dataclass
class FilterStep:
    """Rows removed by one sample filter."""

    name: str
    rows_before: int
    rows_dropped: int

    @property
    def rows_after(self) -> int:
        return self.rows_before - self.rows_dropped


@dataclass
class SampleReport:
    """Sequence of filters applied to the survey extract."""

    initial_rows: int = 0
    steps: list[FilterStep] = field(default_factory=list)

    @property
    def final_rows(self) -> int:
        if not self.steps:
            return self.initial_rows
        return self.steps[-1].rows_after

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "filter": s.name,
                    "rows_before": s.rows_before,
                    "rows_dropped": s.rows_dropped,
                    "rows_after": s.rows_after,
                }
                for s in self.steps
            ]
        )

    def summary(self) -> str:
        lines = [f"Survey sample: {self.initial_rows:,} records"]
        for s in self.steps:
            lines.append(f"  - {s.name:<28} dropped {s.rows_dropped:>8,}  -> {s.rows_after:,}")
        lines.append(f"Final sample: {self.final_rows:,} records")
        return "\n".join(lines)


class SurveyLoader(DataSource):
    """Loader for CPS ASEC person records."""

    def __init__(
        self,
        column_map: dict[str, str] | None = None,
        excluded_states: list[str] | None = None,
        require_citizen: bool | None = None,
        sample: str | None = None,
        max_duration_weeks: int | None = None,
        cache_dir: Path | None = None,
    ):
        super().__init__(cache_dir)
        settings = get_settings()
        self.column_map = {**SURVEY_COLUMNS, **(column_map or {})}
        self.excluded_states = (
            settings.excluded_states if excluded_states is None else excluded_states
        )
        self.require_citizen = (
            settings.require_citizen if require_citizen is None else require_citizen
        )
        self.sample = sample or settings.sample
        if self.sample not in SAMPLES:
            raise ValueError(f"Unknown sample: {self.sample}. Expected one of {SAMPLES}")
        self.max_duration_weeks = (
            settings.max_duration_weeks if max_duration_weeks is None else max_duration_weeks
        )
        self.report = SampleReport()

    @property
    def source_name(self) -> str:
        return "cps_asec"

    def fetch(self, path: Path, **kwargs: Any) -> pd.DataFrame:
        """
        Read the extract and rename columns to canonical names.

        ``column_map`` in kwargs only keys the cache; parsing uses
        ``self.column_map``.
        """
        raw = pd.read_csv(path, low_memory=False)
        return self.standardize(raw)

    def standardize(self, raw: pd.DataFrame) -> pd.DataFrame:
        """Rename to canonical columns and coerce to numeric."""
        upper = {c.upper(): c for c in raw.columns}
        rename = {}
        for canonical, source in self.column_map.items():
            if source.upper() in upper:
                rename[upper[source.upper()]] = canonical

        df = raw.rename(columns=rename)
        df = df[[c for c in self.column_map if c in df.columns]].copy()

        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            expected = [self.column_map[c] for c in missing]
            raise SurveyFormatError(f"Survey extract missing required columns: {expected}")

        for col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")

        if "weight" not in df.columns:
            logger.warning("No person weight column; using unit weights")
            df["weight"] = 1.0

        return df

    def load(self, path: Path | None = None) -> pd.DataFrame:
        """Read (with cache) and filter the survey extract."""
        settings = get_settings()
        path = Path(path) if path is not None else settings.resolve(settings.survey_path)
        df = self.fetch_with_cache(path, column_map=self.column_map)
        return self.filter(df)

    def filter(self, df: pd.DataFrame) -> pd.DataFrame:
        """Apply sample filters, recording each step in ``self.report``."""
        self.report = SampleReport(initial_rows=len(df))
        df = df.copy()

        df = self._apply(
            df,
            "invalid income code",
            ~df["incwage"].isin(INVALID_INCOME_CODES) & df["incwage"].notna(),
        )
        df = self._apply(df, "missing survey year", df["year"].notna())
        df = self._apply(df, "non-positive wage", df["incwage"] > 0)
        df = self._apply(
            df, "weeks worked outside 1-52", df["wkswork"].between(1, 52)
        )

        if self.require_citizen:
            if "citizen" in df.columns:
                df = self._apply(df, "non-citizen", df["citizen"] != NONCITIZEN_CODE)
            else:
                logger.warning("require_citizen set but no citizenship column; skipping")

        df["state"] = normalize_states(df["statefip"])
        df = self._apply(df, "unknown state", df["state"].notna())
        supported = supported_states(self.excluded_states)
        df = self._apply(df, "unsupported jurisdiction", df["state"].isin(supported))

        if self.sample == "job_losers":
            df = self._filter_job_losers(df)

        df["weight"] = df["weight"].fillna(0.0).clip(lower=0.0)
        df["earnings_year"] = df["year"].astype(int) - 1

        logger.info(f"Survey sample: {self.report.initial_rows:,} -> {len(df):,} records")
        return df.reset_index(drop=True)

    def _filter_job_losers(self, df: pd.DataFrame) -> pd.DataFrame:
        for col in ("empstat", "whyunemp", "durunemp"):
            if col not in df.columns:
                raise SurveyFormatError(
                    f"job_losers sample requires column {self.column_map[col]}"
                )
        df = self._apply(df, "not unemployed", df["empstat"].isin(UNEMPLOYED_CODES))
        df = self._apply(df, "not a job loser", df["whyunemp"].isin(JOB_LOSER_CODES))
        df = self._apply(
            df,
            f"spell over {self.max_duration_weeks} weeks",
            df["durunemp"].between(0, self.max_duration_weeks),
        )
        return df

    def _apply(self, df: pd.DataFrame, name: str, keep: pd.Series) -> pd.DataFrame:
        keep = keep.fillna(False).astype(bool)
        dropped = int((~keep).sum())
        self.report.steps.append(FilterStep(name=name, rows_before=len(df), rows_dropped=dropped))
        if dropped:
            logger.info(f"Filter '{name}': dropped {dropped:,} of {len(df):,}")
        return df[keep].copy()
