"""
BAM benchmark loader.

State-level administrative benchmarks: average weekly wage, average weekly
benefit amount and replacement rate. Published tables carry numbers as
display strings ("$1,023.45", "42.1%"), so parsing is tolerant.
"""

import logging
import re
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from config.settings import get_settings
from uibench.data.base import DataSource
from uibench.model.states import normalize_states

logger = logging.getLogger(__name__)


class BenchmarkFormatError(ValueError):
    """Benchmark table is missing columns or contains duplicate states."""


# Canonical name -> accepted header spellings (lowercased, punctuation stripped)
BENCHMARK_ALIASES = {
    "state": ["state", "st", "state_code", "state_name", "jurisdiction"],
    "aww": ["aww", "average_weekly_wage", "avg_weekly_wage", "weekly_wage"],
    "wba": ["wba", "awba", "average_wba", "avg_wba", "weekly_benefit_amount", "average_weekly_benefit"],
    "replacement_rate": ["replacement_rate", "rr", "replacement_ratio", "replacement"],
}

MISSING_TOKENS = {"", "na", "n/a", "nan", "-", "--", "none", "null"}

_STRIP_RE = re.compile(r"[\$,\s]")


def parse_currency(value: Any) -> float:
    """
    Parse a currency-formatted value to float.

    "$1,023.45" -> 1023.45, "$(12.00)" -> -12.0, "N/A" -> nan.
    """
    if value is None:
        return np.nan
    if isinstance(value, (int, float, np.number)):
        return float(value)

    text = str(value).strip()
    if text.lower() in MISSING_TOKENS:
        return np.nan

    text = _STRIP_RE.sub("", text)
    negative = text.startswith("(") and text.endswith(")")
    text = text.strip("()")

    try:
        number = float(text)
    except ValueError:
        logger.warning(f"Unparseable currency value: {value!r}")
        return np.nan
    return -number if negative else number


def parse_rate(value: Any) -> float:
    """
    Parse a rate to a fraction.

    "42.1%" -> 0.421, "0.421" -> 0.421, "42.1" -> 0.421.
    Bare numbers above 1.5 are read as percentages.
    """
    if isinstance(value, str) and "%" in value:
        number = parse_currency(value.replace("%", ""))
        return number / 100
    number = parse_currency(value)
    if not np.isnan(number) and number > 1.5:
        return number / 100
    return number


def _normalize_header(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", str(name).strip().lower()).strip("_")


class BenchmarkLoader(DataSource):
    """Loader for state-level BAM benchmark tables."""

    def __init__(
        self,
        column_map: dict[str, str] | None = None,
        cache_dir: Path | None = None,
    ):
        super().__init__(cache_dir)
        self.column_map = column_map or {}

    @property
    def source_name(self) -> str:
        return "bam_benchmarks"

    def fetch(self, path: Path, **kwargs: Any) -> pd.DataFrame:
        """
        Read the benchmark CSV as strings and parse it.

        ``column_map`` in kwargs only keys the cache; parsing uses
        ``self.column_map``.
        """
        raw = pd.read_csv(path, dtype=str, keep_default_na=False)
        return self.parse(raw)

    def load(self, path: Path | None = None) -> pd.DataFrame:
        """Read (with cache) the benchmark table."""
        settings = get_settings()
        path = Path(path) if path is not None else settings.resolve(settings.benchmark_path)
        return self.fetch_with_cache(path, column_map=self.column_map)

    def resolve_columns(self, columns: list[str]) -> dict[str, str]:
        """Map canonical names to headers present in the table."""
        by_normalized = {_normalize_header(c): c for c in columns}
        resolved = {}
        for canonical, aliases in BENCHMARK_ALIASES.items():
            if canonical in self.column_map:
                source = self.column_map[canonical]
                if source not in columns:
                    raise BenchmarkFormatError(f"Configured column not found: {source}")
                resolved[canonical] = source
                continue
            for alias in aliases:
                if alias in by_normalized:
                    resolved[canonical] = by_normalized[alias]
                    break
        return resolved

    def parse(self, raw: pd.DataFrame) -> pd.DataFrame:
        """Parse a raw benchmark table into ``state, aww, wba, replacement_rate``."""
        resolved = self.resolve_columns(list(raw.columns))

        missing = [c for c in ("state", "aww", "wba") if c not in resolved]
        if missing:
            raise BenchmarkFormatError(
                f"Benchmark table missing columns {missing}; found {list(raw.columns)}"
            )

        df = pd.DataFrame({
            "state": normalize_states(raw[resolved["state"]]),
            "aww": raw[resolved["aww"]].map(parse_currency),
            "wba": raw[resolved["wba"]].map(parse_currency),
        })

        if "replacement_rate" in resolved:
            df["replacement_rate"] = raw[resolved["replacement_rate"]].map(parse_rate)
        else:
            logger.info("No replacement rate column; deriving as wba / aww")
            df["replacement_rate"] = df["wba"] / df["aww"]

        unknown = raw.loc[df["state"].isna(), resolved["state"]].tolist()
        if unknown:
            logger.warning(f"Dropping benchmark rows with unknown state: {unknown}")
            df = df[df["state"].notna()]

        duplicated = df.loc[df["state"].duplicated(), "state"].tolist()
        if duplicated:
            raise BenchmarkFormatError(f"Duplicate benchmark states: {duplicated}")

        return df.sort_values("state").reset_index(drop=True)
