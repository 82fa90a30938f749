"""
State registry for survey and benchmark harmonization.

Survey extracts identify states by FIPS code, benchmark tables by postal
code or full name. Everything downstream is keyed by the two-letter code.
"""

import logging
from dataclasses import dataclass

import pandas as pd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class State:
    """A UI jurisdiction."""

    code: str
    fips: int
    name: str


STATES = [
    State("AL", 1, "Alabama"),
    State("AK", 2, "Alaska"),
    State("AZ", 4, "Arizona"),
    State("AR", 5, "Arkansas"),
    State("CA", 6, "California"),
    State("CO", 8, "Colorado"),
    State("CT", 9, "Connecticut"),
    State("DE", 10, "Delaware"),
    State("DC", 11, "District of Columbia"),
    State("FL", 12, "Florida"),
    State("GA", 13, "Georgia"),
    State("HI", 15, "Hawaii"),
    State("ID", 16, "Idaho"),
    State("IL", 17, "Illinois"),
    State("IN", 18, "Indiana"),
    State("IA", 19, "Iowa"),
    State("KS", 20, "Kansas"),
    State("KY", 21, "Kentucky"),
    State("LA", 22, "Louisiana"),
    State("ME", 23, "Maine"),
    State("MD", 24, "Maryland"),
    State("MA", 25, "Massachusetts"),
    State("MI", 26, "Michigan"),
    State("MN", 27, "Minnesota"),
    State("MS", 28, "Mississippi"),
    State("MO", 29, "Missouri"),
    State("MT", 30, "Montana"),
    State("NE", 31, "Nebraska"),
    State("NV", 32, "Nevada"),
    State("NH", 33, "New Hampshire"),
    State("NJ", 34, "New Jersey"),
    State("NM", 35, "New Mexico"),
    State("NY", 36, "New York"),
    State("NC", 37, "North Carolina"),
    State("ND", 38, "North Dakota"),
    State("OH", 39, "Ohio"),
    State("OK", 40, "Oklahoma"),
    State("OR", 41, "Oregon"),
    State("PA", 42, "Pennsylvania"),
    State("RI", 44, "Rhode Island"),
    State("SC", 45, "South Carolina"),
    State("SD", 46, "South Dakota"),
    State("TN", 47, "Tennessee"),
    State("TX", 48, "Texas"),
    State("UT", 49, "Utah"),
    State("VT", 50, "Vermont"),
    State("VA", 51, "Virginia"),
    State("WA", 53, "Washington"),
    State("WV", 54, "West Virginia"),
    State("WI", 55, "Wisconsin"),
    State("WY", 56, "Wyoming"),
]

STATE_CODES = [s.code for s in STATES]

FIPS_TO_CODE = {s.fips: s.code for s in STATES}

# Alternate spellings seen in administrative tables
STATE_NAME_NORMALIZATION = {
    "washington dc": "DC",
    "washington d.c.": "DC",
    "d.c.": "DC",
    "dist. of columbia": "DC",
    "dist of columbia": "DC",
}

_LOOKUP: dict[str, str] = {}
for _s in STATES:
    _LOOKUP[_s.code.lower()] = _s.code
    _LOOKUP[_s.name.lower()] = _s.code
    _LOOKUP[str(_s.fips)] = _s.code
    _LOOKUP[f"{_s.fips:02d}"] = _s.code
_LOOKUP.update(STATE_NAME_NORMALIZATION)


def normalize_state(value) -> str | None:
    """
    Map a state code, FIPS code, or name to its two-letter code.

    Returns None for territories and anything unrecognized.
    """
    if value is None:
        return None
    if isinstance(value, float):
        if pd.isna(value) or not value.is_integer():
            return None
        value = int(value)
    key = str(value).strip().lower()
    return _LOOKUP.get(key)


def normalize_states(values: pd.Series) -> pd.Series:
    """Vectorized :func:`normalize_state`."""
    return values.map(normalize_state)


def supported_states(excluded: list[str] | None = None) -> list[str]:
    """State codes the benefit calculator accepts."""
    excluded_codes = {normalize_state(e) for e in (excluded or [])}
    return [code for code in STATE_CODES if code not in excluded_codes]
