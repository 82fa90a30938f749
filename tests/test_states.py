"""
Tests for the state registry.
"""

import numpy as np
import pandas as pd

from uibench.model.states import (
    STATE_CODES,
    normalize_state,
    normalize_states,
    supported_states,
)


class TestNormalizeState:
    """Map codes, FIPS and names to two-letter codes."""

    def test_registry_has_states_and_dc(self):
        assert len(STATE_CODES) == 51
        assert "DC" in STATE_CODES

    def test_fips_codes(self):
        assert normalize_state(6) == "CA"
        assert normalize_state("06") == "CA"
        assert normalize_state(6.0) == "CA"
        assert normalize_state(np.int64(48)) == "TX"

    def test_names_and_codes(self):
        assert normalize_state("New York") == "NY"
        assert normalize_state(" texas ") == "TX"
        assert normalize_state("ca") == "CA"

    def test_dc_variants(self):
        for value in ["District of Columbia", "Washington D.C.", "DC", 11]:
            assert normalize_state(value) == "DC"

    def test_unknown_values(self):
        assert normalize_state(72) is None  # Puerto Rico
        assert normalize_state("Guam") is None
        assert normalize_state(None) is None
        assert normalize_state(np.nan) is None
        assert normalize_state(6.5) is None

    def test_vectorized(self):
        result = normalize_states(pd.Series([6, "Florida", 72]))
        assert result.iloc[:2].tolist() == ["CA", "FL"]
        assert pd.isna(result.iloc[2])


class TestSupportedStates:
    """Excluded jurisdictions are removed from the supported set."""

    def test_excludes_by_any_identifier(self):
        supported = supported_states(["District of Columbia", 48])
        assert "DC" not in supported
        assert "TX" not in supported
        assert len(supported) == 49

    def test_no_exclusions(self):
        assert supported_states(None) == STATE_CODES
