"""
Tests for quarterly earnings imputation.
"""

import numpy as np
import pandas as pd
import pytest

from uibench.model.earnings import (
    QUARTER_COLUMNS,
    allocate_weeks,
    check_quarterly_earnings,
    impute_quarterly_earnings,
)


class TestAllocateWeeks:
    """Weeks to quarters."""

    def test_recent_fills_latest_quarters_first(self):
        alloc = allocate_weeks(np.array([52, 30, 13, 5, 0]), "recent")
        np.testing.assert_array_equal(alloc[0], [13, 13, 13, 13])
        np.testing.assert_array_equal(alloc[1], [0, 4, 13, 13])
        np.testing.assert_array_equal(alloc[2], [0, 0, 0, 13])
        np.testing.assert_array_equal(alloc[3], [0, 0, 0, 5])
        np.testing.assert_array_equal(alloc[4], [0, 0, 0, 0])

    def test_uniform(self):
        alloc = allocate_weeks(np.array([20]), "uniform")
        np.testing.assert_allclose(alloc[0], [5, 5, 5, 5])

    def test_clips_out_of_range(self):
        alloc = allocate_weeks(np.array([60, -3, np.nan]), "recent")
        assert alloc[0].sum() == 52
        assert alloc[1].sum() == 0
        assert alloc[2].sum() == 0

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="Unknown earnings strategy"):
            allocate_weeks(np.array([10]), "front_loaded")


class TestImputeQuarterlyEarnings:
    """Quarterly earnings preserve annual wages."""

    @pytest.fixture
    def records(self):
        return pd.DataFrame({
            "incwage": [52000.0, 15000.0, 3900.0],
            "wkswork": [52, 30, 3],
        })

    @pytest.mark.parametrize("strategy", ["recent", "uniform"])
    def test_quarters_sum_to_annual_wage(self, records, strategy):
        out = impute_quarterly_earnings(records, strategy=strategy)
        np.testing.assert_allclose(out[QUARTER_COLUMNS].sum(axis=1), records["incwage"])
        assert (out[QUARTER_COLUMNS] >= 0).all().all()
        assert check_quarterly_earnings(out) == {"negative_quarter": 0, "exceeds_annual": 0}

    def test_weekly_wage(self, records):
        out = impute_quarterly_earnings(records)
        np.testing.assert_allclose(out["weekly_wage"], [1000.0, 500.0, 1300.0])

    def test_recent_short_spell_in_q4(self, records):
        out = impute_quarterly_earnings(records, strategy="recent")
        last = out.iloc[2]
        assert last["q4"] == pytest.approx(3900.0)
        assert last[["q1", "q2", "q3"]].sum() == 0

    def test_input_not_modified(self, records):
        impute_quarterly_earnings(records)
        assert "q1" not in records.columns


class TestCheckQuarterlyEarnings:
    """Invariant violations are counted."""

    def test_detects_violations(self):
        df = pd.DataFrame({
            "incwage": [100.0, 100.0, 100.0],
            "q1": [25.0, -1.0, 50.0],
            "q2": [25.0, 1.0, 50.0],
            "q3": [25.0, 0.0, 50.0],
            "q4": [25.0, 0.0, 50.0],
        })
        assert check_quarterly_earnings(df) == {"negative_quarter": 1, "exceeds_annual": 1}
