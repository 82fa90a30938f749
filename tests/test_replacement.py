"""
Tests for state aggregation.
"""

import numpy as np
import pandas as pd
import pytest

from uibench.model.replacement import (
    SUMMARY_COLUMNS,
    national_summary,
    summarize_by_state,
    weighted_mean,
)


@pytest.fixture
def benefit_records():
    return pd.DataFrame({
        "state": ["CA", "CA", "CA", "TX", "TX", "DC"],
        "weight": [1.0, 3.0, 2.0, 1.0, 1.0, 5.0],
        "weekly_wage": [1000.0, 500.0, 800.0, 600.0, 900.0, 700.0],
        "wba": [400.0, 300.0, 0.0, 300.0, np.nan, np.nan],
        "wba_status": ["ok", "ok", "ineligible", "ok", "no_earnings", "unsupported_state"],
        "replacement_rate": [0.4, 0.6, 0.0, 0.5, np.nan, np.nan],
    })


class TestWeightedMean:

    def test_ignores_nan(self):
        values = pd.Series([1.0, np.nan, 3.0])
        weights = pd.Series([1.0, 5.0, 1.0])
        assert weighted_mean(values, weights) == pytest.approx(2.0)

    def test_zero_weight_is_nan(self):
        assert np.isnan(weighted_mean(pd.Series([1.0]), pd.Series([0.0])))


class TestSummarizeByState:
    """Weighted averages over records with a positive benefit."""

    def test_mean_of_ratios(self, benefit_records):
        summary = summarize_by_state(benefit_records).set_index("state")

        ca = summary.loc["CA"]
        assert ca["n"] == 2
        assert ca["weighted_n"] == 4.0
        assert ca["aww"] == pytest.approx((1000 + 3 * 500) / 4)
        assert ca["wba"] == pytest.approx((400 + 3 * 300) / 4)
        assert ca["replacement_rate"] == pytest.approx((0.4 + 3 * 0.6) / 4)
        assert ca["share_eligible"] == pytest.approx(4 / 6)

    def test_ratio_of_means(self, benefit_records):
        summary = summarize_by_state(benefit_records, method="ratio_of_means").set_index("state")
        ca = summary.loc["CA"]
        assert ca["replacement_rate"] == pytest.approx(ca["wba"] / ca["aww"])

    def test_unassessed_records_excluded_from_share(self, benefit_records):
        summary = summarize_by_state(benefit_records).set_index("state")
        assert summary.loc["TX", "share_eligible"] == 1.0

    def test_state_without_benefits(self, benefit_records):
        summary = summarize_by_state(benefit_records).set_index("state")
        dc = summary.loc["DC"]
        assert dc["n"] == 0
        assert np.isnan(dc["aww"])
        assert np.isnan(dc["share_eligible"])

    def test_columns_and_order(self, benefit_records):
        summary = summarize_by_state(benefit_records)
        assert list(summary.columns) == SUMMARY_COLUMNS
        assert summary["state"].tolist() == ["CA", "DC", "TX"]

    def test_unknown_method(self, benefit_records):
        with pytest.raises(ValueError, match="Unknown replacement rate method"):
            summarize_by_state(benefit_records, method="median")


class TestNationalSummary:

    def test_pools_states(self, benefit_records):
        nat = national_summary(benefit_records)
        assert nat["state"] == "US"
        assert nat["n"] == 3
        assert nat["weighted_n"] == 5.0
