"""
Tests for the benefit calculator seam and estimator.
"""

import numpy as np
import pandas as pd
import pytest
import yaml

from uibench.engine.calculator import (
    BenefitEstimator,
    CalculatorError,
    ScheduleCalculator,
    StateSchedule,
    build_calculator,
    load_calculator,
)
from uibench.model.earnings import impute_quarterly_earnings


def records_for(states, incwage, wkswork):
    df = pd.DataFrame({
        "state": states,
        "incwage": incwage,
        "wkswork": wkswork,
        "weight": 1.0,
    })
    return impute_quarterly_earnings(df)


class TestLoadCalculator:
    """Import-path seam."""

    def test_loads_function(self):
        calc = load_calculator("tests.fixtures.synthetic_survey:half_high_quarter")
        assert calc([2600.0], [0.0], [0.0], [0.0], ["CA"]) == [100.0]

    def test_binds_reference_date(self):
        calc = load_calculator(
            "tests.fixtures.synthetic_survey:dated_calculator", reference_date="2019-01-01"
        )
        assert calc([1.0, 1.0], [0.0, 0.0], [0.0, 0.0], [0.0, 0.0], ["CA", "TX"]) == [2019.0, 2019.0]

    def test_instantiates_class(self):
        calc = load_calculator(
            "uibench.engine.calculator:ScheduleCalculator", reference_date="2020-01-01"
        )
        assert isinstance(calc, ScheduleCalculator)
        assert calc.reference_date == "2020-01-01"

    @pytest.mark.parametrize("spec", ["no_colon", ":func", "module:"])
    def test_malformed_import_path(self, spec):
        with pytest.raises(ValueError, match="package.module:attribute"):
            load_calculator(spec)

    def test_missing_module(self):
        with pytest.raises(ImportError):
            load_calculator("not_a_real_module_xyz:calc")

    def test_missing_attribute(self):
        with pytest.raises(ValueError, match="no attribute"):
            load_calculator("tests.fixtures.synthetic_survey:nope")

    def test_not_callable(self):
        with pytest.raises(ValueError, match="not callable"):
            load_calculator("tests.fixtures.synthetic_survey:DEFAULT_FIPS")


class TestScheduleCalculator:
    """Parametric stand-in schedule."""

    def test_high_quarter_with_floor_and_cap(self):
        calc = ScheduleCalculator(default=StateSchedule(divisor=26, min_wba=50, max_wba=450))
        result = calc(
            [0.0, 0.0, 0.0],
            [0.0, 0.0, 0.0],
            [0.0, 0.0, 0.0],
            [13000.0, 500.0, 26000.0],
            ["CA", "CA", "CA"],
        )
        assert result == [450.0, 50.0, 450.0]

    def test_methods(self):
        q = ([1000.0], [2000.0], [3000.0], [4000.0])
        high = ScheduleCalculator(default=StateSchedule(method="high_quarter", divisor=10))
        two = ScheduleCalculator(default=StateSchedule(method="two_high_quarters", divisor=10))
        annual = ScheduleCalculator(default=StateSchedule(method="annual", divisor=10))
        assert high(*q, ["TX"]) == [400.0]
        assert two(*q, ["TX"]) == [700.0]
        assert annual(*q, ["TX"]) == [1000.0]

    def test_min_base_period(self):
        calc = ScheduleCalculator(default=StateSchedule(min_base_period=2500, min_wba=50))
        assert calc([0.0], [0.0], [0.0], [2000.0], ["FL"]) == [0.0]

    def test_state_overrides(self):
        calc = ScheduleCalculator(
            schedules={"NY": StateSchedule(divisor=13)},
            default=StateSchedule(divisor=26),
        )
        assert calc([0.0, 0.0], [0.0, 0.0], [0.0, 0.0], [2600.0, 2600.0], ["NY", "TX"]) == [200.0, 100.0]

    def test_invalid_schedule(self):
        with pytest.raises(ValueError):
            StateSchedule(method="average")
        with pytest.raises(ValueError):
            StateSchedule(divisor=0)

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "schedule.yaml"
        path.write_text(yaml.safe_dump({
            "reference_date": "2018-07-01",
            "default": {"divisor": 26, "min_wba": 40, "max_wba": 400},
            "states": {"New York": {"max_wba": 500}},
        }))
        calc = ScheduleCalculator.from_yaml(path)
        assert calc.reference_date == "2018-07-01"
        assert calc.schedule_for("NY").max_wba == 500
        assert calc.schedule_for("NY").min_wba == 40
        assert calc.schedule_for("CA").max_wba == 400

    def test_from_yaml_rejects_unknown_keys(self, tmp_path):
        path = tmp_path / "schedule.yaml"
        path.write_text(yaml.safe_dump({"default": {"divisr": 26}}))
        with pytest.raises(ValueError, match="divisr"):
            ScheduleCalculator.from_yaml(path)

    def test_from_yaml_rejects_unknown_state(self, tmp_path):
        path = tmp_path / "schedule.yaml"
        path.write_text(yaml.safe_dump({"states": {"Guam": {"divisor": 26}}}))
        with pytest.raises(ValueError, match="Guam"):
            ScheduleCalculator.from_yaml(path)


class TestBuildCalculator:
    """Settings-driven construction."""

    def test_bundled_schedule(self):
        calc = build_calculator("schedule")
        assert isinstance(calc, ScheduleCalculator)
        assert calc.reference_date == "2019-01-01"

    def test_missing_schedule_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            build_calculator("schedule", schedule_path=tmp_path / "missing.yaml")

    def test_import_path(self):
        calc = build_calculator("tests.fixtures.synthetic_survey:half_high_quarter")
        assert calc([0.0], [0.0], [0.0], [1300.0], ["CA"]) == [50.0]


class TestBenefitEstimator:
    """Calling the calculator over survey records."""

    def test_statuses(self):
        df = records_for(
            ["CA", "DC", "TX", "NY"],
            [52000.0, 52000.0, 0.0, 100.0],
            [52, 52, 10, 1],
        )
        calc = ScheduleCalculator(default=StateSchedule(min_base_period=2500))
        out = BenefitEstimator(calc, excluded_states=["DC"]).estimate(df)

        assert out["wba_status"].tolist() == ["ok", "unsupported_state", "no_earnings", "ineligible"]
        assert out.loc[0, "wba"] == 500.0
        assert np.isnan(out.loc[1, "wba"])
        assert np.isnan(out.loc[2, "wba"])
        assert out.loc[3, "wba"] == 0.0
        assert out.loc[0, "replacement_rate"] == pytest.approx(0.5)

    def test_excluded_states_never_reach_calculator(self):
        seen = []

        def calc(q1, q2, q3, q4, states):
            seen.extend(states)
            return [100.0] * len(states)

        df = records_for(["CA", "DC", "TX"], [5000.0] * 3, [10] * 3)
        BenefitEstimator(calc, excluded_states=["DC"]).estimate(df)
        assert seen == ["CA", "TX"]

    def test_batches(self):
        calls = []

        def calc(q1, q2, q3, q4, states):
            calls.append(len(states))
            return [1.0] * len(states)

        df = records_for(["CA"] * 7, [5000.0] * 7, [10] * 7)
        estimator = BenefitEstimator(calc, excluded_states=[], batch_size=3)
        out = estimator.estimate(df)
        assert calls == [3, 3, 1]
        assert estimator.report.batches == 3
        assert (out["wba_status"] == "ok").all()

    @pytest.mark.parametrize("batch_size", [0, -5])
    def test_non_positive_batch_size(self, batch_size):
        with pytest.raises(ValueError, match="batch_size must be positive"):
            BenefitEstimator(lambda *a: [], batch_size=batch_size)

    def test_length_mismatch(self):
        df = records_for(["CA", "TX"], [5000.0] * 2, [10] * 2)
        with pytest.raises(CalculatorError, match="returned 1 values"):
            BenefitEstimator(lambda *a: [1.0], excluded_states=[]).estimate(df)

    def test_negative_output_strict(self):
        df = records_for(["CA"], [5000.0], [10])
        with pytest.raises(CalculatorError, match="negative or non-finite"):
            BenefitEstimator(lambda *a: [-1.0], excluded_states=[], strict=True).estimate(df)

    def test_invalid_output_lenient(self):
        df = records_for(["CA", "TX"], [5000.0] * 2, [10] * 2)
        out = BenefitEstimator(
            lambda *a: [float("nan"), 200.0], excluded_states=[], strict=False
        ).estimate(df)
        assert out["wba_status"].tolist() == ["invalid_output", "ok"]
        assert np.isnan(out.loc[0, "wba"])

    def test_report_counts(self):
        df = records_for(["CA", "DC"], [5000.0] * 2, [10] * 2)
        estimator = BenefitEstimator(lambda *a: [100.0], excluded_states=["DC"])
        estimator.estimate(df)
        assert estimator.report.status_counts == {"ok": 1, "unsupported_state": 1}
        assert "calculator calls" in estimator.report.summary()
