"""
Earnings, wage projection and aggregation models.
"""

from uibench.model.states import STATES, STATE_CODES, normalize_state, supported_states
from uibench.model.earnings import impute_quarterly_earnings, check_quarterly_earnings, QUARTER_COLUMNS
from uibench.model.quantile_projection import QuantileWageProjector, BenefitScheduleModel
from uibench.model.replacement import summarize_by_state, national_summary

__all__ = [
    "STATES",
    "STATE_CODES",
    "normalize_state",
    "supported_states",
    "impute_quarterly_earnings",
    "check_quarterly_earnings",
    "QUARTER_COLUMNS",
    "QuantileWageProjector",
    "BenefitScheduleModel",
    "summarize_by_state",
    "national_summary",
]
