"""
Benefit calculation and benchmark validation.
"""

from uibench.engine.calculator import (
    BenefitCalculator,
    BenefitEstimator,
    CalculatorError,
    ScheduleCalculator,
    build_calculator,
    load_calculator,
)
from uibench.engine.comparison import ComparisonResult, compare_to_benchmark
from uibench.engine.plots import plot_benchmark_comparison, save_figure

__all__ = [
    "BenefitCalculator",
    "BenefitEstimator",
    "CalculatorError",
    "ScheduleCalculator",
    "build_calculator",
    "load_calculator",
    "ComparisonResult",
    "compare_to_benchmark",
    "plot_benchmark_comparison",
    "save_figure",
]
