"""
Data loading and pipeline modules.
"""

from uibench.data.base import DataSource
from uibench.data.survey import SurveyLoader, SurveyFormatError, SampleReport
from uibench.data.benchmarks import BenchmarkLoader, BenchmarkFormatError, parse_currency, parse_rate
from uibench.data.data_lineage import DataLineageTracker, InputStatus
from uibench.data.data_pipeline import BenefitPipeline, PipelineResult, run_pipeline

__all__ = [
    "DataSource",
    "SurveyLoader",
    "SurveyFormatError",
    "SampleReport",
    "BenchmarkLoader",
    "BenchmarkFormatError",
    "parse_currency",
    "parse_rate",
    "DataLineageTracker",
    "InputStatus",
    "BenefitPipeline",
    "PipelineResult",
    "run_pipeline",
]
