"""
Benefit benchmarking pipeline orchestration.

Coordinates survey loading, quarterly earnings imputation, wage projection,
benefit calculation, state aggregation and benchmark comparison.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from config.settings import get_settings
from uibench.data.benchmarks import BenchmarkLoader
from uibench.data.data_lineage import DataLineageTracker, InputStatus
from uibench.data.survey import SurveyLoader
from uibench.engine.calculator import BenefitCalculator, BenefitEstimator, build_calculator
from uibench.engine.comparison import ComparisonResult, compare_to_benchmark
from uibench.engine.plots import plot_benchmark_comparison, save_figure
from uibench.model.earnings import check_quarterly_earnings, impute_quarterly_earnings
from uibench.model.quantile_projection import BenefitScheduleModel, QuantileWageProjector
from uibench.model.replacement import national_summary, summarize_by_state

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outputs of a full pipeline run."""

    records: pd.DataFrame
    summary: pd.DataFrame
    comparison: ComparisonResult | None = None
    schedule_check: ComparisonResult | None = None
    projector: QuantileWageProjector | None = None
    output_paths: dict[str, Path] = field(default_factory=dict)


class BenefitPipeline:
    """Runs the survey-to-benchmark benefit analysis."""

    def __init__(
        self,
        calculator: BenefitCalculator | None = None,
        survey_loader: SurveyLoader | None = None,
        benchmark_loader: BenchmarkLoader | None = None,
        output_dir: Path | None = None,
    ):
        settings = get_settings()
        self.settings = settings
        self._calculator = calculator
        self.survey_loader = survey_loader or SurveyLoader()
        self.benchmark_loader = benchmark_loader or BenchmarkLoader()
        self.output_dir = output_dir or settings.resolve(settings.output_dir)
        self.lineage = DataLineageTracker()
        self.projector: QuantileWageProjector | None = None
        self.estimator: BenefitEstimator | None = None

    @property
    def calculator(self) -> BenefitCalculator:
        """Lazy-loaded benefit calculator."""
        if self._calculator is None:
            self._calculator = build_calculator()
        return self._calculator

    def load_sample(self, path: Path | None = None) -> pd.DataFrame:
        """Load and filter the survey extract."""
        df = self.survey_loader.load(path)
        report = self.survey_loader.report

        meta = self.survey_loader.metadata[-1] if self.survey_loader.metadata else None
        self.lineage.record_input(
            "survey",
            InputStatus.CACHED if meta and meta.notes == "cache" else InputStatus.READ,
            path=meta.path if meta else path,
            rows=len(df),
            columns=len(df.columns),
            notes=[f"{s.name}: -{s.rows_dropped:,}" for s in report.steps],
            metadata={"initial_rows": report.initial_rows, "sample": self.survey_loader.sample},
        )
        self.lineage.record_sample_loss(report.initial_rows, report.final_rows)

        if df.empty:
            raise ValueError("No survey records left after sample filters")
        return df

    def impute(self, df: pd.DataFrame) -> pd.DataFrame:
        """Impute quarterly earnings and verify the invariants."""
        out = impute_quarterly_earnings(df, strategy=self.settings.earnings_strategy)
        violations = check_quarterly_earnings(out)
        if any(violations.values()):
            raise ValueError(f"Quarterly earnings imputation violated invariants: {violations}")
        return out

    def project(self, df: pd.DataFrame) -> pd.DataFrame:
        """Fit state wage quantile trends and project to the reference year."""
        self.projector = QuantileWageProjector().fit(df)
        return self.projector.project(df)

    def estimate_benefits(self, df: pd.DataFrame) -> pd.DataFrame:
        """Call the benefit calculator for every eligible record."""
        self.estimator = BenefitEstimator(self.calculator)
        out = self.estimator.estimate(df)
        self.lineage.record_input(
            "calculator",
            InputStatus.READ,
            notes=[f"{k}: {v:,}" for k, v in sorted(self.estimator.report.status_counts.items())],
            metadata={
                "calculator": self.settings.calculator,
                "reference_date": self.settings.reference_date,
                "excluded_states": self.estimator.excluded_states,
            },
        )
        return out

    def summarize(self, df: pd.DataFrame) -> pd.DataFrame:
        """State-level averages."""
        return summarize_by_state(df, method=self.settings.replacement_rate_method)

    def load_benchmark(self, path: Path | None = None) -> pd.DataFrame:
        """Load the benchmark table."""
        df = self.benchmark_loader.load(path)
        meta = self.benchmark_loader.metadata[-1] if self.benchmark_loader.metadata else None
        missing_pct = float(df[["aww", "wba", "replacement_rate"]].isna().mean().mean() * 100)
        self.lineage.record_input(
            "benchmark",
            InputStatus.PARTIAL if missing_pct > 5 else (
                InputStatus.CACHED if meta and meta.notes == "cache" else InputStatus.READ
            ),
            path=meta.path if meta else path,
            rows=len(df),
            columns=len(df.columns),
            missing_pct=missing_pct,
        )
        return df

    def compare(
        self, summary: pd.DataFrame, benchmark: pd.DataFrame
    ) -> ComparisonResult:
        """Compare state summaries with the benchmark."""
        return compare_to_benchmark(summary, benchmark, tolerance=self.settings.tolerance)

    def check_schedule(
        self, records: pd.DataFrame, benchmark: pd.DataFrame
    ) -> ComparisonResult:
        """
        Evaluate the calculator's median benefit at each benchmark wage.

        Separates disagreement in wage levels from disagreement in the
        benefit schedule itself.
        """
        model = BenefitScheduleModel().fit(records)
        predicted = model.predict_at(benchmark)
        computed = pd.DataFrame({"state": benchmark["state"], "wba_at_benchmark_aww": predicted})
        target = pd.DataFrame({"state": benchmark["state"], "wba_at_benchmark_aww": benchmark["wba"]})
        return compare_to_benchmark(
            computed[computed["wba_at_benchmark_aww"].notna()],
            target,
            tolerance=self.settings.tolerance,
            metrics=["wba_at_benchmark_aww"],
        )

    def run(
        self,
        survey_path: Path | None = None,
        benchmark_path: Path | None = None,
        save: bool = True,
    ) -> PipelineResult:
        """
        Run every step.

        Args:
            survey_path: Survey extract (default from settings)
            benchmark_path: Benchmark table (default from settings); the
                comparison is skipped when the file does not exist
            save: Write CSV outputs, the plot and the lineage report

        Returns:
            PipelineResult
        """
        records = self.load_sample(survey_path)
        records = self.impute(records)
        if self.settings.project_wages:
            records = self.project(records)
        records = self.estimate_benefits(records)
        summary = self.summarize(records)

        result = PipelineResult(records=records, summary=summary, projector=self.projector)

        bench_path = Path(benchmark_path) if benchmark_path else self.settings.resolve(
            self.settings.benchmark_path
        )
        if bench_path.exists():
            benchmark = self.load_benchmark(bench_path)
            result.comparison = self.compare(summary, benchmark)
            result.schedule_check = self.check_schedule(records, benchmark)
        else:
            logger.warning(f"Benchmark not found at {bench_path}; skipping comparison")

        if save:
            result.output_paths = self.save_outputs(result)

        return result

    def save_outputs(self, result: PipelineResult) -> dict[str, Path]:
        """Write records, summaries, comparison, plot and lineage."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        paths: dict[str, Path] = {}

        paths["records"] = self.output_dir / "benefit_records.csv"
        result.records.to_csv(paths["records"], index=False)

        paths["state_summary"] = self.output_dir / "state_summary.csv"
        result.summary.to_csv(paths["state_summary"], index=False)

        paths["sample_filters"] = self.output_dir / "sample_filters.csv"
        self.survey_loader.report.to_dataframe().to_csv(paths["sample_filters"], index=False)

        if result.projector is not None:
            paths["wage_quantiles"] = self.output_dir / "wage_quantile_trends.csv"
            result.projector.to_dataframe().to_csv(paths["wage_quantiles"], index=False)

        if result.comparison is not None:
            paths["comparison"] = self.output_dir / "benchmark_comparison.csv"
            result.comparison.comparison.to_csv(paths["comparison"], index=False)

            if not result.comparison.comparison.empty:
                fig = plot_benchmark_comparison(
                    result.comparison.comparison, tolerance=self.settings.tolerance
                )
                paths["plot"] = save_figure(fig, self.output_dir / "benchmark_comparison.png")

        if result.schedule_check is not None:
            paths["schedule_check"] = self.output_dir / "schedule_check.csv"
            result.schedule_check.comparison.to_csv(paths["schedule_check"], index=False)

        paths["lineage"] = self.output_dir / "lineage.json"
        self.lineage.save(paths["lineage"])

        for name, path in paths.items():
            logger.info(f"Wrote {name}: {path}")
        return paths

    def print_quality_summary(self, result: PipelineResult | None = None) -> None:
        """Print sample, estimation and lineage summaries."""
        print(self.survey_loader.report.summary())
        if self.estimator is not None:
            print(self.estimator.report.summary())
        if result is not None and not result.records.empty:
            nat = national_summary(result.records, method=self.settings.replacement_rate_method)
            print(
                f"National: AWW {nat['aww']:,.2f}  WBA {nat['wba']:,.2f}  "
                f"RR {nat['replacement_rate']:.3f}  eligible {nat['share_eligible']:.1%}"
            )
        print(self.lineage.generate_report())


def run_pipeline(save: bool = True) -> PipelineResult:
    """Run the complete pipeline with settings defaults."""
    pipeline = BenefitPipeline()

    logger.info("Running benefit benchmarking pipeline...")
    result = pipeline.run(save=save)

    pipeline.print_quality_summary(result)
    if result.comparison is not None:
        print(result.comparison.summary())

    return result
