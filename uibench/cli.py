"""
CLI for UI benefit benchmarking.

Usage:
    uibench estimate [--survey PATH]
    uibench project-wages [--survey PATH]
    uibench compare [--survey PATH] [--benchmark PATH]
    uibench run [--refresh]
    uibench quality-report [--survey PATH]
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

app = typer.Typer(
    name="uibench",
    help="Estimate UI weekly benefit amounts from survey earnings and validate against BAM",
)
console = Console()


def setup_logging(level: str | None = None) -> None:
    """Configure logging with rich output."""
    from config.settings import get_settings

    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _build_pipeline(calculator: Optional[str], output_dir: Optional[Path]):
    from uibench.data.data_pipeline import BenefitPipeline
    from uibench.engine.calculator import build_calculator

    try:
        calc = build_calculator(calculator)
    except (ImportError, ValueError, FileNotFoundError) as e:
        console.print(f"[red]Could not load benefit calculator: {e}[/red]")
        raise typer.Exit(1)
    return BenefitPipeline(calculator=calc, output_dir=output_dir)


def _load_sample(pipeline, survey: Optional[Path]):
    from uibench.data.survey import SurveyFormatError

    try:
        return pipeline.load_sample(survey)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except (SurveyFormatError, ValueError) as e:
        console.print(f"[red]Invalid survey extract: {e}[/red]")
        raise typer.Exit(1)


def _state_table(summary) -> Table:
    table = Table(title="State summary")
    for col in ("State", "N", "AWW", "WBA", "RR", "Eligible"):
        table.add_column(col, justify="right")
    for _, row in summary.iterrows():
        table.add_row(
            row["state"],
            f"{row['n']:,}",
            f"{row['aww']:,.2f}",
            f"{row['wba']:,.2f}",
            f"{row['replacement_rate']:.3f}",
            f"{row['share_eligible']:.1%}",
        )
    return table


@app.command()
def estimate(
    survey: Optional[Path] = typer.Option(None, help="Survey extract CSV"),
    calculator: Optional[str] = typer.Option(None, help="'schedule' or 'package.module:function'"),
    output_dir: Optional[Path] = typer.Option(None, help="Output directory"),
    project: bool = typer.Option(True, help="Project wages to the reference year"),
):
    """Estimate weekly benefit amounts for survey records."""
    setup_logging()

    from uibench.engine.calculator import CalculatorError

    pipeline = _build_pipeline(calculator, output_dir)
    records = _load_sample(pipeline, survey)
    records = pipeline.impute(records)
    if project:
        records = pipeline.project(records)

    try:
        records = pipeline.estimate_benefits(records)
    except (CalculatorError, ValueError) as e:
        console.print(f"[red]Benefit calculator error: {e}[/red]")
        raise typer.Exit(1)

    summary = pipeline.summarize(records)
    console.print(_state_table(summary))

    pipeline.output_dir.mkdir(parents=True, exist_ok=True)
    records_path = pipeline.output_dir / "benefit_records.csv"
    summary_path = pipeline.output_dir / "state_summary.csv"
    records.to_csv(records_path, index=False)
    summary.to_csv(summary_path, index=False)
    console.print(f"\nSaved records to {records_path}")
    console.print(f"Saved state summary to {summary_path}")


@app.command()
def project_wages(
    survey: Optional[Path] = typer.Option(None, help="Survey extract CSV"),
    target_year: Optional[int] = typer.Option(None, help="Projection year (default: reference date year)"),
    output: Optional[Path] = typer.Option(None, help="CSV path for fitted trends"),
):
    """Fit state wage quantile trends and show projected growth."""
    setup_logging()

    from uibench.data.data_pipeline import BenefitPipeline
    from uibench.model.quantile_projection import QuantileWageProjector

    pipeline = BenefitPipeline()
    records = pipeline.impute(_load_sample(pipeline, survey))

    projector = QuantileWageProjector(target_year=target_year).fit(records)
    console.print(projector.summary())

    if output:
        projector.to_dataframe().to_csv(output, index=False)
        console.print(f"\nSaved quantile trends to {output}")


@app.command()
def compare(
    survey: Optional[Path] = typer.Option(None, help="Survey extract CSV"),
    benchmark: Optional[Path] = typer.Option(None, help="BAM benchmark CSV"),
    calculator: Optional[str] = typer.Option(None, help="'schedule' or 'package.module:function'"),
    output_dir: Optional[Path] = typer.Option(None, help="Output directory"),
):
    """Estimate benefits and compare state averages to the benchmark."""
    setup_logging()

    from uibench.data.benchmarks import BenchmarkFormatError
    from uibench.data.survey import SurveyFormatError
    from uibench.engine.calculator import CalculatorError

    pipeline = _build_pipeline(calculator, output_dir)

    bench_path = benchmark or pipeline.settings.resolve(pipeline.settings.benchmark_path)
    if not Path(bench_path).exists():
        console.print(f"[red]Benchmark not found: {bench_path}[/red]")
        raise typer.Exit(1)

    try:
        result = pipeline.run(survey_path=survey, benchmark_path=bench_path)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except (SurveyFormatError, BenchmarkFormatError, ValueError, CalculatorError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(result.comparison.summary())
    if result.schedule_check is not None:
        console.print(result.schedule_check.summary())
    if "plot" in result.output_paths:
        console.print(f"\nSaved plot to {result.output_paths['plot']}")


@app.command()
def run(
    output_dir: Optional[Path] = typer.Option(None, help="Output directory"),
    refresh: bool = typer.Option(False, help="Clear the parse cache before reading inputs"),
):
    """Run the full pipeline with settings defaults."""
    setup_logging()

    from uibench.data.benchmarks import BenchmarkFormatError
    from uibench.data.survey import SurveyFormatError
    from uibench.engine.calculator import CalculatorError

    pipeline = _build_pipeline(None, output_dir)
    if refresh:
        pipeline.survey_loader.clear_cache()
        pipeline.benchmark_loader.clear_cache()

    try:
        result = pipeline.run()
    except (FileNotFoundError, ImportError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except (SurveyFormatError, BenchmarkFormatError, ValueError, CalculatorError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(_state_table(result.summary))
    if result.comparison is not None:
        console.print(result.comparison.summary())

    console.print("\nOutputs:")
    for name, path in result.output_paths.items():
        console.print(f"  {name}: {path}")


@app.command()
def quality_report(
    survey: Optional[Path] = typer.Option(None, help="Survey extract CSV"),
):
    """Report sample filters and earnings imputation checks."""
    setup_logging()

    from uibench.data.data_pipeline import BenefitPipeline
    from uibench.model.earnings import check_quarterly_earnings

    pipeline = BenefitPipeline()
    records = _load_sample(pipeline, survey)

    console.print("[bold]Data Quality Report[/bold]\n")
    console.print(pipeline.survey_loader.report.summary())

    records = pipeline.impute(records)
    violations = check_quarterly_earnings(records)
    console.print("\nQuarterly earnings checks:")
    for name, count in violations.items():
        color = "green" if count == 0 else "red"
        console.print(f"  [{color}]{name}: {count}[/{color}]")

    console.print(f"\nSurvey years: {sorted(records['year'].unique().astype(int).tolist())}")
    console.print(f"States: {records['state'].nunique()}")
    counts = records["state"].value_counts()
    thin = counts[counts < pipeline.settings.min_state_obs]
    if not thin.empty:
        console.print(
            f"[yellow]States below {pipeline.settings.min_state_obs} records "
            f"(pooled wage trend): {', '.join(sorted(thin.index))}[/yellow]"
        )


if __name__ == "__main__":
    app()
