#!/usr/bin/env python3
"""
Main analysis script for UI benefit benchmarking.

This script runs the complete analysis step by step:
1. Load and filter the survey extract
2. Impute quarterly earnings and project wages
3. Estimate weekly benefit amounts
4. Compare state averages against BAM benchmarks
"""

import argparse
import logging

from rich.console import Console
from rich.logging import RichHandler

# Setup logging
console = Console()
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(console=console)],
)
logger = logging.getLogger(__name__)


def run_sample(pipeline, save_processed: bool = True):
    """Load the survey extract and apply sample filters."""
    console.print("[bold blue]Step 1: Survey Sample[/bold blue]")

    records = pipeline.load_sample()
    console.print(pipeline.survey_loader.report.summary())

    if save_processed:
        path = pipeline.survey_loader.save_processed(records, "sample.csv")
        console.print(f"Saved filtered sample to {path}")

    return records


def run_earnings(pipeline, records, project: bool = True):
    """Impute quarterly earnings and project wages to the reference year."""
    console.print("\n[bold blue]Step 2: Earnings[/bold blue]")

    records = pipeline.impute(records)
    if project:
        records = pipeline.project(records)
        console.print(pipeline.projector.summary())

    return records


def run_benefits(pipeline, records):
    """Estimate weekly benefit amounts."""
    console.print("\n[bold blue]Step 3: Benefit Estimation[/bold blue]")

    records = pipeline.estimate_benefits(records)
    console.print(pipeline.estimator.report.summary())

    return records


def run_comparison(pipeline, records):
    """Compare state averages to the benchmark."""
    from uibench.data.data_pipeline import PipelineResult

    console.print("\n[bold blue]Step 4: Benchmark Comparison[/bold blue]")

    settings = pipeline.settings
    result = PipelineResult(
        records=records, summary=pipeline.summarize(records), projector=pipeline.projector
    )

    bench_path = settings.resolve(settings.benchmark_path)
    if bench_path.exists():
        benchmark = pipeline.load_benchmark(bench_path)
        result.comparison = pipeline.compare(result.summary, benchmark)
        result.schedule_check = pipeline.check_schedule(records, benchmark)
        console.print(result.comparison.summary())
        console.print(result.schedule_check.summary())
    else:
        console.print(f"[yellow]No benchmark at {bench_path}; skipping comparison[/yellow]")

    result.output_paths = pipeline.save_outputs(result)
    return result


def main():
    parser = argparse.ArgumentParser(description="Run UI benefit benchmarking")
    parser.add_argument("--skip-projection", action="store_true", help="Skip wage projection")
    parser.add_argument("--no-save-sample", action="store_true", help="Do not save the filtered sample")
    args = parser.parse_args()

    from uibench.data.data_pipeline import BenefitPipeline

    console.print("[bold green]UI Benefit Benchmarking[/bold green]")
    console.print("=" * 50)

    pipeline = BenefitPipeline()

    try:
        records = run_sample(pipeline, save_processed=not args.no_save_sample)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        return

    records = run_earnings(pipeline, records, project=not args.skip_projection)
    records = run_benefits(pipeline, records)
    result = run_comparison(pipeline, records)

    pipeline.print_quality_summary(result)
    console.print("\n[bold green]Analysis complete![/bold green]")


if __name__ == "__main__":
    main()
