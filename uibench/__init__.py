"""
UI benefit benchmarking.

Estimates unemployment insurance weekly benefit amounts for CPS ASEC
workers from imputed quarterly earnings and validates state averages
against Benefit Accuracy Measurement (BAM) benchmarks.

Key modules:
- data/survey.py: Survey extract loading and sample filters
- data/benchmarks.py: BAM benchmark parsing
- model/earnings.py: Quarterly earnings imputation
- model/quantile_projection.py: State wage quantile trends
- engine/calculator.py: External benefit calculator seam
- engine/comparison.py, engine/plots.py: Benchmark validation
"""
