"""
UI benefit benchmarking settings.
"""

from pathlib import Path
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Directories
    project_root: Path = Field(
        default_factory=lambda: Path(__file__).parent.parent,
        description="Project root directory",
    )
    cache_dir: Path = Field(default=Path(".cache"), description="Cache directory")
    data_dir: Path = Field(default=Path("data"), description="Data directory")
    output_dir: Path = Field(default=Path("outputs"), description="Output directory")

    # Inputs
    survey_path: Path = Field(
        default=Path("data/raw/cps_asec.csv"),
        description="CPS ASEC extract (IPUMS-style column names)",
    )
    benchmark_path: Path = Field(
        default=Path("data/raw/bam_benchmarks.csv"),
        description="State-level BAM benchmark CSV",
    )

    # Benefit calculator
    calculator: str = Field(
        default="schedule",
        description="'schedule' or an import path 'package.module:function'",
    )
    schedule_path: Path = Field(
        default=Path("config/benefit_schedule.yaml"),
        description="Parameters for the built-in schedule calculator",
    )
    reference_date: str = Field(
        default="2019-01-01",
        description="Reference date passed to the benefit calculator",
    )
    excluded_states: list[str] = Field(
        default_factory=lambda: ["DC"],
        description="Jurisdictions the benefit calculator does not support",
    )
    calculator_batch_size: int = Field(
        default=5000, description="Records per calculator call"
    )
    strict_calculator: bool = Field(
        default=True,
        description="Raise on negative or non-finite calculator output",
    )

    # Sample construction
    require_citizen: bool = Field(default=True, description="Drop non-citizens")
    sample: str = Field(
        default="all_workers",
        description="Sample restriction: all_workers | job_losers",
    )
    max_duration_weeks: int = Field(
        default=26, description="Maximum unemployment spell for job_losers sample"
    )

    # Model settings
    earnings_strategy: str = Field(
        default="recent",
        description="Quarterly earnings imputation: recent | uniform",
    )
    project_wages: bool = Field(
        default=True,
        description="Project wages to the reference year before calculating benefits",
    )
    quantiles: list[float] = Field(
        default_factory=lambda: [0.1, 0.25, 0.5, 0.75, 0.9],
        description="Quantile grid for wage projection",
    )
    min_state_obs: int = Field(
        default=50, description="Minimum observations for a state-level quantile fit"
    )
    replacement_rate_method: str = Field(
        default="mean_of_ratios",
        description="Replacement rate aggregation: mean_of_ratios | ratio_of_means",
    )
    tolerance: float = Field(
        default=0.15, description="Relative tolerance band around benchmark values"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Caching
    cache_ttl_days: int = Field(default=7, description="Cache TTL in days")

    @property
    def raw_data_dir(self) -> Path:
        return self.data_dir / "raw"

    @property
    def processed_data_dir(self) -> Path:
        return self.data_dir / "processed"

    @property
    def reference_year(self) -> int:
        return int(self.reference_date[:4])

    def resolve(self, path: Path) -> Path:
        """Resolve a possibly relative path against the project root."""
        return path if path.is_absolute() else self.project_root / path


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
