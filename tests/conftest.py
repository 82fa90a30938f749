"""
Shared pytest configuration.
"""

import matplotlib

matplotlib.use("Agg")

import pytest

from config.settings import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point cache and output directories at a temporary location."""
    monkeypatch.setenv("CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "outputs"))
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("SURVEY_PATH", str(tmp_path / "data" / "raw" / "cps_asec.csv"))
    monkeypatch.setenv("BENCHMARK_PATH", str(tmp_path / "data" / "raw" / "bam_benchmarks.csv"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
