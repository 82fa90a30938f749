"""
Data lineage tracking for benefit benchmarking runs.

Records every input the pipeline consumed (survey extract, benchmark table,
calculator), flags inputs with heavy sample loss or missing values, and is
written next to the outputs so each result can be traced back.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any
import json

logger = logging.getLogger(__name__)


class InputStatus(Enum):
    """How an input was obtained."""
    READ = "read"  # Parsed from disk
    CACHED = "cached"  # Loaded from the parse cache
    PARTIAL = "partial"  # Read, but with significant gaps
    FAILED = "failed"  # Could not be read


@dataclass
class InputRecord:
    """Record of a single pipeline input."""

    source_name: str
    status: InputStatus
    timestamp: datetime
    path: str | None = None
    rows: int = 0
    columns: int = 0
    missing_pct: float = 0.0
    notes: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "source_name": self.source_name,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "path": self.path,
            "rows": self.rows,
            "columns": self.columns,
            "missing_pct": self.missing_pct,
            "notes": self.notes,
            "warnings": self.warnings,
            "metadata": self.metadata,
        }


class DataLineageTracker:
    """Collects input records for a single pipeline run."""

    # Share of survey records lost to filters above which a warning is raised
    SAMPLE_LOSS_WARNING = 0.9

    def __init__(self):
        self.records: dict[str, InputRecord] = {}
        self._warnings: list[str] = []

    def record_input(
        self,
        source_name: str,
        status: InputStatus,
        path: str | Path | None = None,
        rows: int = 0,
        columns: int = 0,
        missing_pct: float = 0.0,
        notes: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> InputRecord:
        """Record an input consumed by the pipeline."""
        warnings = []

        if status == InputStatus.PARTIAL:
            warning = f"PARTIAL DATA: {source_name} has significant gaps ({missing_pct:.1f}% missing)"
            warnings.append(warning)
            logger.warning(warning)

        if status == InputStatus.FAILED:
            warning = f"FAILED: {source_name} could not be read"
            warnings.append(warning)
            logger.error(warning)

        record = InputRecord(
            source_name=source_name,
            status=status,
            timestamp=datetime.now(),
            path=str(path) if path is not None else None,
            rows=rows,
            columns=columns,
            missing_pct=missing_pct,
            notes=notes or [],
            warnings=warnings,
            metadata=metadata or {},
        )

        self._warnings.extend(warnings)
        self.records[source_name] = record
        return record

    def record_sample_loss(self, initial_rows: int, final_rows: int) -> None:
        """Warn when filters remove most of the survey sample."""
        if initial_rows <= 0:
            return
        lost = 1 - final_rows / initial_rows
        if lost > self.SAMPLE_LOSS_WARNING:
            warning = f"SAMPLE LOSS: filters removed {lost:.1%} of survey records"
            self._warnings.append(warning)
            logger.warning(warning)

    def get_warnings(self) -> list[str]:
        """Get all warnings."""
        return self._warnings.copy()

    def generate_report(self) -> str:
        """Generate a human-readable lineage report."""
        lines = []
        lines.append("=" * 70)
        lines.append("DATA LINEAGE REPORT")
        lines.append("=" * 70)
        lines.append(f"Generated: {datetime.now().isoformat()}")
        lines.append("")
        lines.append(f"{'Input':<25} {'Status':<10} {'Rows':>10} {'Missing':>9}")
        lines.append("-" * 70)

        for name, record in sorted(self.records.items()):
            lines.append(
                f"{name:<25} {record.status.value:<10} "
                f"{record.rows:>10,} {record.missing_pct:>8.1f}%"
            )
            if record.path:
                lines.append(f"  path: {record.path}")
            for note in record.notes:
                lines.append(f"  - {note}")

        if self._warnings:
            lines.append("")
            lines.append("WARNINGS:")
            for warning in self._warnings:
                lines.append(f"  ! {warning}")

        lines.append("=" * 70)
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert lineage to dictionary for serialization."""
        return {
            "generated": datetime.now().isoformat(),
            "warnings": self._warnings,
            "inputs": {
                name: record.to_dict()
                for name, record in self.records.items()
            },
        }

    def save(self, filepath: str | Path) -> None:
        """Save lineage to JSON file."""
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

        logger.info(f"Saved data lineage to {filepath}")
