"""Batch processing statistics collection and reporting."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lazconv.core.models import ConversionResult


@dataclass
class BatchStats:
    """Aggregate statistics for one batch.

    Duration Semantics:
    - total_duration: Wall-clock time of the whole batch
    - cumulative_duration: Sum of every unit's own duration; exceeds
      total_duration when units ran in parallel
    """

    total_files: int = 0
    success_files: int = 0
    failed_files: int = 0
    total_input_bytes: int = 0
    total_output_files: int = 0
    total_duration: timedelta = timedelta(0)
    cumulative_duration: timedelta = timedelta(0)

    @classmethod
    def from_results(
        cls,
        results: Sequence["ConversionResult"],
        total_duration: timedelta = timedelta(0),
    ) -> "BatchStats":
        """Summarize a sequence of conversion results."""
        success = sum(1 for r in results if r.is_success)
        return cls(
            total_files=len(results),
            success_files=success,
            failed_files=len(results) - success,
            total_input_bytes=sum(r.input_file_size_bytes for r in results),
            total_output_files=sum(len(r.output_files) for r in results),
            total_duration=total_duration,
            cumulative_duration=sum((r.duration for r in results), timedelta(0)),
        )

    @property
    def success_rate(self) -> float:
        """Get success rate (0.0 to 1.0)."""
        if self.total_files == 0:
            return 0.0
        return self.success_files / self.total_files

    @property
    def all_succeeded(self) -> bool:
        return self.failed_files == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "total_files": self.total_files,
            "success_files": self.success_files,
            "failed_files": self.failed_files,
            "success_rate": round(self.success_rate, 4),
            "total_input_bytes": self.total_input_bytes,
            "total_output_files": self.total_output_files,
            "total_duration_seconds": self.total_duration.total_seconds(),
            "cumulative_duration_seconds": self.cumulative_duration.total_seconds(),
        }


def format_duration(duration: timedelta) -> str:
    """Format a duration as HH:MM:SS."""
    total_seconds = max(int(duration.total_seconds()), 0)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
