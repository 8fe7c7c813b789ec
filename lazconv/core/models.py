"""Result and chunk models for the conversion pipeline."""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from lazconv.exceptions import StateError


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class ConversionResult:
    """Outcome of converting one input file.

    A result starts out pending and is finalized exactly once. After
    finalization either ``is_success`` is True and ``error_message`` is
    empty, or ``is_success`` is False and ``error_message`` explains why.
    """

    input_file_path: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    output_directory: str = ""
    is_success: bool = False
    error_message: str = ""
    start_time: datetime = field(default_factory=_utcnow)
    end_time: datetime | None = None
    input_file_size_bytes: int = 0
    output_files: list[str] = field(default_factory=list)

    @property
    def is_finalized(self) -> bool:
        return self.end_time is not None

    @property
    def duration(self) -> timedelta:
        """Elapsed time between start and end (zero while still running)."""
        if self.end_time is None:
            return timedelta(0)
        return max(self.end_time - self.start_time, timedelta(0))

    def finalize(self, error: BaseException | None = None) -> None:
        """Record the end time and the success/failure outcome.

        Args:
            error: The exception that aborted the conversion, if any

        Raises:
            StateError: If the result was already finalized
        """
        if self.end_time is not None:
            raise StateError(f"Conversion result {self.id} is already finalized")

        self.end_time = max(_utcnow(), self.start_time)
        if error is None:
            self.is_success = True
            self.error_message = ""
        else:
            self.is_success = False
            self.error_message = str(error) or type(error).__name__

    def add_output_files(self, paths: list[Path]) -> None:
        self.output_files.extend(str(p) for p in paths)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary with stable field names."""
        return {
            "id": self.id,
            "input_file_path": self.input_file_path,
            "output_directory": self.output_directory,
            "is_success": self.is_success,
            "error_message": self.error_message,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": self.duration.total_seconds(),
            "input_file_size_bytes": self.input_file_size_bytes,
            "output_files": list(self.output_files),
        }


@dataclass
class FileChunk:
    """An inclusive byte range of an oversized input file."""

    id: str
    start_byte: int
    end_byte: int
    temp_file_path: Path | None = None

    @property
    def size(self) -> int:
        """Number of bytes covered by the chunk."""
        return self.end_byte - self.start_byte + 1
