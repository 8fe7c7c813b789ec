"""Batch results artifact."""

import json
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

import anyio

from lazconv.config.constants import RESULTS_FILE_PREFIX
from lazconv.core.models import ConversionResult
from lazconv.utils.logging import get_logger

log = get_logger(__name__)


class ResultsWriter:
    """Writes the ordered batch results as JSON into the output root."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir

    def results_path(self, now: datetime | None = None) -> Path:
        timestamp = (now or datetime.now(UTC)).strftime("%Y%m%d_%H%M%S")
        return self.output_dir / f"{RESULTS_FILE_PREFIX}_{timestamp}.json"

    async def save(self, results: Sequence[ConversionResult]) -> Path | None:
        """Save results to a timestamped file.

        A write failure is logged and reported as ``None``; it never fails
        the batch.

        Args:
            results: Results in input order

        Returns:
            Path of the written file, or None if it could not be written
        """
        output_file = self.results_path()
        content = json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            async with await anyio.open_file(output_file, "w", encoding="utf-8") as f:
                await f.write(content)
        except OSError as e:
            log.error("Failed to save results", path=str(output_file), error=str(e))
            return None

        log.info("Results saved", path=str(output_file), count=len(results))
        return output_file
