"""Batch orchestration across conversion units."""

from collections.abc import Callable, Sequence
from pathlib import Path

from lazconv.converters.potree import PotreeConverter
from lazconv.core.models import ConversionResult
from lazconv.core.pipeline import ConversionPipeline
from lazconv.utils.concurrency import ConcurrencyManager
from lazconv.utils.logging import get_logger

log = get_logger(__name__)


class BatchOrchestrator:
    """Runs one conversion unit per input file within a concurrency bound.

    The admission gate is passed in, so callers decide how many converter
    processes may run at the same time.
    """

    def __init__(
        self,
        pipeline: ConversionPipeline,
        converter: PotreeConverter,
        concurrency: ConcurrencyManager,
    ) -> None:
        self.pipeline = pipeline
        self.converter = converter
        self.concurrency = concurrency

    async def run_batch(
        self,
        input_paths: Sequence[Path | str],
        on_result: Callable[[Path | str, ConversionResult], None] | None = None,
    ) -> list[ConversionResult]:
        """Convert every input and collect the results.

        A failing file never stops the others. Nothing starts when the
        converter is unavailable.

        Args:
            input_paths: Files to convert; each result keeps its path as given
            on_result: Optional callback invoked as each unit completes

        Returns:
            One result per input, in input order

        Raises:
            ConfigurationError: If the converter executable is not available
        """
        self.converter.ensure_available()

        items = list(input_paths)
        log.info(
            "Starting batch",
            files=len(items),
            max_concurrent=self.concurrency.max_workers,
        )

        results = await self.concurrency.map_tasks(
            items,
            self.pipeline.convert_file,
            on_complete=on_result,
        )

        succeeded = sum(1 for r in results if r.is_success)
        log.info(
            "Batch finished",
            total=len(results),
            succeeded=succeeded,
            failed=len(results) - succeeded,
            peak_concurrency=self.concurrency.peak_active,
        )
        return results
