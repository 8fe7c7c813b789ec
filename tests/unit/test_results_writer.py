"""Tests for the batch results artifact."""

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from lazconv.core.models import ConversionResult
from lazconv.services.results import ResultsWriter


class TestResultsWriter:
    """Tests for ResultsWriter."""

    def test_results_path_format(self, tmp_path: Path):
        writer = ResultsWriter(tmp_path)

        path = writer.results_path(datetime(2024, 3, 9, 14, 5, 7, tzinfo=UTC))

        assert path == tmp_path / "conversion_results_20240309_140507.json"

    @pytest.mark.asyncio
    async def test_save_preserves_order(self, tmp_path: Path):
        results = [ConversionResult(input_file_path=f"{name}.laz") for name in ("c", "a", "b")]
        results[0].finalize()
        results[1].finalize(error=RuntimeError("bad"))
        results[2].finalize()

        path = await ResultsWriter(tmp_path / "output").save(results)

        assert path is not None
        assert path.name.startswith("conversion_results_")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert [item["input_file_path"] for item in data] == ["c.laz", "a.laz", "b.laz"]
        assert [item["is_success"] for item in data] == [True, False, True]
        assert data[1]["error_message"] == "bad"

    @pytest.mark.asyncio
    async def test_write_failure_is_not_fatal(self, tmp_path: Path):
        """An unwritable output root yields None instead of raising."""
        blocker = tmp_path / "output"
        blocker.write_text("not a directory")

        path = await ResultsWriter(blocker).save([])

        assert path is None
