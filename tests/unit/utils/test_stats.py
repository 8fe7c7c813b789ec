"""Tests for batch statistics."""

from datetime import timedelta

from lazconv.core.models import ConversionResult
from lazconv.utils.stats import BatchStats, format_duration


def _result(success: bool, size: int, outputs: int) -> ConversionResult:
    result = ConversionResult(input_file_path="f.laz", input_file_size_bytes=size)
    result.output_files = [f"out_{i}" for i in range(outputs)]
    result.finalize(error=None if success else RuntimeError("failed"))
    return result


class TestBatchStats:
    """Tests for BatchStats."""

    def test_empty(self):
        stats = BatchStats.from_results([])

        assert stats.total_files == 0
        assert stats.success_rate == 0.0
        assert stats.all_succeeded is True

    def test_from_results(self):
        results = [_result(True, 100, 3), _result(False, 50, 0), _result(True, 25, 2)]

        stats = BatchStats.from_results(results, total_duration=timedelta(seconds=90))

        assert stats.total_files == 3
        assert stats.success_files == 2
        assert stats.failed_files == 1
        assert stats.total_input_bytes == 175
        assert stats.total_output_files == 5
        assert stats.total_duration == timedelta(seconds=90)
        assert stats.all_succeeded is False
        assert abs(stats.success_rate - 2 / 3) < 1e-9

    def test_to_dict(self):
        stats = BatchStats.from_results([_result(True, 10, 1)], timedelta(seconds=2))

        data = stats.to_dict()

        assert data["total_files"] == 1
        assert data["success_rate"] == 1.0
        assert data["total_duration_seconds"] == 2.0


class TestFormatDuration:
    """Tests for format_duration."""

    def test_zero(self):
        assert format_duration(timedelta(0)) == "00:00:00"

    def test_hours_minutes_seconds(self):
        assert format_duration(timedelta(hours=1, minutes=2, seconds=3.7)) == "01:02:03"

    def test_over_a_day(self):
        assert format_duration(timedelta(days=1, seconds=5)) == "24:00:05"
