"""Tests for chunk planning and extraction."""

from pathlib import Path

import pytest

from lazconv.config.constants import BYTES_PER_MB
from lazconv.core.chunking import (
    extract_chunk,
    mb_to_bytes,
    needs_chunking,
    plan_chunks,
    temp_path_for,
)
from lazconv.core.models import FileChunk
from lazconv.exceptions import ChunkExtractionError


class TestNeedsChunking:
    """Tests for the chunking threshold."""

    def test_below_threshold(self):
        assert needs_chunking(50 * BYTES_PER_MB, mb_to_bytes(100)) is False

    def test_exactly_at_threshold_is_direct(self):
        """A file of exactly the chunk size is converted directly."""
        assert needs_chunking(mb_to_bytes(100), mb_to_bytes(100)) is False

    def test_one_byte_over_threshold(self):
        assert needs_chunking(mb_to_bytes(100) + 1, mb_to_bytes(100)) is True


class TestPlanChunks:
    """Tests for plan_chunks."""

    def test_250mb_with_100mb_chunks(self):
        """Test the canonical three-chunk split."""
        chunks = plan_chunks(mb_to_bytes(250), mb_to_bytes(100))

        assert [c.id for c in chunks] == ["000", "001", "002"]
        assert [c.size for c in chunks] == [
            mb_to_bytes(100),
            mb_to_bytes(100),
            mb_to_bytes(50),
        ]
        assert chunks[0].start_byte == 0
        assert chunks[-1].end_byte == mb_to_bytes(250) - 1

    def test_exact_multiple(self):
        chunks = plan_chunks(300, 100)

        assert [(c.start_byte, c.end_byte) for c in chunks] == [(0, 99), (100, 199), (200, 299)]

    def test_empty_file_has_no_chunks(self):
        assert plan_chunks(0, 100) == []

    def test_one_byte_over(self):
        """Test a trailing one-byte chunk."""
        chunks = plan_chunks(101, 100)

        assert len(chunks) == 2
        assert chunks[1].start_byte == 100
        assert chunks[1].size == 1

    @pytest.mark.parametrize(
        ("file_size", "chunk_size"),
        [(1, 1), (7, 3), (1000, 999), (1000, 1), (12345, 1000), (mb_to_bytes(3) + 17, 4096)],
    )
    def test_plan_covers_file_contiguously(self, file_size, chunk_size):
        """Chunks are contiguous, bounded and cover every byte once."""
        chunks = plan_chunks(file_size, chunk_size)

        assert chunks[0].start_byte == 0
        assert chunks[-1].end_byte == file_size - 1
        assert sum(c.size for c in chunks) == file_size
        for prev, nxt in zip(chunks, chunks[1:], strict=False):
            assert nxt.start_byte == prev.end_byte + 1
        assert all(0 < c.size <= chunk_size for c in chunks)
        assert [c.id for c in chunks] == [f"{i:03d}" for i in range(len(chunks))]

    def test_temp_paths_left_unset(self):
        assert all(c.temp_file_path is None for c in plan_chunks(500, 100))

    def test_rejects_non_positive_chunk_size(self):
        with pytest.raises(ValueError, match="chunk_size_bytes"):
            plan_chunks(100, 0)

    def test_rejects_negative_file_size(self):
        with pytest.raises(ValueError, match="file_size_bytes"):
            plan_chunks(-1, 100)


class TestTempPathFor:
    """Tests for chunk temp file naming."""

    def test_name_embeds_chunk_id(self, tmp_path: Path):
        chunk = FileChunk(id="002", start_byte=0, end_byte=9)

        path = temp_path_for(chunk, tmp_path)

        assert path.parent == tmp_path
        assert path.name.startswith("chunk_002_")
        assert path.suffix == ".laz"

    def test_names_are_unique(self, tmp_path: Path):
        """Two files with the same chunk id never share a temp file."""
        chunk = FileChunk(id="000", start_byte=0, end_byte=9)

        assert temp_path_for(chunk, tmp_path) != temp_path_for(chunk, tmp_path)


class TestExtractChunk:
    """Tests for extract_chunk."""

    @pytest.fixture
    def source(self, tmp_path: Path) -> Path:
        path = tmp_path / "source.laz"
        path.write_bytes(bytes(range(256)) * 40)  # 10240 bytes
        return path

    def test_copies_exact_range(self, source: Path, tmp_path: Path):
        chunk = FileChunk(id="001", start_byte=1000, end_byte=2999)
        chunk.temp_file_path = tmp_path / "temp" / "chunk.laz"

        written = extract_chunk(source, chunk, buffer_size=4096)

        assert written == 2000
        assert chunk.temp_file_path.read_bytes() == source.read_bytes()[1000:3000]

    def test_small_buffer(self, source: Path, tmp_path: Path):
        """Buffer size does not affect the copied bytes."""
        chunk = FileChunk(id="000", start_byte=5, end_byte=1004)
        chunk.temp_file_path = tmp_path / "chunk.laz"

        extract_chunk(source, chunk, buffer_size=7)

        assert chunk.temp_file_path.read_bytes() == source.read_bytes()[5:1005]

    def test_chunks_reassemble_source(self, source: Path, tmp_path: Path):
        """Concatenating every extracted chunk reproduces the source."""
        parts = []
        for chunk in plan_chunks(source.stat().st_size, 3000):
            chunk.temp_file_path = temp_path_for(chunk, tmp_path)
            extract_chunk(source, chunk, buffer_size=1024)
            parts.append(chunk.temp_file_path.read_bytes())

        assert b"".join(parts) == source.read_bytes()

    def test_stops_at_end_of_file(self, source: Path, tmp_path: Path):
        """A range past the end of the source is truncated without error."""
        chunk = FileChunk(id="000", start_byte=10000, end_byte=10999)
        chunk.temp_file_path = tmp_path / "chunk.laz"

        written = extract_chunk(source, chunk)

        assert written == 240
        assert chunk.temp_file_path.read_bytes() == source.read_bytes()[10000:]

    def test_missing_source_raises(self, tmp_path: Path):
        chunk = FileChunk(id="003", start_byte=0, end_byte=9)
        chunk.temp_file_path = tmp_path / "chunk.laz"

        with pytest.raises(ChunkExtractionError) as exc_info:
            extract_chunk(tmp_path / "missing.laz", chunk)

        assert exc_info.value.chunk_id == "003"
        assert isinstance(exc_info.value.cause, FileNotFoundError)

    def test_requires_temp_path(self, source: Path):
        with pytest.raises(ValueError, match="no temp file path"):
            extract_chunk(source, FileChunk(id="000", start_byte=0, end_byte=9))
