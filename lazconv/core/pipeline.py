"""Per-file conversion pipeline.

A conversion unit takes one input file through:
    size check -> direct conversion, or
    size check -> plan chunks -> (extract -> convert -> clean up) per chunk -> metadata

Chunks of one file are processed strictly one after another so that only a
single chunk is materialized in the temp area at a time. Concurrency across
files is the orchestrator's job.
"""

import json
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

import anyio

from lazconv.config.constants import (
    CHUNK_DIR_PREFIX,
    DEFAULT_CHUNK_SIZE_MB,
    DEFAULT_COPY_BUFFER_SIZE,
    METADATA_FILENAME,
)
from lazconv.core.chunking import (
    extract_chunk,
    mb_to_bytes,
    needs_chunking,
    plan_chunks,
    temp_path_for,
)
from lazconv.core.models import ConversionResult, FileChunk
from lazconv.exceptions import InputFileNotFoundError
from lazconv.utils.fs import ensure_directory, list_files_recursive
from lazconv.utils.logging import conversion_context, get_logger

log = get_logger(__name__)


class Converter(Protocol):
    """Anything that can convert one input into an output directory."""

    async def run(self, input_path: Path, output_dir: Path) -> object: ...


@contextmanager
def finalizing(result: ConversionResult) -> Generator[ConversionResult, None, None]:
    """Finalize ``result`` exactly once, however the body exits.

    Ordinary exceptions are recorded on the result and swallowed.
    Cancellation and other BaseExceptions are recorded and then re-raised.
    """
    try:
        yield result
    except Exception as e:
        result.finalize(error=e)
        log.error("Conversion failed", error=str(e), error_type=type(e).__name__)
    except BaseException as e:
        result.finalize(error=e)
        raise
    else:
        result.finalize()


class ConversionPipeline:
    """Converts a single input file, splitting it into chunks when oversized."""

    def __init__(
        self,
        converter: Converter,
        output_root: Path,
        temp_dir: Path,
        chunk_size_mb: int = DEFAULT_CHUNK_SIZE_MB,
        buffer_size: int = DEFAULT_COPY_BUFFER_SIZE,
    ) -> None:
        """Initialize the pipeline.

        Args:
            converter: Converter runner (normally PotreeConverter)
            output_root: Root under which each conversion gets its own id directory
            temp_dir: Directory for extracted chunk files
            chunk_size_mb: Chunk threshold and maximum chunk size in MB
            buffer_size: Read buffer size for chunk extraction
        """
        self.converter = converter
        self.output_root = output_root
        self.temp_dir = temp_dir
        self.chunk_size_mb = chunk_size_mb
        self.buffer_size = buffer_size

    @property
    def chunk_size_bytes(self) -> int:
        return mb_to_bytes(self.chunk_size_mb)

    async def convert_file(self, input_path: Path | str) -> ConversionResult:
        """Convert one file and report the outcome.

        Never raises for per-file problems: a missing input, an I/O error or
        a failed converter run all end up in the returned result.

        Args:
            input_path: File to convert

        Returns:
            Finalized ConversionResult
        """
        result = ConversionResult(input_file_path=str(input_path))
        path = Path(input_path)

        with conversion_context(result.id, file_path=path.name):
            log.info("Starting conversion", input=str(path))

            with finalizing(result):
                await self._convert(path, result)

            log.info(
                "Conversion finished",
                success=result.is_success,
                duration=f"{result.duration.total_seconds():.2f}s",
                output_files=len(result.output_files),
            )

        return result

    async def _convert(self, path: Path, result: ConversionResult) -> None:
        if not path.is_file():
            raise InputFileNotFoundError(path)
        file_size = path.stat().st_size
        result.input_file_size_bytes = file_size

        output_dir = ensure_directory(self.output_root.resolve() / result.id)
        result.output_directory = str(output_dir)

        if needs_chunking(file_size, self.chunk_size_bytes):
            log.info(
                "File exceeds chunk size, chunking required",
                size_mb=round(file_size / mb_to_bytes(1), 2),
                chunk_size_mb=self.chunk_size_mb,
            )
            await self._convert_chunked(path, output_dir, result, file_size)
        else:
            log.info(
                "File within chunk size, processing directly",
                size_mb=round(file_size / mb_to_bytes(1), 2),
            )
            await self._convert_direct(path, output_dir, result)

    async def _convert_direct(self, path: Path, output_dir: Path, result: ConversionResult) -> None:
        await self.converter.run(path, output_dir)
        result.add_output_files(list_files_recursive(output_dir))

    async def _convert_chunked(
        self,
        path: Path,
        output_dir: Path,
        result: ConversionResult,
        file_size: int,
    ) -> None:
        chunks = plan_chunks(file_size, self.chunk_size_bytes)

        for chunk in chunks:
            await self._convert_chunk(path, chunk, output_dir, result)

        await self._write_metadata(output_dir, result, chunk_count=len(chunks))

    async def _convert_chunk(
        self,
        path: Path,
        chunk: FileChunk,
        output_dir: Path,
        result: ConversionResult,
    ) -> None:
        log.info(
            "Processing chunk",
            chunk_id=chunk.id,
            start_byte=chunk.start_byte,
            end_byte=chunk.end_byte,
        )
        chunk.temp_file_path = temp_path_for(chunk, self.temp_dir)

        try:
            await anyio.to_thread.run_sync(extract_chunk, path, chunk, self.buffer_size)

            chunk_output_dir = ensure_directory(output_dir / f"{CHUNK_DIR_PREFIX}{chunk.id}")
            await self.converter.run(chunk.temp_file_path, chunk_output_dir)
            result.add_output_files(list_files_recursive(chunk_output_dir))
        except Exception:
            log.error("Failed to process chunk", chunk_id=chunk.id)
            raise
        finally:
            chunk.temp_file_path.unlink(missing_ok=True)

        log.info("Chunk processed successfully", chunk_id=chunk.id)

    async def _write_metadata(
        self,
        output_dir: Path,
        result: ConversionResult,
        chunk_count: int,
    ) -> None:
        """Write the chunk summary file and register it as an output."""
        metadata_path = output_dir / METADATA_FILENAME
        metadata = {
            "conversion_id": result.id,
            "input_file": result.input_file_path,
            "chunk_count": chunk_count,
            "output_file_count": len(result.output_files),
            "processed_at": datetime.now(UTC).isoformat(),
        }

        async with await anyio.open_file(metadata_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(metadata, indent=2))

        result.output_files.append(str(metadata_path))
        log.debug("Metadata written", path=str(metadata_path))
