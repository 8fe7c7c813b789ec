"""Byte-range chunk planning and extraction.

Oversized inputs are cut into consecutive byte ranges that are converted
one after another. The split ignores the point-cloud record layout, so a
chunk boundary can fall inside a record.
"""

import uuid
from pathlib import Path

from lazconv.config.constants import (
    BYTES_PER_MB,
    CHUNK_ID_WIDTH,
    CHUNK_TEMP_SUFFIX,
    DEFAULT_COPY_BUFFER_SIZE,
)
from lazconv.core.models import FileChunk
from lazconv.exceptions import ChunkExtractionError
from lazconv.utils.logging import get_logger

log = get_logger(__name__)


def mb_to_bytes(mb: int) -> int:
    return mb * BYTES_PER_MB


def needs_chunking(file_size_bytes: int, chunk_size_bytes: int) -> bool:
    """Whether a file is larger than the chunk threshold."""
    return file_size_bytes > chunk_size_bytes


def plan_chunks(file_size_bytes: int, chunk_size_bytes: int) -> list[FileChunk]:
    """Partition ``[0, file_size_bytes)`` into consecutive chunks.

    Every chunk holds at most ``chunk_size_bytes`` bytes and ids follow the
    ordinal position (``000``, ``001``, ...). No I/O is performed and temp
    paths are left unset.

    Args:
        file_size_bytes: Size of the file to split
        chunk_size_bytes: Maximum chunk size

    Returns:
        Chunks in file order

    Raises:
        ValueError: If the chunk size is not positive or the file size is negative
    """
    if chunk_size_bytes <= 0:
        raise ValueError(f"chunk_size_bytes must be positive, got {chunk_size_bytes}")
    if file_size_bytes < 0:
        raise ValueError(f"file_size_bytes must not be negative, got {file_size_bytes}")

    chunks: list[FileChunk] = []
    position = 0
    index = 0

    while position < file_size_bytes:
        end = min(position + chunk_size_bytes, file_size_bytes) - 1
        chunks.append(FileChunk(id=f"{index:0{CHUNK_ID_WIDTH}d}", start_byte=position, end_byte=end))
        position = end + 1
        index += 1

    return chunks


def temp_path_for(chunk: FileChunk, temp_dir: Path) -> Path:
    """Unique temp file path for a chunk; the UUID keeps concurrent files apart."""
    return temp_dir / f"chunk_{chunk.id}_{uuid.uuid4().hex}{CHUNK_TEMP_SUFFIX}"


def extract_chunk(
    source_path: Path,
    chunk: FileChunk,
    buffer_size: int = DEFAULT_COPY_BUFFER_SIZE,
) -> int:
    """Copy a chunk's byte range from the source file into its temp file.

    Reading stops early, without error, if the source ends before the range
    does. The caller owns the created temp file.

    Args:
        source_path: File to read from
        chunk: Chunk with ``temp_file_path`` assigned
        buffer_size: Bytes per read

    Returns:
        Number of bytes written

    Raises:
        ValueError: If the chunk has no temp path
        ChunkExtractionError: If reading or writing fails
    """
    if chunk.temp_file_path is None:
        raise ValueError(f"Chunk {chunk.id} has no temp file path")

    target = chunk.temp_file_path
    written = 0

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(source_path, "rb") as src, open(target, "wb") as dst:
            src.seek(chunk.start_byte)
            remaining = chunk.size
            while remaining > 0:
                data = src.read(min(buffer_size, remaining))
                if not data:
                    break  # End of file reached
                dst.write(data)
                written += len(data)
                remaining -= len(data)
    except OSError as e:
        raise ChunkExtractionError(source_path, chunk.id, e) from e

    if written < chunk.size:
        log.warning(
            "Source ended before chunk range",
            chunk_id=chunk.id,
            expected=chunk.size,
            written=written,
        )

    log.debug("Chunk extracted", chunk_id=chunk.id, bytes=written, temp_file=str(target))
    return written
