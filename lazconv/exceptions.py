"""Custom exceptions for lazconv."""

from pathlib import Path


class LazconvError(Exception):
    """Base exception class for lazconv."""

    pass


class ConfigurationError(LazconvError):
    """Configuration error, fatal to the whole run."""

    pass


class StateError(LazconvError):
    """Result state management error."""

    pass


class ConversionError(LazconvError):
    """Error while converting a single input file."""

    def __init__(self, file_path: Path, message: str, cause: Exception | None = None) -> None:
        self.file_path = file_path
        self.cause = cause
        super().__init__(f"Conversion failed for {file_path}: {message}")


class InputFileNotFoundError(ConversionError):
    """The input file vanished before it could be processed."""

    def __init__(self, file_path: Path) -> None:
        super().__init__(file_path, "Input file not found")


class ChunkExtractionError(ConversionError):
    """Reading or writing a chunk's bytes failed."""

    def __init__(self, file_path: Path, chunk_id: str, cause: Exception) -> None:
        super().__init__(file_path, f"Could not extract chunk {chunk_id}: {cause}", cause=cause)
        self.chunk_id = chunk_id


class ConverterNotFoundError(ConversionError):
    """The converter executable is missing."""

    def __init__(self, file_path: Path, converter_path: Path) -> None:
        super().__init__(file_path, f"PotreeConverter executable not found: {converter_path}")
        self.converter_path = converter_path


class ConverterProcessError(ConversionError):
    """The converter process exited with a non-zero code."""

    def __init__(
        self,
        file_path: Path,
        exit_code: int,
        stdout: str,
        stderr: str,
        reason: str | None = None,
    ) -> None:
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        reason = reason or f"PotreeConverter failed with exit code {exit_code}"
        super().__init__(file_path, f"{reason}. Output: {stdout.strip()} Error: {stderr.strip()}")


class ConverterTimeoutError(ConverterProcessError):
    """The converter process did not finish before the configured timeout."""

    def __init__(self, file_path: Path, timeout: float, stdout: str, stderr: str) -> None:
        self.timeout = timeout
        super().__init__(
            file_path,
            -1,
            stdout,
            stderr,
            reason=f"PotreeConverter timed out after {timeout}s",
        )
