"""PotreeConverter process runner.

Runs the external converter as a child process, one input and one output
directory per call. Output lines are logged as they arrive so long
conversions can be followed from the log.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from dataclasses import dataclass
from pathlib import Path

from lazconv.config.constants import CONVERTER_OUTPUT_FLAG, CONVERTER_OVERWRITE_FLAG
from lazconv.exceptions import (
    ConfigurationError,
    ConverterNotFoundError,
    ConverterProcessError,
    ConverterTimeoutError,
)
from lazconv.utils.logging import get_logger

log = get_logger(__name__)

# Largest single output line accepted from the converter
_STREAM_LIMIT = 1024 * 1024


@dataclass
class ConverterRun:
    """Captured outcome of a successful converter invocation."""

    exit_code: int
    stdout: str
    stderr: str
    duration: float


class PotreeConverter:
    """Invokes PotreeConverter for a single input."""

    def __init__(self, converter_path: Path | str | None, timeout: float | None = None) -> None:
        """Initialize the runner.

        Args:
            converter_path: Path to the PotreeConverter executable
            timeout: Seconds to wait for the process; None waits indefinitely
        """
        self.converter_path = Path(converter_path) if converter_path else None
        self.timeout = timeout

    def ensure_available(self) -> Path:
        """Check that the configured executable exists.

        Returns:
            The executable path

        Raises:
            ConfigurationError: If the path is unset or does not point to a file
        """
        if self.converter_path is None:
            raise ConfigurationError(
                "PotreeConverter path is not configured. "
                "Set converter.path in lazconv.yaml or LAZCONV_CONVERTER__PATH."
            )
        if not self.converter_path.is_file():
            raise ConfigurationError(f"PotreeConverter not found at: {self.converter_path}")
        return self.converter_path

    def build_command(self, input_path: Path, output_dir: Path) -> list[str]:
        """Build the converter argument list."""
        return [
            str(self.converter_path),
            str(input_path),
            CONVERTER_OUTPUT_FLAG,
            str(output_dir),
            CONVERTER_OVERWRITE_FLAG,
        ]

    async def run(self, input_path: Path, output_dir: Path) -> ConverterRun:
        """Convert one input into ``output_dir``.

        Args:
            input_path: Whole input file or extracted chunk
            output_dir: Directory the converter writes into

        Returns:
            ConverterRun with the captured output

        Raises:
            ConverterNotFoundError: If the executable is missing
            ConverterProcessError: If the process exits with a non-zero code
            ConverterTimeoutError: If the process outlives the configured timeout
        """
        if self.converter_path is None or not self.converter_path.is_file():
            raise ConverterNotFoundError(input_path, self.converter_path or Path(""))

        cmd = self.build_command(input_path, output_dir)
        log.info(
            "Running PotreeConverter",
            input=str(input_path),
            output_dir=str(output_dir),
        )
        log.debug("Converter command", command=" ".join(cmd))

        start = time.perf_counter()
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=_STREAM_LIMIT,
            )
        except FileNotFoundError as e:
            raise ConverterNotFoundError(input_path, self.converter_path) from e

        stdout_lines: list[str] = []
        stderr_lines: list[str] = []
        pumps = [
            asyncio.ensure_future(self._pump(process.stdout, stdout_lines, is_error=False)),
            asyncio.ensure_future(self._pump(process.stderr, stderr_lines, is_error=True)),
        ]

        async def communicate() -> int:
            await asyncio.gather(*pumps)
            return await process.wait()

        try:
            exit_code = await asyncio.wait_for(communicate(), timeout=self.timeout)
        except TimeoutError as e:
            await self._terminate(process, pumps)
            log.error("PotreeConverter timed out", input=str(input_path), timeout=self.timeout)
            raise ConverterTimeoutError(
                input_path, self.timeout, "\n".join(stdout_lines), "\n".join(stderr_lines)
            ) from e
        except (ValueError, asyncio.LimitOverrunError) as e:
            # readline raises ValueError for a line longer than _STREAM_LIMIT
            await self._terminate(process, pumps)
            exit_code = process.returncode if process.returncode is not None else -1
            log.error(
                "Could not read PotreeConverter output",
                input=str(input_path),
                exit_code=exit_code,
                error=str(e),
            )
            raise ConverterProcessError(
                input_path,
                exit_code,
                "\n".join(stdout_lines),
                "\n".join(stderr_lines),
                reason=f"Could not read PotreeConverter output: {e}",
            ) from e
        except BaseException:
            await self._terminate(process, pumps)
            raise

        stdout = "\n".join(stdout_lines)
        stderr = "\n".join(stderr_lines)
        duration = time.perf_counter() - start

        if exit_code != 0:
            log.error(
                "PotreeConverter failed",
                input=str(input_path),
                exit_code=exit_code,
                stderr=stderr,
            )
            raise ConverterProcessError(input_path, exit_code, stdout, stderr)

        log.info(
            "PotreeConverter completed",
            input=str(input_path),
            duration=f"{duration:.2f}s",
        )
        return ConverterRun(exit_code=exit_code, stdout=stdout, stderr=stderr, duration=duration)

    @staticmethod
    async def _pump(
        stream: asyncio.StreamReader | None,
        sink: list[str],
        is_error: bool,
    ) -> None:
        """Read a child stream line by line, logging each non-empty line.

        Every line, blank ones included, is kept in ``sink``.
        """
        if stream is None:
            return
        while True:
            raw = await stream.readline()
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            sink.append(line)
            if not line:
                continue
            if is_error:
                log.warning("PotreeConverter stderr", line=line)
            else:
                log.info("PotreeConverter output", line=line)

    @staticmethod
    async def _terminate(
        process: asyncio.subprocess.Process,
        pumps: list[asyncio.Future[None]],
    ) -> None:
        """Kill a still-running child, reap it and stop its output readers."""
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
        for pump in pumps:
            pump.cancel()
        await asyncio.gather(*pumps, return_exceptions=True)
