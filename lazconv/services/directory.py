"""Filesystem collaborator for a conversion run.

Owns the three run directories: where inputs are discovered, where
results are written and where chunk files are staged.
"""

from collections.abc import Sequence
from pathlib import Path

from lazconv.config.constants import DEFAULT_INPUT_EXTENSIONS
from lazconv.utils.fs import discover_files, ensure_directory
from lazconv.utils.logging import get_logger

log = get_logger(__name__)


class DirectoryService:
    """Input discovery, directory setup and temp area cleanup."""

    def __init__(
        self,
        input_dir: Path,
        output_dir: Path,
        temp_dir: Path,
        extensions: Sequence[str] | None = None,
    ) -> None:
        self.input_dir = input_dir
        self.output_dir = output_dir
        self.temp_dir = temp_dir
        self.extensions = list(extensions or DEFAULT_INPUT_EXTENSIONS)

    def ensure_directories(self) -> None:
        """Create the input, output and temp directories if missing."""
        for directory in (self.input_dir, self.output_dir, self.temp_dir):
            ensure_directory(directory)
            log.debug("Directory ready", path=str(directory))

    def list_input_files(self) -> list[Path]:
        """All matching input files below the input directory.

        Returns:
            Sorted absolute paths; empty when the input directory is absent
        """
        if not self.input_dir.is_dir():
            log.warning("Input directory does not exist", path=str(self.input_dir))
            return []

        files = discover_files(self.input_dir, self.extensions, recursive=True)
        log.info("Input files discovered", count=len(files), input_dir=str(self.input_dir))
        return files

    def purge_temp_area(self) -> None:
        """Remove everything under the temp directory, keeping the directory.

        Files go first, then subdirectories deepest first. An entry that
        cannot be removed is logged and skipped.
        """
        if not self.temp_dir.is_dir():
            log.warning("Temp directory does not exist", path=str(self.temp_dir))
            return

        entries = list(self.temp_dir.rglob("*"))
        removed = 0

        for path in entries:
            if path.is_dir() and not path.is_symlink():
                continue
            try:
                path.unlink()
                removed += 1
            except OSError as e:
                log.warning("Could not delete temp file", path=str(path), error=str(e))

        dirs = [p for p in entries if p.is_dir() and not p.is_symlink()]
        # Deepest first so parents are empty by the time they are reached
        for path in sorted(dirs, key=lambda p: len(p.parts), reverse=True):
            try:
                path.rmdir()
                removed += 1
            except OSError as e:
                log.warning("Could not delete temp directory", path=str(path), error=str(e))

        log.info("Temp area cleaned", path=str(self.temp_dir), removed=removed)


def select_files(
    requested_names: Sequence[str],
    available: Sequence[Path],
) -> tuple[list[Path], list[str]]:
    """Match requested file names against discovered inputs.

    Names are compared case-insensitively against each file's basename and
    the first match wins. Matches keep the order of the request.

    Args:
        requested_names: File names given by the user
        available: Discovered input files

    Returns:
        Tuple of (matched paths, names that matched nothing)
    """
    matched: list[Path] = []
    unmatched: list[str] = []

    for name in requested_names:
        wanted = Path(name).name.lower()
        match = next((p for p in available if p.name.lower() == wanted), None)
        if match is None:
            log.warning("Requested file not found", name=name)
            unmatched.append(name)
        else:
            matched.append(match)

    return matched, unmatched
