"""File system utilities for lazconv.

Provides directory handling, output listing and input discovery.
"""

from pathlib import Path

from lazconv.config.constants import DEFAULT_INPUT_EXTENSIONS


def ensure_directory(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path

    Returns:
        The directory path
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def list_files_recursive(directory: Path) -> list[Path]:
    """List every regular file below a directory.

    Args:
        directory: Directory to walk

    Returns:
        Sorted file paths; empty if the directory does not exist
    """
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.rglob("*") if p.is_file())


def discover_files(
    directory: Path,
    extensions: list[str] | set[str] | None = None,
    recursive: bool = True,
) -> list[Path]:
    """Discover input files in a directory.

    Extensions are matched case-insensitively, so ``SITE.LAZ`` is picked up
    alongside ``site.laz``.

    Args:
        directory: Directory to search
        extensions: File extensions to include (default: DEFAULT_INPUT_EXTENSIONS)
        recursive: Search subdirectories

    Returns:
        Sorted list of absolute file paths
    """
    wanted = {ext.lower() for ext in (extensions or DEFAULT_INPUT_EXTENSIONS)}
    pattern = "**/*" if recursive else "*"

    files = [
        file_path.resolve()
        for file_path in directory.glob(pattern)
        if file_path.is_file() and file_path.suffix.lower() in wanted
    ]

    # Sort for consistent ordering
    files.sort()
    return files


def format_size(size: int | float) -> str:
    """Format byte size as human-readable string.

    Args:
        size: Size in bytes

    Returns:
        Human-readable size string
    """
    size_f = float(size)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_f < 1024:
            return f"{size_f:.1f} {unit}"
        size_f /= 1024
    return f"{size_f:.1f} PB"
