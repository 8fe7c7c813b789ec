"""Utility module for lazconv."""

from lazconv.utils.concurrency import ConcurrencyManager
from lazconv.utils.fs import discover_files, ensure_directory, format_size, list_files_recursive
from lazconv.utils.stats import BatchStats, format_duration

__all__ = [
    # Concurrency
    "ConcurrencyManager",
    # File system
    "ensure_directory",
    "list_files_recursive",
    "discover_files",
    "format_size",
    # Statistics
    "BatchStats",
    "format_duration",
]
