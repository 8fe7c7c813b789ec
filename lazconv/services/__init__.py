"""Service layer for lazconv.

Services:
    - DirectoryService: input discovery, directory setup, temp area cleanup
    - ResultsWriter: batch results JSON artifact
"""

from lazconv.services.directory import DirectoryService, select_files
from lazconv.services.results import ResultsWriter

__all__ = [
    "DirectoryService",
    "ResultsWriter",
    "select_files",
]
