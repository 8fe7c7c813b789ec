"""Constants for lazconv."""

from pathlib import Path

from lazconv import __version__

# Application constants
APP_NAME = "lazconv"
APP_VERSION = __version__

# Default paths
DEFAULT_INPUT_DIR = "input"
DEFAULT_OUTPUT_DIR = "output"
DEFAULT_TEMP_DIR = "temp"
DEFAULT_LOG_DIR = ".logs"
DEFAULT_CONFIG_FILE = "lazconv.yaml"

# Config file locations (in order of priority)
CONFIG_LOCATIONS = [
    Path.cwd() / DEFAULT_CONFIG_FILE,
]

# Input files picked up from the input directory
DEFAULT_INPUT_EXTENSIONS = [".laz"]

# Size units
BYTES_PER_MB = 1024 * 1024

# Chunking defaults
DEFAULT_CHUNK_SIZE_MB = 100
DEFAULT_COPY_BUFFER_SIZE = 1024 * 1024  # 1 MiB per read during chunk extraction
MIN_COPY_BUFFER_SIZE = 4096
CHUNK_ID_WIDTH = 3  # 000, 001, ...

# Concurrency defaults
DEFAULT_MAX_CONCURRENT_PROCESSES = 2

# Output layout
CHUNK_DIR_PREFIX = "chunk_"
CHUNK_TEMP_SUFFIX = ".laz"
METADATA_FILENAME = "conversion_metadata.json"
RESULTS_FILE_PREFIX = "conversion_results"

# PotreeConverter command line flags
CONVERTER_OUTPUT_FLAG = "-o"
CONVERTER_OVERWRITE_FLAG = "--overwrite"
