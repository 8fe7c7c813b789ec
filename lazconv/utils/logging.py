"""Logging configuration using structlog."""

import logging
import sys
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from structlog.typing import EventDict, WrappedLogger

import structlog

# Re-export BoundLogger for type hints in other modules
BoundLogger = structlog.stdlib.BoundLogger


# =============================================================================
# Conversion Context Infrastructure
# =============================================================================

# Context variables for per-unit tracing (asyncio tasks get their own copy)
_conversion_id_var: ContextVar[str | None] = ContextVar("conversion_id", default=None)
_file_context_var: ContextVar[str | None] = ContextVar("file_context", default=None)


def set_conversion_context(
    conversion_id: str | None = None,
    file_path: str | None = None,
) -> None:
    """Set conversion context variables for logging.

    These context variables are automatically injected into all log messages
    via the _inject_conversion_context processor.

    Args:
        conversion_id: Identifier of the conversion unit
        file_path: Input file being processed
    """
    if conversion_id is not None:
        _conversion_id_var.set(conversion_id)
    if file_path is not None:
        _file_context_var.set(file_path)


def clear_conversion_context() -> None:
    """Clear all conversion context variables."""
    _conversion_id_var.set(None)
    _file_context_var.set(None)


def get_conversion_id() -> str | None:
    """Get the current conversion ID from context."""
    return _conversion_id_var.get()


@contextmanager
def conversion_context(
    conversion_id: str,
    file_path: str | None = None,
) -> Generator[str, None, None]:
    """Context manager that tags every log line with the conversion being run.

    Args:
        conversion_id: Identifier of the conversion unit
        file_path: Optional input file path

    Yields:
        The conversion ID

    Example:
        >>> with conversion_context(result.id, file_path="/data/site.laz"):
        ...     log.info("Processing started")  # includes conversion_id and file
    """
    old_conversion_id = _conversion_id_var.get()
    old_file = _file_context_var.get()

    set_conversion_context(conversion_id=conversion_id, file_path=file_path)

    try:
        yield conversion_id
    finally:
        _conversion_id_var.set(old_conversion_id)
        _file_context_var.set(old_file)


def _inject_conversion_context(
    _logger: "WrappedLogger", _method_name: str, event_dict: "EventDict"
) -> "EventDict":
    """Add conversion_id and file from context unless the event already has them."""
    conversion_id = _conversion_id_var.get()
    if conversion_id and "conversion_id" not in event_dict:
        event_dict["conversion_id"] = conversion_id

    file_ctx = _file_context_var.get()
    if file_ctx and "file" not in event_dict:
        event_dict["file"] = file_ctx

    return event_dict


# =============================================================================
# Logging Configuration
# =============================================================================


class SafeStreamHandler(logging.StreamHandler):
    """A StreamHandler that handles encoding errors gracefully.

    On Windows, the console may use CP1252 encoding which cannot display
    every character PotreeConverter prints. This handler catches encoding
    errors and replaces problematic characters.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a record, handling encoding errors gracefully."""
        try:
            msg = self.format(record)
            stream = self.stream
            try:
                stream.write(msg + self.terminator)
            except UnicodeEncodeError:
                safe_msg = msg.encode(stream.encoding or "utf-8", errors="replace").decode(
                    stream.encoding or "utf-8", errors="replace"
                )
                stream.write(safe_msg + self.terminator)
            self.flush()
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)


# Noisy third-party loggers to suppress at DEBUG level
_NOISY_LOGGERS = [
    "asyncio",
]

# Keys that are handled specially by ConsoleRenderer (not user context)
_INTERNAL_KEYS = {"event", "level", "timestamp", "_record", "_from_structlog"}

_MAX_VALUE_LENGTH = 2000


def _filter_event_dict(
    _logger: "WrappedLogger", _method_name: str, event_dict: "EventDict"
) -> "EventDict":
    """Filter out excessively long values (converter dumps) from the event dict."""
    for key, value in list(event_dict.items()):
        if isinstance(value, str) and len(value) > _MAX_VALUE_LENGTH:
            event_dict[key] = value[:_MAX_VALUE_LENGTH] + f"... [{len(value)} chars total]"
        elif isinstance(value, (bytes, bytearray)) and len(value) > _MAX_VALUE_LENGTH:
            event_dict[key] = f"[BINARY DATA: {len(value)} bytes]"
    return event_dict


def _add_separator(
    _logger: "WrappedLogger", _method_name: str, event_dict: "EventDict"
) -> "EventDict":
    """Add a visual separator between event message and context variables."""
    has_context = any(k not in _INTERNAL_KEYS for k in event_dict)

    if has_context and "event" in event_dict:
        event_dict["event"] = f"{event_dict['event']} |"

    return event_dict


def _console_renderer(colors: bool) -> structlog.dev.ConsoleRenderer:
    return structlog.dev.ConsoleRenderer(
        colors=colors,
        exception_formatter=structlog.dev.plain_traceback,
        pad_event_to=0,
        pad_level=False,
    )


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    json_format: bool = False,
    console_level: str | None = None,
    file_level: str | None = None,
) -> None:
    """Configure structlog for the application.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for logging output (logs to both console and file).
                  Rotated at midnight with 7 days of history.
        json_format: If True, output JSON format
        console_level: Optional override for console handler level
        file_level: Optional override for file handler level
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(log_level, logging.WARNING))

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _inject_conversion_context,
        _filter_event_dict,
        _add_separator,
    ]

    if json_format:
        final_processor: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = _console_renderer(colors=True)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            final_processor,
        ],
    )

    console_handler = SafeStreamHandler(sys.stderr)
    c_level = getattr(logging, console_level.upper(), log_level) if console_level else log_level
    console_handler.setLevel(c_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_final: structlog.types.Processor = (
            structlog.processors.JSONRenderer() if json_format else _console_renderer(colors=False)
        )
        file_formatter = structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                file_final,
            ],
        )

        file_handler = TimedRotatingFileHandler(
            log_file,
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
        )
        file_handler.suffix = "%Y-%m-%d"

        f_level = getattr(logging, file_level.upper(), log_level) if file_level else log_level
        file_handler.setLevel(f_level)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,  # Allow reconfiguration
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Optional logger name

    Returns:
        A structlog bound logger
    """
    return structlog.get_logger(name)


def create_task_log_path(log_dir: str | Path, prefix: str = "task") -> tuple[str, Path]:
    """Create a unique task log file path with timestamp and UUID.

    Args:
        log_dir: Directory to store log files
        prefix: Prefix for the log file name (e.g., "run")

    Returns:
        Tuple of (task_id, log_file_path)

    Example:
        >>> task_id, log_path = create_task_log_path(".logs", "run")
        >>> print(log_path)  # .logs/run_20260109_143052_a1b2c3d4.log
    """
    log_dir_path = Path(log_dir)
    log_dir_path.mkdir(parents=True, exist_ok=True)

    task_id = str(uuid.uuid4())[:8]
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir_path / f"{prefix}_{timestamp}_{task_id}.log"

    return task_id, log_file


def setup_task_logging(
    log_dir: str | Path,
    prefix: str = "task",
    verbose: bool = False,
    console_level: str = "WARNING",
) -> tuple[str, Path]:
    """Setup logging for a task with unified behavior.

    Console shows ``console_level`` and above unless verbose, in which case
    it shows everything. The task log file always captures DEBUG.

    Args:
        log_dir: Directory to store log files
        prefix: Prefix for the log file name
        verbose: Enable verbose console output
        console_level: Console level when not verbose

    Returns:
        Tuple of (task_id, log_file_path)
    """
    task_id, log_path = create_task_log_path(log_dir, prefix)

    setup_logging(
        level="DEBUG",
        log_file=str(log_path),
        console_level="DEBUG" if verbose else console_level,
        file_level="DEBUG",
    )

    return task_id, log_path


@contextmanager
def console_logging_suppressed() -> Generator[None, None, None]:
    """Silence console log handlers while a live display owns the terminal.

    File handlers keep receiving every record.
    """
    root_logger = logging.getLogger()
    saved: list[tuple[logging.Handler, int]] = [
        (handler, handler.level)
        for handler in root_logger.handlers
        if isinstance(handler, SafeStreamHandler)
    ]
    for handler, _ in saved:
        handler.setLevel(logging.CRITICAL + 1)
    try:
        yield
    finally:
        for handler, level in saved:
            handler.setLevel(level)
