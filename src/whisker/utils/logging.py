"""Logging setup for the whisker command line tool.

Provides three output modes:
- Human mode: [LEVEL] message (colored if TTY)
- Verbose mode: [LEVEL][HH:MM:SS] message
- CI/JSON mode: {"level":"...","ts":"...","msg":"..."}

Log records always go to stderr so rendered templates written to stdout are
never interleaved with diagnostics. The library modules only create loggers;
handlers are installed by the command line tool.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TextIO

from whisker.errors import MissingVariableError, ParseError, TemplateLoadError, WhiskerError


class LogMode(Enum):
    """Logging output mode."""

    HUMAN = "human"
    VERBOSE = "verbose"
    JSON = "json"


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    GRAY = "\033[90m"


LEVEL_COLORS = {
    logging.DEBUG: Colors.GRAY,
    logging.INFO: Colors.GREEN,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.RED,
}


def _is_tty(stream: TextIO | None = None) -> bool:
    """Check if the stream is a TTY (supports colors)."""
    if stream is None:
        stream = sys.stderr
    return hasattr(stream, "isatty") and stream.isatty()


class ConsoleFormatter(logging.Formatter):
    """Formatter for terminal output.

    Format: [LEVEL] message, or [LEVEL][HH:MM:SS] message with timestamps.
    """

    def __init__(self, use_colors: bool = True, timestamps: bool = False) -> None:
        """Initialize console formatter.

        Args:
            use_colors: Whether to use ANSI colors
            timestamps: Whether to include the local time
        """
        super().__init__()
        self.use_colors = use_colors
        self.timestamps = timestamps

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record."""
        label = f"[{record.levelname}]"
        if self.use_colors:
            color = LEVEL_COLORS.get(record.levelno, Colors.RESET)
            label = f"{color}{label}{Colors.RESET}"
        if self.timestamps:
            label += datetime.now().strftime("[%H:%M:%S]")
        return f"{label} {record.getMessage()}"


class JSONFormatter(logging.Formatter):
    """Formatter for JSON lines output (machine-readable).

    Format: {"level":"ERROR","ts":"2026-01-31T19:45:23Z","msg":"...","line":3}
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_entry: dict[str, Any] = {
            "level": record.levelname,
            "ts": datetime.now(UTC).isoformat(),
            "msg": record.getMessage(),
        }

        if hasattr(record, "extra_data"):
            log_entry.update(record.extra_data)

        return json.dumps(log_entry)


class WhiskerLogger(logging.Logger):
    """Logger with structured logging support."""

    def structured(self, level: int, msg: str, **kwargs: Any) -> None:
        """Log a message with additional structured data.

        Args:
            level: Log level
            msg: Log message
            **kwargs: Additional data to include in JSON output
        """
        record = self.makeRecord(self.name, level, "(unknown)", 0, msg, (), None)
        if kwargs:
            record.extra_data = kwargs  # type: ignore
        self.handle(record)

    def template_error(self, error: WhiskerError, template: str | None = None) -> None:
        """Log a compile or render error with its location.

        Args:
            error: Error raised by the compiler or renderer
            template: Template path or name being processed
        """
        data: dict[str, Any] = {"error": type(error).__name__}
        if template is not None:
            data["template"] = template
        if isinstance(error, (ParseError, MissingVariableError)) and error.line is not None:
            data["line"] = error.line
        if isinstance(error, TemplateLoadError) and error.template_name is not None:
            data["partial"] = error.template_name

        prefix = f"{template}: " if template else ""
        self.structured(logging.ERROR, f"{prefix}{error}", **data)


logging.setLoggerClass(WhiskerLogger)


def get_logger(name: str = "whisker") -> WhiskerLogger:
    """Get a whisker logger instance.

    Args:
        name: Logger name

    Returns:
        WhiskerLogger instance
    """
    return logging.getLogger(name)  # type: ignore


def setup_logging(
    mode: LogMode = LogMode.HUMAN,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Configure the "whisker" logger hierarchy.

    Args:
        mode: Output mode (human, verbose, json)
        level: Minimum log level
        stream: Output stream (default: stderr)
    """
    logger = logging.getLogger("whisker")
    logger.setLevel(level)
    logger.handlers.clear()

    stream = stream or sys.stderr
    use_colors = _is_tty(stream)

    if mode == LogMode.JSON:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = ConsoleFormatter(use_colors=use_colors, timestamps=mode == LogMode.VERBOSE)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def configure_from_cli(
    verbose: bool = False,
    quiet: bool = False,
    ci: bool = False,
) -> None:
    """Configure logging based on CLI flags.

    Args:
        verbose: Enable verbose mode with timestamps and debug records
        quiet: Suppress info messages (warnings and errors only)
        ci: Enable JSON output for CI/CD
    """
    if ci:
        mode = LogMode.JSON
    elif verbose:
        mode = LogMode.VERBOSE
    else:
        mode = LogMode.HUMAN

    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    setup_logging(mode=mode, level=level)
