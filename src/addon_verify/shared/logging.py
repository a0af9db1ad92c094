"""Logging configuration for addon-verify.

Events go through structlog into stdlib logging, rendered for a terminal by
default or as JSON lines for CI log collection. Without a log file they are
written to stderr so ``--json`` reports on stdout stay parseable.
"""

import logging
import sys
from pathlib import Path

import structlog

# Indexed by the number of -v flags
LOG_LEVELS = ("warning", "info", "debug")

PRE_CHAIN: tuple[structlog.types.Processor, ...] = (
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
)


def _handler(log_file: str | Path | None) -> logging.Handler:
    if not log_file:
        return logging.StreamHandler(sys.stderr)
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(str(path))


def _renderer(json_output: bool) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def configure_logging(
    level: str = "warning",
    log_file: str | Path | None = None,
    json_output: bool = False,
) -> None:
    """Configure stdlib logging and structlog.

    Safe to call more than once; each call replaces the previous handlers.

    Args:
        level: Log level name (debug, info, warning, error, critical)
        log_file: Write to this file instead of stderr
        json_output: Render events as JSON lines
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)
    handler = _handler(log_file)
    handler.setLevel(log_level)
    logging.basicConfig(level=log_level, handlers=[handler], format="%(message)s", force=True)

    structlog.configure(
        processors=[*PRE_CHAIN, _renderer(json_output)],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def level_for_verbosity(verbose: int) -> str:
    """Map a ``-v`` count to a log level name."""
    return LOG_LEVELS[min(max(verbose, 0), len(LOG_LEVELS) - 1)]


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
