"""
Structured logging for the lwp CLI.

Features:
- structlog loggers routed through the stdlib "lwp_cli" logger
- Console: human-readable, stderr, quiet by default (WARNING)
- File: JSON lines with rotation (5MB, 3 backups), always at DEBUG
"""

import logging
import logging.handlers
import sys

import structlog

from .config import CLIConfig
from .config import config as default_config

__all__ = ["configure_logging"]

ROOT_LOGGER = "lwp_cli"

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]


def configure_logging(config: CLIConfig | None = None, verbose: bool = False) -> logging.Logger:
    """Route structlog output to stderr and the rotating log file.

    Args:
        config: CLI configuration (log level, log file location)
        verbose: Force DEBUG on the console

    Returns:
        The configured stdlib parent logger
    """
    config = config or default_config
    console_level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    parent = logging.getLogger(ROOT_LOGGER)
    parent.setLevel(logging.DEBUG)
    parent.propagate = False
    for handler in list(parent.handlers):
        parent.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=False),
            foreign_pre_chain=_SHARED_PROCESSORS,
        )
    )
    parent.addHandler(console)

    try:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            str(config.log_file),
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
        )
    except OSError:
        pass  # Skip file logging if not writable
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=_SHARED_PROCESSORS,
            )
        )
        parent.addHandler(file_handler)

    return parent
