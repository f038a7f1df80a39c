"""Structured logging configuration with file rotation.

Besides the main ``bookgen.log``, two loggers get their own rotating file:
``providers`` (every model call, with fallbacks) and ``workflow`` (pipeline
transitions, routing decisions and progress).
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# logger name -> file under log_dir
CHANNEL_LOGS = {
    "providers": "provider_calls.log",
    "workflow": "pipeline.log",
}

# SDK loggers that are chatty at INFO
NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "botocore",
    "boto3",
    "urllib3",
    "google_genai",
    "langgraph",
    "claude_agent_sdk",
)


def _rotating_handler(
    path: Path, level: int, formatter: logging.Formatter, max_bytes: int, backup_count: int
) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        str(path),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str | Path] = None,
    console_enabled: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """Configure application-wide logging with console and file handlers.

    Args:
        level: Logging level (e.g., logging.DEBUG, logging.INFO).
        log_dir: Directory for log files. Defaults to ./data/logs.
        console_enabled: Whether to output to console.
        max_bytes: Size at which each log file rotates.
        backup_count: Rotated files kept per log.
    """
    log_dir = Path(log_dir or "./data/logs")
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates on re-init
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    root_logger.addHandler(
        _rotating_handler(log_dir / "bookgen.log", level, formatter, max_bytes, backup_count)
    )

    # Channel logs also propagate to bookgen.log
    for name, filename in CHANNEL_LOGS.items():
        channel = logging.getLogger(name)
        channel.handlers.clear()
        channel.addHandler(
            _rotating_handler(log_dir / filename, logging.DEBUG, formatter, max_bytes, backup_count)
        )

    # Keep SDK chatter out of the logs unless debugging
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    logging.getLogger(__name__).debug("Logging initialized: level=%s, dir=%s", level, log_dir)
