"""Structured logging configuration for the ingestion pipeline."""

import logging
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

console = Console()

ROOT_LOGGER_NAME = "channel_ingest"

# Chatty client libraries, raised to WARNING outside debug runs
NOISY_LOGGERS = ("httpx", "httpcore", "pymongo", "motor")

FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _console_handler(level: int, rich_tracebacks: bool) -> logging.Handler:
    handler = RichHandler(
        console=console,
        rich_tracebacks=rich_tracebacks,
        tracebacks_show_locals=level <= logging.DEBUG,
        show_path=level <= logging.DEBUG,
        markup=False,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _file_handler(log_file: Path | str) -> logging.Handler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, encoding="utf-8")
    # The file keeps debug detail whatever the console level
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    rich_tracebacks: bool = True,
) -> logging.Logger:
    """
    Configure the package logger: a rich console handler plus an optional file.

    Sync runs, catalog paging and transcript attempts all log under
    ``channel_ingest.*``; the package logger does not propagate to root.

    Args:
        level: Console logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to a log file that receives DEBUG and above
        rich_tracebacks: Enable rich traceback formatting

    Returns:
        The package logger
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.handlers.clear()
    package_logger.addHandler(_console_handler(numeric_level, rich_tracebacks))
    if log_file:
        package_logger.addHandler(_file_handler(log_file))
        package_logger.setLevel(logging.DEBUG)
    else:
        package_logger.setLevel(numeric_level)
    package_logger.propagate = False

    library_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    package_logger.debug("Logging initialized (level=%s, file=%s)", level, log_file)
    return package_logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get or create a logger instance.

    Module names already under the package (``channel_ingest.x.y``) are used
    as-is; anything else becomes a child of the package logger.

    Args:
        name: Logger name (default: channel_ingest)

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_channel_sync_event(
    logger_instance: logging.Logger,
    channel_id: str,
    event: str,
    run_id: str | None = None,
    channel_name: str | None = None,
    videos_fetched: int | None = None,
    videos_inserted: int | None = None,
    duration_ms: int | None = None,
    error: str | None = None,
) -> None:
    """
    Log channel sync events.

    Args:
        logger_instance: Logger to use
        channel_id: Internal channel identifier
        event: Event type (started, completed, failed)
        run_id: Sync run identifier
        channel_name: Channel display name
        videos_fetched: Number of videos with details
        videos_inserted: Number of videos persisted
        duration_ms: Run duration in milliseconds
        error: Error message if failed
    """
    extra: dict[str, Any] = {
        "channel_id": channel_id,
        "event": event,
    }

    if run_id:
        extra["run_id"] = run_id
    if videos_fetched is not None:
        extra["videos_fetched"] = videos_fetched
    if videos_inserted is not None:
        extra["videos_inserted"] = videos_inserted
    if duration_ms is not None:
        extra["duration_ms"] = duration_ms
    if error:
        extra["error"] = error

    label = channel_name or channel_id
    prefix = f"[{run_id}] " if run_id else ""

    if event == "failed":
        logger_instance.error(f"{prefix}Channel sync failed: {label} ({error})", extra=extra)
    elif event == "completed":
        logger_instance.info(
            f"{prefix}Channel sync complete: {label} "
            f"({videos_inserted} inserted, {duration_ms}ms)",
            extra=extra,
        )
    else:
        logger_instance.info(f"{prefix}Channel sync {event}: {label}", extra=extra)
