"""Logging configuration."""

import logging
import sys
from typing import Any

ROOT_LOGGER_NAME = "tracker_hub"


def configure_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    # Convert string log level to logging constant
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric_level)

    # Avoid stacking handlers when called more than once (CLI + tests)
    for existing in list(logger.handlers):
        if getattr(existing, "_tracker_hub_handler", False):
            logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler._tracker_hub_handler = True

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a module logger under the application namespace."""
    return logging.getLogger(name)


def log_run_start(logger: logging.Logger, tracker_id: str, queries: list[str]):
    """
    Log the start of a tracker run.

    Args:
        logger: Logger instance
        tracker_id: Tracker being run
        queries: Search queries the run will fan out
    """
    logger.info(f"Starting run for tracker {tracker_id} with {len(queries)} queries")
    logger.debug(f"Queries: {queries}")


def log_source_results(logger: logging.Logger, source_counts: dict[str, int]):
    """
    Log how many items each source adapter contributed.

    Args:
        logger: Logger instance
        source_counts: Item count per adapter name
    """
    summary = ", ".join(f"{name}={count}" for name, count in source_counts.items())
    logger.info(f"Collected items per source: {summary or 'none'}")


def log_run_summary(logger: logging.Logger, summary: dict[str, Any]):
    """
    Log the outcome of a tracker run.

    Args:
        logger: Logger instance
        summary: Run statistics
    """
    logger.info(
        f"Run finished: collected={summary.get('collected', 0)} "
        f"deduplicated={summary.get('deduplicated', 0)} "
        f"results={summary.get('results', 0)}"
    )
    if summary.get("failed_sources"):
        logger.warning(f"Degraded sources: {summary['failed_sources']}")
    logger.debug(f"Run summary: {summary}")
