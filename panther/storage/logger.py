"""
Logging configuration using loguru.
"""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"

LOG_FILENAME = "panther.log"
ERROR_LOG_FILENAME = "panther_errors.log"
RUN_LOG_FILENAME = "run.log"


def setup_logging(output_dir: Path, verbose: bool = False) -> logger:
    """
    Setup application logging.

    Console output goes to stderr so JSON on stdout stays parseable. The
    output directory keeps a rotating log of every run plus an errors-only log.

    Args:
        output_dir: Directory for log files
        verbose: Enable verbose logging

    Returns:
        Configured logger instance
    """
    logger.remove()

    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO", format=CONSOLE_FORMAT)

    output_dir = Path(output_dir)
    log_file = output_dir / LOG_FILENAME
    logger.add(log_file, rotation="10 MB", retention="30 days", level="DEBUG", format=FILE_FORMAT)

    error_log = output_dir / ERROR_LOG_FILENAME
    logger.add(error_log, rotation="10 MB", retention="90 days", level="ERROR", format=FILE_FORMAT)

    logger.debug(f"Log files: {log_file}, {error_log}")

    return logger


def add_run_log(run_dir: Path) -> int:
    """
    Mirror log records into the run directory, next to results.csv.

    Args:
        run_dir: Directory created for this run

    Returns:
        Handler id; pass it to ``logger.remove`` when the run ends
    """
    run_log = Path(run_dir) / RUN_LOG_FILENAME
    handler_id = logger.add(run_log, level="DEBUG", format=FILE_FORMAT)
    logger.info(f"Run directory: {run_dir}")
    return handler_id
