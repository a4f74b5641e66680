# ocifsync/utils/logger.py
"""
Logging configuration for the ocifsync package.

Provides centralized logging setup plus the two small logging collaborators
used at the package's failure boundaries (log_error) and for raw XML traces
(log_info). Every record carries the current correlation id.
"""

import logging
from pathlib import Path
from sys import stdout
from typing import Any

from .correlation import get_correlation_id

# Package logger shared by log_error and log_info
_collaborator_logger: logging.Logger = logging.getLogger('ocifsync')


def setup_logger(
    logging_level: int = logging.INFO,
    log_file_path: Path | None = None,
) -> logging.Logger:
    """
    Set up logging for the ocifsync package.

    Configures the package-level logger so that all modules inherit the same
    level and handler. The function is idempotent: calling it again updates
    the level of the existing handler instead of adding a duplicate.

    Args:
        logging_level: The logging level to use (e.g., logging.DEBUG,
                      logging.INFO). Defaults to INFO.
        log_file_path: Optional path to a log file. If None, logs are written
                      to stdout.

    Returns:
        Logger instance for this module.

    Example:
        >>> logger = setup_logger(logging_level=logging.DEBUG)
        >>> logger = setup_logger(log_file_path=Path('ocifsync.log'))
    """
    package_logger: logging.Logger = logging.getLogger('ocifsync')
    package_logger.setLevel(logging_level)

    log_format: logging.Formatter = logging.Formatter(
        fmt='%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )

    if not package_logger.handlers:
        if log_file_path is not None:
            log_file_path.parent.mkdir(parents=True, exist_ok=True)

            handler: logging.Handler = logging.FileHandler(
                filename=str(log_file_path),
                mode='a',
                encoding='utf-8',
            )
            package_logger.info('Logging to file: %s', log_file_path)
        else:
            handler = logging.StreamHandler(stdout)

        handler.setFormatter(log_format)
        handler.setLevel(logging_level)
        package_logger.addHandler(handler)

    else:
        for existing_handler in package_logger.handlers:
            existing_handler.setLevel(logging_level)

    return logging.getLogger(__name__)


def log_error(message: str, error_or_detail: Any = None) -> None:
    """
    Log one failure at a package boundary.

    Called exactly once per caught failure, right before the failure is
    re-raised. Never used for expected branches such as missing optional
    fields.

    Args:
        message: Fixed message tag identifying the boundary
                 (e.g. 'err parse XML response to JSON').
        error_or_detail: The caught exception or any extra detail.
    """
    _collaborator_logger.error(
        '%s: %r [correlation_id=%s]',
        message,
        error_or_detail,
        get_correlation_id(),
    )


def log_info(message: str, detail: Any = None) -> None:
    """Log an informational trace (e.g. the raw OCIF XML) with the correlation id."""
    _collaborator_logger.info(
        '%s: %r [correlation_id=%s]',
        message,
        detail,
        get_correlation_id(),
    )
