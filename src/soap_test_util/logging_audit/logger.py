"""Logging setup for SOAP exchanges.

Console output follows the requested level; the log file always records
DEBUG so that full request and response envelopes are available after a
failed assertion. Both handlers share one SecretRedactingFormatter.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .formatters import SecretRedactingFormatter

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FILE = Path("logs") / "soap-test-util.log"
MAX_LOG_FILE_SIZE = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 5

# zeep dumps whole WSDL documents at DEBUG, urllib3 every connection
CHATTY_LOGGERS = ("zeep", "urllib3")


def _remove_installed_handlers(root_logger: logging.Logger) -> None:
    for handler in root_logger.handlers[:]:
        if isinstance(handler.formatter, SecretRedactingFormatter):
            root_logger.removeHandler(handler)
            handler.close()


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    redact_secrets: bool = False,
) -> None:
    """Install console and rotating file handlers on the root logger.

    Calling it again replaces the handlers installed by a previous call and
    leaves handlers installed by anyone else alone.

    Args:
        level: Console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Log file path. Defaults to SOAP_TEST_LOG_FILE if set,
            else logs/soap-test-util.log
        redact_secrets: Mask password, token and secret values in logged XML

    Raises:
        ValueError: If the level is not a known log level
        RuntimeError: If the log directory cannot be created

    Example:
        >>> configure_logging(level="DEBUG", redact_secrets=True)
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )

    if log_file is None:
        env_log_file = os.environ.get("SOAP_TEST_LOG_FILE")
        log_file = Path(env_log_file) if env_log_file else DEFAULT_LOG_FILE

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RuntimeError(
            f"Failed to create log directory: {log_file.parent}. Error: {e}"
        ) from e

    root_logger = logging.getLogger()
    _remove_installed_handlers(root_logger)
    root_logger.setLevel(logging.DEBUG)

    formatter = SecretRedactingFormatter(fmt=DEFAULT_LOG_FORMAT, redact_secrets=redact_secrets)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    try:
        file_handler = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=MAX_LOG_FILE_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        root_logger.warning(f"Cannot write log file {log_file}: {e}. Logging to console only.")
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    library_level = logging.DEBUG if numeric_level == logging.DEBUG else logging.WARNING
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
