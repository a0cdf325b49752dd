"""Logging Audit module.

This module provides logging configuration and audit trail functionality.
"""

from .audit import log_audit_event, log_transaction
from .formatters import SecretRedactingFormatter
from .logger import configure_logging

__all__ = [
    "configure_logging",
    "log_audit_event",
    "log_transaction",
    "SecretRedactingFormatter",
]
