"""Audit trail functionality for the SOAP Test Utility.

This module provides structured logging of SOAP request/response exchanges
and of assertion outcomes.
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def log_audit_event(event_type: str, details: Dict[str, Any]) -> None:
    """Log an audit trail event.

    Creates a structured audit log entry. Events are logged at INFO level for
    successful operations and ERROR level for failures.

    Args:
        event_type: Type of operation (e.g., "REQUEST_SENT", "ASSERTION_FAILED")
        details: Dictionary with event details. Common fields include:
                - action: SOAP operation name
                - endpoint: Target endpoint
                - status: "success" or "failure"
                - duration: Operation duration in seconds
                - error_message: Error details (if status is failure)
                - correlation_id: Optional correlation ID for tracking related events

    Example:
        >>> log_audit_event("REQUEST_SENT", {
        ...     "action": "UpdateUser",
        ...     "endpoint": "http://localhost:8080/soap",
        ...     "status": "success",
        ...     "duration": 0.12
        ... })
    """
    if "timestamp" not in details:
        details["timestamp"] = time.time()

    if "correlation_id" not in details:
        details["correlation_id"] = str(uuid.uuid4())

    message_parts = [f"AUDIT [{event_type}]"]

    field_order = [
        "status",
        "action",
        "endpoint",
        "strategy",
        "duration",
        "error_message",
        "correlation_id",
    ]

    for field in field_order:
        if field in details:
            value = details[field]
            if field == "duration" and isinstance(value, (int, float)):
                message_parts.append(f"{field}={value:.2f}s")
            else:
                message_parts.append(f"{field}={value}")

    for key, value in details.items():
        if key not in field_order and key != "timestamp":
            message_parts.append(f"{key}={value}")

    audit_message = " | ".join(message_parts)

    status = details.get("status", "unknown")
    if status == "failure":
        logger.error(audit_message)
    else:
        logger.info(audit_message)


def log_transaction(
    action: str,
    request: str,
    response: Optional[str],
    status: str = "success",
) -> str:
    """Log a SOAP exchange with its canonical request and raw response.

    The header line goes to INFO, full bodies to DEBUG so they are kept in
    the log file without cluttering the console.

    Args:
        action: SOAP operation name
        request: Canonical request envelope
        response: Raw response body (None if the send failed)
        status: Transaction status ("success" or "failure")

    Returns:
        Correlation ID shared by the logged lines

    Example:
        >>> log_transaction("UpdateUser", request_xml, response_xml)
    """
    correlation_id = str(uuid.uuid4())
    response_size = len(response) if response is not None else 0

    logger.info(
        f"TRANSACTION [{action}] | "
        f"status={status} | "
        f"correlation_id={correlation_id} | "
        f"request_size={len(request)} bytes | "
        f"response_size={response_size} bytes"
    )

    logger.debug(
        f"TRANSACTION REQUEST [{action}] | "
        f"correlation_id={correlation_id}\n"
        f"{request}"
    )

    if response is not None:
        logger.debug(
            f"TRANSACTION RESPONSE [{action}] | "
            f"correlation_id={correlation_id}\n"
            f"{response}"
        )

    return correlation_id
