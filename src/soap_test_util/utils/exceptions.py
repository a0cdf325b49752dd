"""Custom exception classes for SOAP Test Utility.

All exceptions inherit from SoapTestUtilError to allow catching all custom exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests


class SoapTestUtilError(Exception):
    """Base exception for all SOAP Test Utility custom exceptions."""

    pass


class ConfigurationError(SoapTestUtilError):
    """Raised when configuration loading or validation fails.

    Examples:
        - Missing required endpoint or schema
        - Invalid configuration file format
        - Unknown log level
    """

    pass


class ConnectionUnavailableError(SoapTestUtilError):
    """Raised when no transport has been provided to send requests through."""

    pass


class StateError(SoapTestUtilError):
    """Raised when an operation is called in a state that does not allow it.

    Examples:
        - Adding a header block before an envelope was built
    """

    pass


class NoResponseError(StateError):
    """Raised when a response assertion is issued before any request was sent."""

    pass


class InvalidStateError(StateError):
    """Raised when the last request does not support the requested operation.

    Examples:
        - Decoding a structured result after a raw XML request
    """

    pass


class ParseError(SoapTestUtilError):
    """Raised when XML is not well-formed.

    Examples:
        - Unclosed tags
        - Invalid characters
        - Empty document
    """

    pass


class InvalidQueryError(SoapTestUtilError):
    """Raised when an XPath expression cannot be compiled or evaluated.

    A valid expression that selects nothing is not an error.
    """

    pass


class WsdlError(SoapTestUtilError):
    """Raised when a WSDL cannot be loaded or does not describe an operation."""

    pass


class TransportError(SoapTestUtilError):
    """Raised when the transport reports a problem of its own.

    Errors raised by the underlying HTTP client propagate unchanged and are
    not wrapped in this class.
    """

    pass


class HeadersAlreadySentError(TransportError):
    """Raised by an in-process service that set a header after output started.

    The response body is still complete, so the dispatcher treats this
    condition as recoverable.
    """

    pass


class SoapAssertionError(SoapTestUtilError, AssertionError):
    """Raised when a response assertion does not hold.

    Attributes:
        expected: Canonical form (or pattern) that was expected
        actual: Canonical form of the response that was checked
    """

    def __init__(
        self,
        message: str,
        expected: Optional[str] = None,
        actual: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class ElementNotFoundError(SoapAssertionError):
    """Raised when a CSS or XPath locator matches no element in the response."""

    pass


class ErrorCategory(Enum):
    """Error categorization for dispatch handling.

    Attributes:
        RECOVERABLE: Swallow and continue, the response is still usable
        FATAL: Propagate to the caller and abort the current step
    """

    RECOVERABLE = "RECOVERABLE"
    FATAL = "FATAL"


# Messages emitted by servers that tried to set a header once output had
# already been written. Matching on text is best effort for foreign types.
BENIGN_HEADER_MESSAGES = (
    "headers already sent",
    "headers already set",
    "cannot modify header information",
)


@dataclass
class ErrorInfo:
    """Structured error information for actionable error reporting.

    Attributes:
        category: Error category (RECOVERABLE, FATAL)
        error_type: Exception class name (e.g., "ParseError")
        message: User-friendly error message
        remediation: Actionable guidance for resolving the error
        technical_details: Optional technical details for debugging
    """

    category: ErrorCategory
    error_type: str
    message: str
    remediation: str
    technical_details: Optional[str] = None


def categorize_error(exception: BaseException) -> ErrorCategory:
    """Categorize an exception raised while dispatching a request.

    Args:
        exception: The exception to categorize

    Returns:
        ErrorCategory indicating handling strategy

    Example:
        >>> categorize_error(HeadersAlreadySentError("late header"))
        ErrorCategory.RECOVERABLE
        >>> categorize_error(ParseError("bad xml"))
        ErrorCategory.FATAL
    """
    if isinstance(exception, HeadersAlreadySentError):
        return ErrorCategory.RECOVERABLE

    if isinstance(exception, (SoapTestUtilError, requests.RequestException)):
        return ErrorCategory.FATAL

    message = str(exception).lower()
    if any(phrase in message for phrase in BENIGN_HEADER_MESSAGES):
        return ErrorCategory.RECOVERABLE

    return ErrorCategory.FATAL


def create_error_info(exception: BaseException) -> ErrorInfo:
    """Create structured error information from exception.

    Args:
        exception: Exception that occurred

    Returns:
        ErrorInfo with categorization and remediation guidance
    """
    technical_details = None
    if exception.__cause__ is not None:
        technical_details = (
            f"Caused by: {type(exception.__cause__).__name__}: {exception.__cause__}"
        )

    return ErrorInfo(
        category=categorize_error(exception),
        error_type=type(exception).__name__,
        message=str(exception),
        remediation=_generate_remediation(exception),
        technical_details=technical_details,
    )


def _generate_remediation(exception: BaseException) -> str:
    """Generate actionable remediation message for an error.

    Args:
        exception: Exception that occurred

    Returns:
        Actionable remediation message
    """
    if isinstance(exception, requests.exceptions.SSLError):
        return (
            "TLS/SSL validation failed. If using self-signed certificates, "
            "set verify_tls=false in config.json (development only)."
        )

    if isinstance(exception, requests.ConnectionError):
        return (
            "Cannot reach endpoint. Check: 1) Network connectivity, "
            "2) Endpoint URL in config.json, 3) Endpoint is running."
        )

    if isinstance(exception, requests.Timeout):
        return "Request timed out. Consider increasing transport.timeout in config.json."

    if isinstance(exception, ConfigurationError):
        return (
            "Configuration error. Check config.json for missing or invalid values. "
            "Both soap.endpoint and soap.schema are required."
        )

    if isinstance(exception, ParseError):
        return "XML is not well-formed. Check for unclosed tags or invalid characters."

    if isinstance(exception, InvalidQueryError):
        return "XPath expression is invalid. Check syntax and namespace prefixes."

    if isinstance(exception, WsdlError):
        return "Check the WSDL location and that it declares the requested operation."

    if isinstance(exception, StateError):
        return "Send a request with `send` before asserting on the response."

    return "Review the error message and the log file for complete request/response details."
