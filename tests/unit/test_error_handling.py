"""Unit tests for error handling functionality.

Tests the exception hierarchy, error categorization used by the dispatcher
and remediation guidance shown by the CLI.
"""

import pytest
from requests.exceptions import ConnectionError, SSLError, Timeout

from soap_test_util.utils.exceptions import (
    ConfigurationError,
    ElementNotFoundError,
    ErrorCategory,
    ErrorInfo,
    HeadersAlreadySentError,
    InvalidQueryError,
    InvalidStateError,
    NoResponseError,
    ParseError,
    SoapAssertionError,
    SoapTestUtilError,
    StateError,
    TransportError,
    WsdlError,
    _generate_remediation,
    categorize_error,
    create_error_info,
)


class TestExceptionHierarchy:
    """Test exception relationships."""

    @pytest.mark.parametrize(
        "error_class",
        [
            ConfigurationError, StateError, ParseError, InvalidQueryError,
            WsdlError, TransportError, SoapAssertionError,
        ],
    )
    def test_all_errors_share_base(self, error_class):
        """Test every custom error can be caught as SoapTestUtilError."""
        assert issubclass(error_class, SoapTestUtilError)

    def test_assertion_errors_are_assertion_errors(self):
        """Test test runners report failed assertions as failures."""
        assert issubclass(SoapAssertionError, AssertionError)
        assert issubclass(ElementNotFoundError, SoapAssertionError)

    def test_state_errors(self):
        """Test the state error family."""
        assert issubclass(NoResponseError, StateError)
        assert issubclass(InvalidStateError, StateError)
        assert issubclass(HeadersAlreadySentError, TransportError)

    def test_assertion_error_carries_forms(self):
        """Test expected and actual are kept on the exception."""
        error = SoapAssertionError("mismatch", expected="<a/>", actual="<b/>")

        assert str(error) == "mismatch"
        assert error.expected == "<a/>"
        assert error.actual == "<b/>"


class TestErrorCategorization:
    """Test error categorization functionality."""

    def test_headers_already_sent_is_recoverable(self):
        """Test the late header condition is recoverable."""
        assert categorize_error(HeadersAlreadySentError("late")) == ErrorCategory.RECOVERABLE

    @pytest.mark.parametrize(
        "message",
        [
            "Cannot modify header information - headers already sent by output",
            "Headers already set",
            "HEADERS ALREADY SENT",
        ],
    )
    def test_foreign_header_messages_are_recoverable(self, message):
        """Test foreign exception types are matched by message."""
        assert categorize_error(RuntimeError(message)) == ErrorCategory.RECOVERABLE

    @pytest.mark.parametrize(
        "error",
        [
            ConnectionError("Network unreachable"),
            Timeout("Request timed out"),
            ParseError("bad xml"),
            ValueError("database down"),
        ],
    )
    def test_other_errors_are_fatal(self, error):
        """Test everything else propagates."""
        assert categorize_error(error) == ErrorCategory.FATAL

    def test_own_errors_never_matched_by_message(self):
        """Test a library error mentioning headers stays fatal."""
        error = ParseError("Malformed XML: headers already sent")

        assert categorize_error(error) == ErrorCategory.FATAL


class TestErrorInfo:
    """Test structured error information."""

    def test_create_error_info_connection_error(self):
        """Test error info for an unreachable endpoint."""
        # Arrange
        error = ConnectionError("Network unreachable")

        # Act
        info = create_error_info(error)

        # Assert
        assert isinstance(info, ErrorInfo)
        assert info.category == ErrorCategory.FATAL
        assert info.error_type == "ConnectionError"
        assert info.message == "Network unreachable"
        assert "Cannot reach endpoint" in info.remediation
        assert info.technical_details is None

    def test_create_error_info_with_cause(self):
        """Test the cause is reported as technical details."""
        try:
            try:
                raise KeyError("soap")
            except KeyError as e:
                raise ConfigurationError("missing section") from e
        except ConfigurationError as error:
            info = create_error_info(error)

        assert info.technical_details == "Caused by: KeyError: 'soap'"
        assert "soap.endpoint and soap.schema" in info.remediation

    @pytest.mark.parametrize(
        "error,expected",
        [
            (SSLError("Certificate verification failed"), "verify_tls=false"),
            (Timeout("Request timed out"), "transport.timeout"),
            (ParseError("bad"), "not well-formed"),
            (InvalidQueryError("bad"), "XPath expression is invalid"),
            (WsdlError("bad"), "WSDL location"),
            (NoResponseError("none"), "Send a request"),
            (RuntimeError("other"), "Review the error message"),
        ],
    )
    def test_generate_remediation(self, error, expected):
        """Test each error kind gets its own guidance."""
        assert expected in _generate_remediation(error)
