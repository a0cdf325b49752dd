"""
Shared pytest configuration and fixtures.

This module provides fixtures and configuration used across all test suites
(unit and integration tests).
"""

import logging
from pathlib import Path
from typing import Mapping, Optional

import pytest
from flask import Flask

from soap_test_util.config.schema import SoapConfig
from soap_test_util.logging_audit.formatters import SecretRedactingFormatter
from soap_test_util.mock_server.app import create_app
from soap_test_util.models.state import TransportResponse
from soap_test_util.transport.base import SoapTransport

USERS_NS = "http://example.com/users"

SIMPLE_RESPONSE = "<Envelope><Body><result>1</result></Body></Envelope>"

USER_RESPONSE = """<?xml version="1.0" encoding="UTF-8"?>
<SOAP-ENV:Envelope xmlns:SOAP-ENV="http://schemas.xmlsoap.org/soap/envelope/">
  <SOAP-ENV:Header>
    <AuthHeader><user>a</user></AuthHeader>
    <SessionHeader><id>42</id></SessionHeader>
  </SOAP-ENV:Header>
  <SOAP-ENV:Body>
    <ns:UpdateUserResponse xmlns:ns="http://example.com/users">
      <user id="7" status="active">
        <id>1</id>
        <name>bob</name>
        <roles><role>admin</role><role>dev</role></roles>
      </user>
      <result>1</result>
    </ns:UpdateUserResponse>
  </SOAP-ENV:Body>
</SOAP-ENV:Envelope>"""


class RecordingTransport(SoapTransport):
    """Transport double returning a fixed response and recording requests."""

    def __init__(
        self,
        text: str = SIMPLE_RESPONSE,
        status_code: int = 200,
        in_process: bool = False,
        stdout: str = "",
        error: Optional[Exception] = None,
    ) -> None:
        super().__init__()
        self.text = text
        self.status_code = status_code
        self.in_process = in_process
        self.stdout = stdout
        self.error = error
        self.requests: list[dict] = []

    def request(self, url: str, body: bytes, headers: Mapping[str, str]) -> TransportResponse:
        self.last_response = None
        self.requests.append({"url": url, "body": body, "headers": dict(headers)})
        if self.stdout:
            print(self.stdout, end="")
        if self.error is not None:
            raise self.error
        self.last_response = TransportResponse(self.status_code, self.text)
        return self.last_response


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Remove handlers installed by configure_logging during a test."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, SecretRedactingFormatter):
            root.removeHandler(handler)
            handler.close()


@pytest.fixture
def project_root() -> Path:
    """
    Return the project root directory.

    Returns:
        Path: Absolute path to the project root directory.
    """
    return Path(__file__).parent.parent


@pytest.fixture
def fixtures_dir() -> Path:
    """
    Return the test fixtures directory path.

    Returns:
        Path: Absolute path to the test fixtures directory.
    """
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def soap_config() -> SoapConfig:
    """SOAP configuration pointing at a local endpoint."""
    return SoapConfig(endpoint="http://localhost:8080/soap", schema=USERS_NS)


@pytest.fixture
def recording_transport() -> RecordingTransport:
    """Out-of-process transport double answering SIMPLE_RESPONSE."""
    return RecordingTransport()


@pytest.fixture
def user_transport() -> RecordingTransport:
    """Out-of-process transport double answering USER_RESPONSE."""
    return RecordingTransport(text=USER_RESPONSE)


@pytest.fixture
def stub_app() -> Flask:
    """Stub SOAP service answering UpdateUser with USER_RESPONSE."""
    app = create_app({"UpdateUser": USER_RESPONSE, "Ping": SIMPLE_RESPONSE})
    app.testing = True
    return app


@pytest.fixture
def transport_factory() -> type[RecordingTransport]:
    """The RecordingTransport class, for tests needing custom behaviour."""
    return RecordingTransport


@pytest.fixture
def simple_response() -> str:
    """Minimal response envelope without namespaces."""
    return SIMPLE_RESPONSE


@pytest.fixture
def user_response() -> str:
    """Namespaced UpdateUser response with two header blocks."""
    return USER_RESPONSE


@pytest.fixture
def users_ns() -> str:
    """Target namespace of the example user service."""
    return USERS_NS
