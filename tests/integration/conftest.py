"""Integration test fixtures.

Provides a stub SOAP service served over a real socket, for tests that
exercise the HTTP transport end to end.
"""

import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass

import pytest
from flask import Flask
from werkzeug.serving import BaseWSGIServer, make_server

logger = logging.getLogger(__name__)


@dataclass
class LiveServer:
    """Stub service running on localhost."""

    app: Flask
    server: BaseWSGIServer

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.server.server_port}"


@pytest.fixture
def live_server(stub_app: Flask) -> Iterator[LiveServer]:
    """Serve the stub SOAP service on a free port for the test duration."""
    server = make_server("127.0.0.1", 0, stub_app)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    logger.debug(f"Stub server listening on port {server.server_port}")

    yield LiveServer(stub_app, server)

    server.shutdown()
    thread.join(timeout=5)
