"""Request dispatch through an in-process or an HTTP transport.

The in-process strategy captures what the service writes to standard output
while it handles the request, for services that print their response
instead of returning it. The HTTP strategy returns the response body as
received. The strategy is chosen per dispatch from the transport kind and
the ``framework_collect_buffer`` option.
"""

import contextlib
import io
import logging
import time
from typing import Optional

from soap_test_util.config.schema import SoapConfig
from soap_test_util.logging_audit.audit import log_audit_event
from soap_test_util.models.state import ResponseState
from soap_test_util.transport.base import SoapTransport
from soap_test_util.utils.exceptions import (
    ConnectionUnavailableError,
    ErrorCategory,
    categorize_error,
)

logger = logging.getLogger(__name__)

CONTENT_TYPE = "text/xml; charset=UTF-8"


class RequestDispatcher:
    """Sends canonical request bodies through one transport.

    Attributes:
        transport: Transport used for every dispatch
    """

    def __init__(self, transport: Optional[SoapTransport]) -> None:
        """Initialize the dispatcher.

        Args:
            transport: Transport to send through

        Raises:
            ConnectionUnavailableError: If no transport is given
        """
        if transport is None:
            raise ConnectionUnavailableError(
                "No transport available to send SOAP requests. "
                "Pass an HttpTransport or WsgiTransport to the module."
            )
        self.transport = transport

    def uses_in_process(self, config: SoapConfig) -> bool:
        """Whether the next dispatch captures in-process output."""
        return self.transport.in_process and config.framework_collect_buffer

    def build_headers(self, config: SoapConfig, action: str, body: bytes) -> dict[str, str]:
        """HTTP headers for a SOAP request.

        An explicitly configured SOAPAction, including an empty one, wins
        over the operation name.
        """
        soap_action = config.soap_action if config.soap_action is not None else action
        return {
            "Content-Type": CONTENT_TYPE,
            "Content-Length": str(len(body)),
            "SOAPAction": soap_action,
        }

    def dispatch(self, config: SoapConfig, action: str, request: str) -> ResponseState:
        """Send a request and return its raw response.

        Args:
            config: Active SOAP configuration
            action: Operation name
            request: Canonical request envelope

        Returns:
            ResponseState holding the raw response body and status code

        Raises:
            requests.RequestException: Propagated unchanged from HTTP sends
            Exception: Anything a service raises in-process, except the
                recoverable header timing condition
        """
        body = request.encode("utf-8")
        headers = self.build_headers(config, action, body)
        in_process = self.uses_in_process(config)
        strategy = "in-process" if in_process else "http"
        start_time = time.time()

        if in_process:
            raw_body = self._dispatch_in_process(config.endpoint, body, headers)
        else:
            raw_body = self._dispatch_http(config.endpoint, body, headers)

        last = self.transport.last_response
        status_code = last.status_code if last is not None else None

        log_audit_event("REQUEST_SENT", {
            "status": "success",
            "action": action,
            "endpoint": config.endpoint,
            "strategy": strategy,
            "duration": time.time() - start_time,
            "status_code": status_code,
        })
        return ResponseState(raw_body, status_code)

    def _dispatch_http(self, url: str, body: bytes, headers: dict[str, str]) -> str:
        response = self.transport.request(url, body, headers)
        return response.text

    def _dispatch_in_process(self, url: str, body: bytes, headers: dict[str, str]) -> str:
        buffer = io.StringIO()
        try:
            with contextlib.redirect_stdout(buffer):
                self.transport.request(url, body, headers)
        except Exception as e:
            if categorize_error(e) != ErrorCategory.RECOVERABLE:
                raise
            logger.warning(f"Ignoring header timing error from in-process service: {e}")

        output = buffer.getvalue()
        if output:
            logger.debug(f"Captured {len(output)} characters of service output")
            return output

        last = self.transport.last_response
        if last is None:
            logger.warning("In-process service produced no output and no response")
            return ""
        return last.text
