"""Transport interface shared by the HTTP and in-process clients."""

from typing import Mapping, Optional

from soap_test_util.models.state import TransportResponse


class SoapTransport:
    """Sends one request body and records the response.

    Subclasses implement ``request``. A transport that serves the request
    inside the test process sets ``in_process`` so the dispatcher can
    capture what the service writes to standard output.

    Attributes:
        in_process: True when no socket is involved
        last_response: Response recorded for the most recent request, or
            None when the most recent request did not complete
    """

    in_process: bool = False

    def __init__(self) -> None:
        self.last_response: Optional[TransportResponse] = None

    def request(
        self,
        url: str,
        body: bytes,
        headers: Mapping[str, str],
    ) -> TransportResponse:
        """POST ``body`` to ``url`` and record the response."""
        raise NotImplementedError

    def close(self) -> None:
        """Release resources held by the transport."""
