"""HTTP transport for SOAP requests over a real socket.

Sends exactly one POST per request. Nothing is retried: failures raised by
``requests`` (connection refused, timeout, TLS validation) propagate to the
caller unchanged. HTTP error statuses are not raised either, since a SOAP
fault normally arrives with status 500 and is still a response to assert on.
"""

import logging
import ssl
from typing import Mapping, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.ssl_ import create_urllib3_context

from soap_test_util.config.schema import TransportConfig
from soap_test_util.models.state import TransportResponse
from soap_test_util.transport.base import SoapTransport

logger = logging.getLogger(__name__)


class TLS12Adapter(HTTPAdapter):
    """Force TLS 1.2+ for HTTPS connections.

    Example:
        >>> session = requests.Session()
        >>> session.mount('https://', TLS12Adapter())
    """

    def init_poolmanager(self, *args, **kwargs):
        context = create_urllib3_context()
        context.minimum_version = ssl.TLSVersion.TLSv1_2
        kwargs['ssl_context'] = context
        return super().init_poolmanager(*args, **kwargs)


def _decode_body(response: requests.Response) -> str:
    """Decode a response body, assuming UTF-8 when no charset is declared.

    requests falls back to ISO-8859-1 for ``text/*`` without a charset,
    which garbles UTF-8 SOAP responses.
    """
    content_type = response.headers.get("Content-Type", "")
    encoding = response.encoding if "charset" in content_type.lower() else "utf-8"
    return response.content.decode(encoding or "utf-8", errors="replace")


class HttpTransport(SoapTransport):
    """Sends SOAP requests with a ``requests`` session.

    Attributes:
        config: Transport configuration (TLS verification, timeout)
        session: Session with TLS 1.2+ enforced for HTTPS

    Example:
        >>> transport = HttpTransport(TransportConfig(timeout=10))
        >>> response = transport.request(url, body, headers)
        >>> response.status_code
        200
    """

    in_process = False

    def __init__(
        self,
        config: Optional[TransportConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the HTTP transport.

        Args:
            config: Transport configuration. Uses defaults if not provided.
            session: Preconfigured session, mainly for tests
        """
        super().__init__()
        self.config = config or TransportConfig()

        if session is None:
            session = requests.Session()
            session.mount('https://', TLS12Adapter())
        self.session = session
        self.session.verify = self.config.verify_tls

        if not self.config.verify_tls:
            logger.warning(
                "TLS certificate verification is DISABLED. "
                "This should only be used for development with self-signed certificates."
            )

        logger.debug(
            f"HTTP transport initialized: timeout={self.config.timeout}s, "
            f"verify_tls={self.config.verify_tls}"
        )

    def request(
        self,
        url: str,
        body: bytes,
        headers: Mapping[str, str],
    ) -> TransportResponse:
        """POST the request body and record the response.

        Raises:
            requests.ConnectionError: If the endpoint is unreachable
            requests.Timeout: If the request exceeds the configured timeout
            requests.exceptions.SSLError: If TLS validation fails
        """
        self.last_response = None
        logger.debug(f"POST {url} ({len(body)} bytes)")

        response = self.session.post(
            url,
            data=body,
            headers=dict(headers),
            timeout=self.config.timeout,
        )

        self.last_response = TransportResponse(
            status_code=response.status_code,
            text=_decode_body(response),
            headers=dict(response.headers),
        )
        logger.debug(f"HTTP {response.status_code} from {url}")
        return self.last_response

    def close(self) -> None:
        self.session.close()
