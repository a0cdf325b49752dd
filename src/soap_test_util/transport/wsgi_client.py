"""In-process transport for services running as WSGI applications.

The request never touches a socket: it is handed to the application through
Werkzeug's test client. Anything the service prints while handling the
request can be captured by the dispatcher as the response body.
"""

import logging
from typing import Mapping, Union

from flask import Flask
from werkzeug.test import Client

from soap_test_util.models.state import TransportResponse
from soap_test_util.transport.base import SoapTransport

logger = logging.getLogger(__name__)


class WsgiTransport(SoapTransport):
    """Sends SOAP requests to a Flask app or Werkzeug test client.

    Errors raised by the application propagate out of ``request`` when the
    app propagates exceptions (Flask testing mode). In that case no
    response is recorded.

    Example:
        >>> transport = WsgiTransport(create_app(responses))
        >>> transport.request("/soap", body, headers).status_code
        200
    """

    in_process = True

    def __init__(self, app_or_client: Union[Flask, Client]) -> None:
        super().__init__()
        if isinstance(app_or_client, Flask):
            self.client = app_or_client.test_client()
        elif isinstance(app_or_client, Client):
            self.client = app_or_client
        else:
            raise TypeError(
                f"WsgiTransport needs a Flask app or Werkzeug Client, "
                f"got {type(app_or_client).__name__}"
            )

    def request(
        self,
        url: str,
        body: bytes,
        headers: Mapping[str, str],
    ) -> TransportResponse:
        """Hand the request to the application and record its response."""
        self.last_response = None
        logger.debug(f"In-process POST {url} ({len(body)} bytes)")

        response = self.client.post(url, data=body, headers=dict(headers))

        self.last_response = TransportResponse(
            status_code=response.status_code,
            text=response.get_data(as_text=True),
            headers=dict(response.headers),
        )
        return self.last_response
