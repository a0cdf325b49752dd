"""Transport module.

Real HTTP and in-process WSGI clients used by the request dispatcher.
"""

from soap_test_util.transport.base import SoapTransport
from soap_test_util.transport.http_client import HttpTransport, TLS12Adapter
from soap_test_util.transport.wsgi_client import WsgiTransport

__all__ = [
    "SoapTransport",
    "HttpTransport",
    "TLS12Adapter",
    "WsgiTransport",
]
