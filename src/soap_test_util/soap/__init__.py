"""SOAP module.

Envelope construction, WSDL codec, request dispatch and the SoapModule
assertion facade.
"""

from soap_test_util.soap.dispatcher import RequestDispatcher
from soap_test_util.soap.envelope import EnvelopeBuilder
from soap_test_util.soap.module import SoapModule
from soap_test_util.soap.wsdl import WsdlCodec

__all__ = [
    "EnvelopeBuilder",
    "RequestDispatcher",
    "SoapModule",
    "WsdlCodec",
]
