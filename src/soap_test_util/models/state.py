"""Per-step request and response state.

A SoapModule owns one RequestState and one ResponseState for the duration of
a test step. Both are replaced wholesale on every send, so data derived from
a response (the parsed document) is cached on the ResponseState object and
goes away with it.
"""

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Any, Optional

from lxml import etree

from soap_test_util.xml_tools.canonicalizer import to_document


class ModuleState(Enum):
    """Lifecycle state of a SoapModule within one test step."""

    IDLE = "IDLE"
    REQUEST_SENT = "REQUEST_SENT"


class PayloadMode(Enum):
    """How the body payload of a request was supplied.

    RAW covers XML strings, bytes, lxml documents and XmlBuilder values.
    STRUCTURED covers mappings converted element by element.
    """

    RAW = "RAW"
    STRUCTURED = "STRUCTURED"


@dataclass
class TransportResponse:
    """Response recorded by a transport for the last request it sent.

    Attributes:
        status_code: HTTP status code
        text: Decoded response body
        headers: Response headers
    """

    status_code: int
    text: str
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class RequestState:
    """The last request sent in the current step.

    Attributes:
        action: SOAP operation name
        payload: Body payload as supplied by the caller
        payload_mode: RAW or STRUCTURED
        document: Envelope document that was sent
        canonical: Canonical serialization that went over the wire
        wsdl: WSDL location used to encode a structured payload, if any
    """

    action: str
    payload: Any
    payload_mode: PayloadMode
    document: etree._ElementTree
    canonical: str
    wsdl: Optional[str] = None


class ResponseState:
    """The raw response of the last request, parsed on first use.

    Example:
        >>> state = ResponseState("<Envelope><Body/></Envelope>")
        >>> state.document.getroot().tag
        'Envelope'
    """

    def __init__(self, raw_body: str, status_code: Optional[int] = None) -> None:
        self.raw_body = raw_body
        self.status_code = status_code

    @cached_property
    def document(self) -> etree._ElementTree:
        """Parsed response document.

        Raises:
            ParseError: If the response body is not well-formed XML
        """
        return to_document(self.raw_body)

    def __repr__(self) -> str:
        return f"ResponseState(status_code={self.status_code!r}, size={len(self.raw_body)})"
