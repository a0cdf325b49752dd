"""SOAP test module: request construction and response assertions.

SoapModule owns the state of one test step. A step starts IDLE with a fresh
envelope; ``send_request`` moves it to REQUEST_SENT, after which the
response can be asserted on and grabbed from. ``before_step`` and
``reconfigure`` return the module to IDLE and discard all request and
response state.

Example:
    >>> module = SoapModule(soap_config, transport=HttpTransport())
    >>> module.add_header_block("AuthHeader", {"username": "davert", "password": "123"})
    >>> module.send_request("UpdateUser", {"id": 1, "name": "bob"})
    >>> module.assert_response_contains_structure("<result/>")
    >>> module.grab_text_from("result")
    '1'
"""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

from lxml import etree

from soap_test_util.config.manager import merge_soap_config
from soap_test_util.config.schema import SoapConfig, TransportConfig
from soap_test_util.logging_audit.audit import log_audit_event, log_transaction
from soap_test_util.models.state import (
    ModuleState,
    PayloadMode,
    RequestState,
    ResponseState,
)
from soap_test_util.soap.dispatcher import RequestDispatcher
from soap_test_util.soap.envelope import EnvelopeBuilder
from soap_test_util.soap.wsdl import WsdlCodec
from soap_test_util.transport.base import SoapTransport
from soap_test_util.utils.exceptions import (
    ElementNotFoundError,
    InvalidStateError,
    NoResponseError,
    ParseError,
    SoapAssertionError,
)
from soap_test_util.xml_tools.builder import XmlBuilder, structured_to_xml, xml_to_structured
from soap_test_util.xml_tools.canonicalizer import (
    XmlInput,
    canonical_form,
    canonicalize,
    parse_fragment,
    to_document,
)
from soap_test_util.xml_tools.structure import StructureMatcher
from soap_test_util.xml_tools.xpath import evaluate, select_element

logger = logging.getLogger(__name__)


class SoapModule:
    """Builds SOAP requests, sends them and asserts on the responses.

    Attributes:
        config: Active SOAP configuration
        transport: Transport requests are sent through
        state: IDLE until a request is sent in the current step
        envelope: Envelope collecting header blocks for the current step
        last_request: Last request sent in the current step
        last_response: Response to the last request in the current step
    """

    def __init__(
        self,
        config: SoapConfig,
        transport: Optional[SoapTransport] = None,
        transport_config: Optional[TransportConfig] = None,
        wsdl_codec: Optional[WsdlCodec] = None,
    ) -> None:
        """Initialize the module and start with an empty step.

        Args:
            config: SOAP configuration (endpoint, target namespace, ...)
            transport: Transport to send through. May also be supplied
                later with ``before_step``.
            transport_config: Used by the WSDL codec to fetch WSDLs
            wsdl_codec: Codec for WSDL mode, mainly for tests
        """
        self.config = config
        self.transport = transport
        self.envelope_builder = EnvelopeBuilder()
        self.structure_matcher = StructureMatcher()
        self.wsdl_codec = wsdl_codec or WsdlCodec(transport_config)
        self.dispatcher: Optional[RequestDispatcher] = (
            RequestDispatcher(transport) if transport is not None else None
        )
        self._reset()

    # Lifecycle

    def before_step(self, transport: Optional[SoapTransport] = None) -> None:
        """Start a new test step.

        Args:
            transport: Transport for this step; keeps the current one if None

        Raises:
            ConnectionUnavailableError: If no transport is available
        """
        if transport is not None:
            self.transport = transport
        self.dispatcher = RequestDispatcher(self.transport)
        self._reset()

    def reconfigure(self, partial: Mapping[str, Any]) -> None:
        """Replace SOAP options at runtime and start over with a fresh envelope.

        Unknown option names are logged and ignored.

        Raises:
            ConfigurationError: If a merged value is invalid
        """
        self.config = merge_soap_config(self.config, partial)
        logger.info(f"SOAP configuration replaced: endpoint={self.config.endpoint}")
        self._reset()

    def _reset(self) -> None:
        self.envelope = self.envelope_builder.build_envelope(self.config.schema_url)
        self.last_request: Optional[RequestState] = None
        self.last_response: Optional[ResponseState] = None
        self.state = ModuleState.IDLE

    # Request construction

    def add_header_block(self, name: str, params: Optional[Mapping[str, Any]] = None) -> None:
        """Add a header block to every request sent in this step.

        Example:
            >>> module.add_header_block("AuthHeader", {"username": "davert", "password": "123"})
        """
        self.envelope_builder.add_header_block(self.envelope, name, params)

    def send_request(
        self,
        action: str,
        body: Union[XmlInput, Mapping[str, Any]] = "",
        wsdl: Optional[str] = None,
    ) -> None:
        """Build the envelope for ``action`` and send it.

        A mapping body is converted element by element (structured mode);
        with ``wsdl`` it is encoded by the WSDL instead. Anything else is
        treated as raw XML placed inside the operation element.

        Args:
            action: Operation name, used for the body element and SOAPAction
            body: Payload of the operation element
            wsdl: WSDL location used to encode a structured payload

        Raises:
            ConnectionUnavailableError: If no transport is available
            ParseError: If a raw XML payload is malformed
            WsdlError: If the WSDL cannot encode the payload
        """
        if self.dispatcher is None:
            self.dispatcher = RequestDispatcher(self.transport)

        self.last_request = None
        self.last_response = None
        self.state = ModuleState.IDLE

        if isinstance(body, Mapping):
            payload_mode = PayloadMode.STRUCTURED
            document = self._build_structured(action, body, wsdl)
        else:
            payload_mode = PayloadMode.RAW
            self.envelope_builder.set_body(
                self.envelope, self.config.target_namespace, action, self._raw_children(body)
            )
            document = self.envelope

        canonical = canonical_form(document)
        self.last_request = RequestState(
            action=action,
            payload=body,
            payload_mode=payload_mode,
            document=document,
            canonical=canonical,
            wsdl=wsdl,
        )

        logger.info(f"Sending SOAP request {action} to {self.config.endpoint}")
        try:
            response = self.dispatcher.dispatch(self.config, action, canonical)
        except Exception as e:
            log_transaction(action, canonical, None, status="failure")
            logger.error(f"SOAP request {action} failed: {e}")
            raise

        log_transaction(action, canonical, response.raw_body)
        self.last_response = response
        self.state = ModuleState.REQUEST_SENT

    def _build_structured(
        self,
        action: str,
        body: Mapping[str, Any],
        wsdl: Optional[str],
    ) -> etree._ElementTree:
        if wsdl is not None:
            document = self.wsdl_codec.encode(wsdl, action, body)
            self.envelope_builder.copy_header_blocks(self.envelope, document)
            return document

        wrapper = etree.Element("payload")
        structured_to_xml(wrapper, body)
        self.envelope_builder.set_body(
            self.envelope, self.config.target_namespace, action, list(wrapper)
        )
        return self.envelope

    def _raw_children(self, body: XmlInput) -> list[etree._Element]:
        if isinstance(body, (str, bytes)):
            if not body.strip():
                return []
            return parse_fragment(body)
        if isinstance(body, etree._ElementTree):
            return [body.getroot()]
        if isinstance(body, etree._Element):
            return [body]
        if isinstance(body, XmlBuilder):
            return [to_document(body).getroot()]
        raise TypeError(
            f"Unsupported body payload type: {type(body).__name__}. "
            f"Expected XML string, lxml document/element, XmlBuilder or mapping."
        )

    # Response access

    def _require_response(self) -> ResponseState:
        if self.state != ModuleState.REQUEST_SENT or self.last_response is None:
            raise NoResponseError(
                "No SOAP response available. Call send_request() in this step first."
            )
        return self.last_response

    def _response_document(self) -> etree._ElementTree:
        return self._require_response().document

    def _response_canonical(self) -> str:
        return canonical_form(self._response_document())

    def _fail(
        self,
        message: str,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
    ) -> None:
        request = self.last_request.canonical if self.last_request else ""
        response = self.last_response.raw_body if self.last_response else ""
        logger.error(
            f"Assertion failed: {message}\n"
            f"Request:\n{request}\n"
            f"Response:\n{response}"
        )
        log_audit_event("ASSERTION_FAILED", {
            "status": "failure",
            "action": self.last_request.action if self.last_request else None,
            "error_message": message,
        })
        raise SoapAssertionError(message, expected=expected, actual=actual)

    # Equality and inclusion

    def assert_response_equals(self, xml: XmlInput) -> None:
        """Assert the response is equal to ``xml`` in canonical form.

        Raises:
            SoapAssertionError: If the canonical forms differ
        """
        actual = self._response_canonical()
        expected = canonicalize(xml)
        if actual != expected:
            self._fail("SOAP response does not equal the expected XML", expected, actual)

    def assert_response_not_equals(self, xml: XmlInput) -> None:
        """Assert the response differs from ``xml`` in canonical form."""
        actual = self._response_canonical()
        expected = canonicalize(xml)
        if actual == expected:
            self._fail("SOAP response equals the XML it should differ from", expected, actual)

    def _includes(self, xml: XmlInput) -> tuple[bool, str, str]:
        # A subtree in context inherits declarations from its ancestors, so it
        # is also compared with the canonical form it has on its own.
        document = self._response_document()
        fragment = to_document(xml)
        expected = canonical_form(fragment)
        actual = canonical_form(document)
        if expected in actual:
            return True, expected, actual
        found = any(
            canonical_form(element) == expected
            for element in document.iter(fragment.getroot().tag)
        )
        return found, expected, actual

    def assert_response_includes(self, xml: XmlInput) -> None:
        """Assert the canonical form of ``xml`` is a substring of the response's.

        A namespaced subtree copied out of the response is included even when
        its namespace is declared on an ancestor.

        Example:
            >>> module.assert_response_includes("<result>1</result>")
        """
        found, expected, actual = self._includes(xml)
        if not found:
            self._fail("SOAP response does not include the expected XML", expected, actual)

    def assert_response_not_includes(self, xml: XmlInput) -> None:
        found, expected, actual = self._includes(xml)
        if found:
            self._fail("SOAP response includes XML it should not contain", expected, actual)

    # Structure

    def assert_response_contains_structure(self, xml: XmlInput) -> None:
        """Assert the element shape of ``xml`` occurs somewhere in the response.

        Only element names and nesting are compared.

        Example:
            >>> module.assert_response_contains_structure("<user><id/><name/></user>")
        """
        pattern = to_document(xml)
        document = self._response_document()
        if not self.structure_matcher.matches(pattern, document):
            self._fail(
                "SOAP response does not contain the expected structure",
                canonical_form(pattern),
                canonical_form(document),
            )

    def assert_response_not_contains_structure(self, xml: XmlInput) -> None:
        pattern = to_document(xml)
        document = self._response_document()
        if self.structure_matcher.matches(pattern, document):
            self._fail(
                "SOAP response contains a structure it should not contain",
                canonical_form(pattern),
                canonical_form(document),
            )

    # XPath

    def assert_response_contains_xpath(
        self,
        expression: str,
        namespaces: Optional[Mapping[str, str]] = None,
        message: str = "",
    ) -> None:
        """Assert an XPath expression selects at least one node.

        Args:
            expression: XPath 1.0 expression
            namespaces: Prefix to URI mapping used by the expression
            message: Failure message replacing the default one

        Raises:
            InvalidQueryError: If the expression is not a valid node query
            SoapAssertionError: If nothing is selected
        """
        nodes = evaluate(expression, self._response_document(), namespaces)
        if not nodes:
            self._fail(
                message or f"XPath {expression} not found in SOAP response",
                expected=expression,
                actual=self._response_canonical(),
            )

    def assert_response_not_contains_xpath(
        self,
        expression: str,
        namespaces: Optional[Mapping[str, str]] = None,
        message: str = "",
    ) -> None:
        nodes = evaluate(expression, self._response_document(), namespaces)
        if nodes:
            self._fail(
                message or f"XPath {expression} found {len(nodes)} node(s) in SOAP response",
                expected=expression,
                actual=self._response_canonical(),
            )

    # Status and schema

    def assert_response_code_is(self, code: int) -> None:
        """Assert the HTTP status code of the last response.

        Does not parse the response body, so it works for non-XML replies.
        """
        response = self._require_response()
        if response.status_code != int(code):
            self._fail(
                f"SOAP response code {response.status_code} does not match expected {code}",
                expected=str(code),
                actual=str(response.status_code),
            )

    def assert_response_is_valid_on_schema(self, xsd: Union[str, Path, etree.XMLSchema]) -> None:
        """Validate the response document against an XML Schema.

        Args:
            xsd: Compiled schema, path or URL of an XSD, or XSD text

        Raises:
            ParseError: If the schema itself cannot be loaded
            SoapAssertionError: If the response is not valid
        """
        schema = _load_schema(xsd)
        document = self._response_document()
        if not schema.validate(document):
            errors = "; ".join(
                f"line {error.line}: {error.message}" for error in schema.error_log
            )
            self._fail(
                f"SOAP response is not valid on schema: {errors}",
                actual=self._response_canonical(),
            )

    # Grabbers

    def grab_text_from(self, selector: str) -> str:
        """Text content of the first element matching a CSS selector or XPath.

        Raises:
            ElementNotFoundError: If nothing matches
        """
        element = select_element(self._response_document(), selector)
        return "".join(element.itertext())

    def grab_attribute_from(self, selector: str, attribute: str) -> str:
        """Attribute value of the first element matching a CSS selector or XPath.

        Raises:
            ElementNotFoundError: If nothing matches or the attribute is missing
        """
        element = select_element(self._response_document(), selector)
        value = element.get(attribute)
        if value is None:
            raise ElementNotFoundError(
                f"Attribute {attribute!r} not found in element matched by {selector!r}",
                expected=attribute,
            )
        return value

    def grab_last_request(self) -> str:
        """Canonical form of the last request envelope."""
        self._require_response()
        return self.last_request.canonical

    def grab_last_response(self) -> str:
        """Raw body of the last response."""
        return self._require_response().raw_body

    def grab_decoded_result(self) -> Any:
        """Decode the response into plain Python values.

        Only available after a request sent with a mapping payload. With a
        WSDL the reply is decoded by its output message; without one the
        first Body child is converted back into the structured shape.

        Raises:
            InvalidStateError: If the last payload was raw XML or the
                response has no Body content
            WsdlError: If the WSDL cannot decode the reply
        """
        document = self._response_document()
        request = self.last_request
        if request.payload_mode != PayloadMode.STRUCTURED:
            raise InvalidStateError(
                "Decoded result is only available after sending a structured "
                "(mapping) payload. The last request used raw XML."
            )

        if request.wsdl is not None:
            return self.wsdl_codec.decode(request.wsdl, request.action, document)

        bodies = document.xpath("/*/*[local-name()='Body']")
        content = [child for child in bodies[0] if isinstance(child.tag, str)] if bodies else []
        if not content:
            raise InvalidStateError("SOAP response has no Body content to decode")
        return xml_to_structured(content[0])


def _load_schema(xsd: Union[str, Path, etree.XMLSchema]) -> etree.XMLSchema:
    if isinstance(xsd, etree.XMLSchema):
        return xsd
    try:
        if isinstance(xsd, str) and xsd.lstrip().startswith("<"):
            schema_doc = etree.ElementTree(etree.fromstring(xsd.encode("utf-8")))
        else:
            schema_doc = etree.parse(str(xsd))
        return etree.XMLSchema(schema_doc)
    except (etree.XMLSyntaxError, etree.XMLSchemaParseError, OSError) as e:
        raise ParseError(f"Cannot load XML schema {xsd}: {e}") from e
