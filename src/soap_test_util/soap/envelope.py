"""SOAP envelope construction and header/body mutation.

One envelope lives for a whole test step. Header blocks accumulate on it
until the step ends; the Body is replaced on every send.
"""

import copy
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from lxml import etree

from soap_test_util.config.defaults import SOAP_ENCODING_NS, XSD_NS, XSI_NS
from soap_test_util.utils.exceptions import StateError
from soap_test_util.xml_tools.builder import structured_to_xml

logger = logging.getLogger(__name__)


class EnvelopeBuilder:
    """Build and mutate SOAP envelopes.

    The envelope root, Header and Body are all qualified by the envelope
    namespace passed to ``build_envelope``; the operation element in Body
    is qualified by the target namespace and uses the ``ns`` prefix.

    Example:
        >>> builder = EnvelopeBuilder()
        >>> envelope = builder.build_envelope("http://schemas.xmlsoap.org/soap/envelope/")
        >>> builder.add_header_block(envelope, "AuthHeader", {"user": "davert"})
        >>> builder.set_body(envelope, "http://example.com/users", "UpdateUser", [])
    """

    def build_envelope(self, namespace_uri: str) -> etree._ElementTree:
        """Create an envelope with empty Header and Body.

        Args:
            namespace_uri: Envelope namespace URI (``schema_url``)

        Returns:
            New envelope document
        """
        envelope = etree.Element(
            f"{{{namespace_uri}}}Envelope",
            nsmap={
                'SOAP-ENV': namespace_uri,
                'SOAP-ENC': SOAP_ENCODING_NS,
                'xsi': XSI_NS,
                'xsd': XSD_NS,
            }
        )
        etree.SubElement(envelope, f"{{{namespace_uri}}}Header")
        etree.SubElement(envelope, f"{{{namespace_uri}}}Body")

        logger.debug(f"Built empty SOAP envelope in namespace {namespace_uri}")
        return etree.ElementTree(envelope)

    def add_header_block(
        self,
        envelope: Optional[etree._ElementTree],
        name: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> etree._Element:
        """Append a header block built from nested parameters.

        Args:
            envelope: Envelope created by ``build_envelope``
            name: Element name of the header block
            params: Mapping converted into child elements; nested mappings
                recurse and lists produce repeated elements

        Returns:
            The appended header block element

        Raises:
            StateError: If there is no envelope or it has no Header

        Example:
            >>> builder.add_header_block(envelope, "AuthHeader",
            ...                          {"username": "davert", "password": "123"})
        """
        header = self._find_part(envelope, "Header")

        block = etree.Element(name)
        structured_to_xml(block, params or {})
        header.append(block)

        logger.debug(f"Added header block <{name}> ({len(header)} block(s) in Header)")
        return block

    def set_body(
        self,
        envelope: Optional[etree._ElementTree],
        target_namespace: str,
        action: str,
        children: Iterable[etree._Element],
    ) -> etree._Element:
        """Replace Body content with the operation element for ``action``.

        Args:
            envelope: Envelope created by ``build_envelope``
            target_namespace: Namespace URI of the operation element
            action: Operation name
            children: Payload elements, deep-copied under the operation element

        Returns:
            The operation element

        Raises:
            StateError: If there is no envelope or it has no Body
        """
        body = self._find_part(envelope, "Body")
        for child in list(body):
            body.remove(child)

        operation = etree.SubElement(
            body,
            f"{{{target_namespace}}}{action}",
            nsmap={'ns': target_namespace}
        )
        for child in children:
            operation.append(copy.deepcopy(child))

        logger.debug(f"Body set to <ns:{action}> with {len(operation)} child element(s)")
        return operation

    def copy_header_blocks(
        self,
        source: etree._ElementTree,
        target: etree._ElementTree,
    ) -> None:
        """Copy header blocks of ``source`` into the Header of ``target``.

        A Header is created as first child of ``target`` when it has none
        and there is something to copy.

        Raises:
            StateError: If ``source`` has no Header
        """
        blocks = [
            block for block in self._find_part(source, "Header")
            if isinstance(block.tag, str)
        ]
        if not blocks:
            return

        root = target.getroot()
        namespace = etree.QName(root).namespace
        header = root.find(f"{{{namespace}}}Header")
        if header is None:
            header = etree.Element(f"{{{namespace}}}Header")
            root.insert(0, header)

        for block in blocks:
            header.append(copy.deepcopy(block))
        logger.debug(f"Copied {len(blocks)} header block(s) into envelope")

    def _find_part(
        self,
        envelope: Optional[etree._ElementTree],
        part: str,
    ) -> etree._Element:
        if envelope is None:
            raise StateError(
                f"No SOAP envelope has been built. "
                f"Start a step before adding to the {part}."
            )
        root = envelope.getroot()
        namespace = etree.QName(root).namespace
        element = root.find(f"{{{namespace}}}{part}")
        if element is None:
            raise StateError(f"SOAP envelope has no {part} element")
        return element
