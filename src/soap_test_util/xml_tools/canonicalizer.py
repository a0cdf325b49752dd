"""Canonical XML form used by every equality and inclusion check.

Input can be an XML string or bytes, an lxml document or element, an
XmlBuilder, or a structured mapping with a single root key. Whatever the
input, comparison always happens on the C14N 2.0 serialization produced by
``canonical_form``: attributes are sorted, whitespace-only text is dropped
and every namespace gets a prefix derived from its URI alone, so a subtree
serializes the same way on its own and inside a larger document. Elements
without a namespace stay unprefixed.
"""

import copy
import hashlib
import logging
from collections.abc import Mapping
from typing import Optional, Union

from lxml import etree

from soap_test_util.utils.exceptions import ParseError
from soap_test_util.xml_tools.builder import XmlBuilder, structured_to_element

logger = logging.getLogger(__name__)

XmlInput = Union[str, bytes, etree._ElementTree, etree._Element, XmlBuilder, Mapping]

# Wrapper used to parse fragments with more than one top-level element
_FRAGMENT_WRAPPER = "soap-test-util-fragment"

XML_NS = "http://www.w3.org/XML/1998/namespace"


def _parser() -> etree.XMLParser:
    return etree.XMLParser(
        remove_blank_text=True,
        resolve_entities=False,
        no_network=True,
    )


def _parse(data: bytes) -> etree._Element:
    try:
        return etree.fromstring(data, _parser())
    except etree.XMLSyntaxError as e:
        error_msg = (
            f"Malformed XML at line {e.lineno}: {e.msg}. "
            f"Check for unclosed tags or invalid characters."
        )
        logger.debug(error_msg)
        raise ParseError(error_msg) from e


def _as_bytes(value: Union[str, bytes]) -> bytes:
    data = value.encode("utf-8") if isinstance(value, str) else value
    data = data.strip()
    if not data:
        raise ParseError("Cannot parse empty XML document")
    return data


def to_document(value: XmlInput) -> etree._ElementTree:
    """Turn any supported XML input into a standalone parsed document.

    Args:
        value: XML string or bytes, lxml document or element, XmlBuilder,
            or a mapping with exactly one root key

    Returns:
        Parsed document owning its own tree

    Raises:
        ParseError: If the XML is malformed or a mapping has several roots
        TypeError: If the value type is not supported

    Example:
        >>> doc = to_document("<result>1</result>")
        >>> doc.getroot().text
        '1'
    """
    if isinstance(value, etree._ElementTree):
        return value

    if isinstance(value, etree._Element):
        return etree.ElementTree(copy.deepcopy(value))

    if isinstance(value, XmlBuilder):
        try:
            return value.get_document()
        except ValueError as e:
            raise ParseError(str(e)) from e

    if isinstance(value, Mapping):
        try:
            return etree.ElementTree(structured_to_element(value))
        except ValueError as e:
            raise ParseError(str(e)) from e

    if isinstance(value, (str, bytes)):
        return etree.ElementTree(_parse(_as_bytes(value)))

    raise TypeError(
        f"Unsupported XML input type: {type(value).__name__}. "
        f"Expected str, bytes, lxml document/element, XmlBuilder or mapping."
    )


def parse_fragment(value: Union[str, bytes]) -> list[etree._Element]:
    """Parse an XML fragment that may have several top-level elements.

    Args:
        value: Fragment text such as ``<id>1</id><name>bob</name>``

    Returns:
        Top-level elements of the fragment, detached from any wrapper

    Raises:
        ParseError: If the fragment is malformed
    """
    data = _as_bytes(value)
    # Declarations are only legal at the start of a document
    if data.startswith(b"<?xml"):
        return [_parse(data)]

    wrapper = _parse(b"<%s>%s</%s>" % (
        _FRAGMENT_WRAPPER.encode(), data, _FRAGMENT_WRAPPER.encode()
    ))
    elements = [copy.deepcopy(child) for child in wrapper if isinstance(child.tag, str)]
    if not elements:
        raise ParseError("XML fragment contains no elements")
    return elements


def namespace_prefix(uri: str) -> str:
    """Prefix used for ``uri`` in canonical form."""
    return "n" + hashlib.sha1(uri.encode("utf-8")).hexdigest()[:8]


def _copy_with_uri_prefixes(
    element: etree._Element,
    parent: Optional[etree._Element] = None,
    declared: frozenset = frozenset(),
) -> etree._Element:
    names = [element.tag, *element.attrib]
    new_uris = {
        etree.QName(name).namespace for name in names
    } - declared - {None, XML_NS}
    nsmap = {namespace_prefix(uri): uri for uri in sorted(new_uris)} or None

    if parent is None:
        node = etree.Element(element.tag, nsmap=nsmap)
    else:
        node = etree.SubElement(parent, element.tag, nsmap=nsmap)
    for name, value in element.attrib.items():
        node.set(name, value)
    node.text = element.text

    declared = declared | new_uris
    last = None
    for child in element:
        if isinstance(child.tag, str):
            last = _copy_with_uri_prefixes(child, node, declared)
            last.tail = child.tail
        elif child.tail:
            # Comments and processing instructions are dropped, their tail text is not
            if last is None:
                node.text = (node.text or "") + child.tail
            else:
                last.tail = (last.tail or "") + child.tail
    return node


def canonical_form(document: Union[etree._ElementTree, etree._Element]) -> str:
    """Serialize a document in canonical form.

    Two documents are considered equal iff their canonical forms are
    identical. The result parses back to a document with the same
    canonical form. An element serializes the same on its own as it does
    inside its document, apart from namespace declarations it inherits.

    Args:
        document: Parsed document or element

    Returns:
        Canonical serialization (no XML declaration)
    """
    root = document.getroot() if isinstance(document, etree._ElementTree) else document
    normalized = _copy_with_uri_prefixes(root)
    return etree.canonicalize(
        etree.tostring(normalized, encoding="unicode"),
        strip_text=True,
    )


def canonicalize(value: XmlInput) -> str:
    """Canonical form of any supported XML input.

    Raises:
        ParseError: If the input is malformed XML
    """
    return canonical_form(to_document(value))
