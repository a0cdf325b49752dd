"""Structured value to XML conversion and a fluent XML builder.

Structured values are mappings whose keys become element names. Scalars
become text content, nested mappings recurse and lists produce one element
per item under the same name.
"""

import copy
from collections.abc import Mapping
from typing import Any, Optional, Union

from lxml import etree

Structured = Union[str, dict[str, Any]]


def scalar_text(value: Any) -> Optional[str]:
    """Render a scalar as element text.

    Booleans follow the XML Schema lexical form; None produces no text.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def structured_to_xml(parent: etree._Element, value: Mapping[str, Any]) -> etree._Element:
    """Append the content of a mapping as child elements of ``parent``.

    Args:
        parent: Element receiving the children
        value: Mapping of element names to scalars, mappings or lists

    Returns:
        The ``parent`` element

    Example:
        >>> header = etree.Element("AuthHeader")
        >>> structured_to_xml(header, {"username": "davert", "password": "123"})
        >>> etree.tostring(header)
        b'<AuthHeader><username>davert</username><password>123</password></AuthHeader>'
    """
    for name, item in value.items():
        items = item if isinstance(item, (list, tuple)) else [item]
        for entry in items:
            child = etree.SubElement(parent, str(name))
            if isinstance(entry, Mapping):
                structured_to_xml(child, entry)
            else:
                child.text = scalar_text(entry)
    return parent


def structured_to_element(value: Mapping[str, Any]) -> etree._Element:
    """Build a standalone element from a mapping with exactly one root key.

    Raises:
        ValueError: If the mapping does not have exactly one key
    """
    if len(value) != 1:
        raise ValueError(
            f"Structured XML value must have exactly one root key, got {len(value)}"
        )
    wrapper = etree.Element("wrapper")
    structured_to_xml(wrapper, value)
    return copy.deepcopy(wrapper[0])


def xml_to_structured(element: etree._Element) -> Structured:
    """Convert an element back into the structured shape.

    Leaf elements yield their text (empty string when absent). Elements with
    children yield a dict keyed by child local name; repeated names collect
    into a list. Attributes, comments and namespaces are dropped.

    Example:
        >>> xml_to_structured(etree.fromstring("<u><id>1</id><tag>a</tag><tag>b</tag></u>"))
        {'id': '1', 'tag': ['a', 'b']}
    """
    children = [child for child in element if isinstance(child.tag, str)]
    if not children:
        return element.text or ""

    result: dict[str, Any] = {}
    for child in children:
        name = etree.QName(child).localname
        value = xml_to_structured(child)
        if name not in result:
            result[name] = value
        elif isinstance(result[name], list):
            result[name].append(value)
        else:
            result[name] = [result[name], value]
    return result


class XmlBuilder:
    """Fluent builder for small XML documents.

    Attribute access creates a child of the current element and moves into
    it. ``val`` and ``attr`` modify the current element, ``parent`` and
    ``parents`` move back up.

    Example:
        >>> xml = XmlBuilder()
        >>> xml.users.user.val(1).attr("id", 1).parent().user.val(2)
        >>> str(xml)
        '<users><user id="1">1</user><user>2</user></users>'
    """

    def __init__(self) -> None:
        self._root: Optional[etree._Element] = None
        self._current: Optional[etree._Element] = None

    def __getattr__(self, name: str) -> "XmlBuilder":
        if name.startswith("_"):
            raise AttributeError(name)
        return self.child(name)

    def child(self, name: str) -> "XmlBuilder":
        """Create element ``name`` under the current one and move into it.

        Use this form for names that are not valid Python identifiers.
        """
        if self._current is None:
            self._root = etree.Element(name)
            self._current = self._root
        else:
            self._current = etree.SubElement(self._current, name)
        return self

    def val(self, value: Any) -> "XmlBuilder":
        """Set the text of the current element."""
        self._require_current().text = scalar_text(value)
        return self

    def attr(self, name: str, value: Any) -> "XmlBuilder":
        """Set an attribute on the current element."""
        self._require_current().set(name, scalar_text(value) or "")
        return self

    def parent(self) -> "XmlBuilder":
        """Move to the parent of the current element."""
        parent = self._require_current().getparent()
        if parent is None:
            raise ValueError("Root element has no parent")
        self._current = parent
        return self

    def parents(self, name: str) -> "XmlBuilder":
        """Move to the closest ancestor named ``name``."""
        node = self._require_current().getparent()
        while node is not None:
            if node.tag == name:
                self._current = node
                return self
            node = node.getparent()
        raise ValueError(f"No ancestor named {name!r}")

    def get_document(self) -> etree._ElementTree:
        """Return a copy of the built document."""
        if self._root is None:
            raise ValueError("XmlBuilder is empty")
        return etree.ElementTree(etree.fromstring(etree.tostring(self._root)))

    def _require_current(self) -> etree._Element:
        if self._current is None:
            raise ValueError("XmlBuilder is empty, add an element first")
        return self._current

    def __str__(self) -> str:
        if self._root is None:
            return ""
        return etree.tostring(self._root, encoding="unicode")
