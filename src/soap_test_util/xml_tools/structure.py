"""Shape matching of an XML fragment against a response tree.

A pattern matches when its root element name occurs anywhere in the target
and, from that anchor, every pattern child has a same-named child of the
anchor which matches in turn. Only element local names and nesting are
compared. Attributes, text, comments and namespaces are ignored, sibling
order does not matter and extra target children are allowed.
"""

import logging
from typing import Union

from lxml import etree

logger = logging.getLogger(__name__)

Node = Union[etree._ElementTree, etree._Element]


def _root(node: Node) -> etree._Element:
    if isinstance(node, etree._ElementTree):
        return node.getroot()
    return node


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def _element_children(element: etree._Element) -> list[etree._Element]:
    # Comments and processing instructions have non-string tags
    return [child for child in element if isinstance(child.tag, str)]


class StructureMatcher:
    """Decides whether a pattern's element shape occurs inside a target.

    Example:
        >>> matcher = StructureMatcher()
        >>> response = etree.fromstring("<Envelope><Body><result>1</result></Body></Envelope>")
        >>> matcher.matches(etree.fromstring("<result/>"), response)
        True
        >>> matcher.matches(etree.fromstring("<result><x/></result>"), response)
        False
    """

    def matches(self, pattern: Node, target: Node) -> bool:
        """Return True if the pattern shape occurs at any depth of target."""
        pattern_root = _root(pattern)
        name = _local_name(pattern_root)
        for candidate in _root(target).iter(etree.Element):
            if _local_name(candidate) == name and self._matches_at(pattern_root, candidate):
                logger.debug(f"Structure <{name}> matched at {candidate.getroottree().getpath(candidate)}")
                return True
        logger.debug(f"Structure <{name}> not found in target")
        return False

    def find_anchors(self, pattern: Node, target: Node) -> list[etree._Element]:
        """Return every target element at which the pattern matches, in document order."""
        pattern_root = _root(pattern)
        name = _local_name(pattern_root)
        return [
            candidate
            for candidate in _root(target).iter(etree.Element)
            if _local_name(candidate) == name and self._matches_at(pattern_root, candidate)
        ]

    def _matches_at(self, pattern: etree._Element, node: etree._Element) -> bool:
        """Match ``pattern`` against ``node`` whose name is already known to agree."""
        node_children = _element_children(node)
        for pattern_child in _element_children(pattern):
            child_name = _local_name(pattern_child)
            if not any(
                _local_name(candidate) == child_name
                and self._matches_at(pattern_child, candidate)
                for candidate in node_children
            ):
                return False
        return True


def matches_structure(pattern: Node, target: Node) -> bool:
    """Module-level shortcut for ``StructureMatcher().matches``."""
    return StructureMatcher().matches(pattern, target)
