"""XPath evaluation and CSS/XPath element lookup on parsed responses."""

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from lxml import etree
from lxml.cssselect import CSSSelector, SelectorError

from soap_test_util.utils.exceptions import ElementNotFoundError, InvalidQueryError

logger = logging.getLogger(__name__)

Node = Union[etree._ElementTree, etree._Element]


def evaluate(
    expression: str,
    document: Node,
    namespaces: Optional[Mapping[str, str]] = None,
) -> list[Any]:
    """Evaluate an XPath expression that selects nodes.

    The prefix map applies to this call only.

    Args:
        expression: XPath 1.0 expression
        document: Parsed document or element to evaluate against
        namespaces: Mapping of prefix to namespace URI used by the expression

    Returns:
        Selected nodes (elements, attribute values or text nodes). An empty
        list means the expression is valid and matched nothing.

    Raises:
        InvalidQueryError: If the expression does not compile, uses an
            undeclared prefix, or evaluates to a number, string or boolean

    Example:
        >>> evaluate("//u:id", doc, {"u": "http://example.com/users"})
        [<Element {http://example.com/users}id at 0x...>]
    """
    ns_map = dict(namespaces or {})
    try:
        xpath = etree.XPath(expression, namespaces=ns_map)
    except (etree.XPathError, TypeError) as e:
        raise InvalidQueryError(f"Invalid XPath expression {expression!r}: {e}") from e

    try:
        result = xpath(document)
    except etree.XPathError as e:
        raise InvalidQueryError(f"Cannot evaluate XPath {expression!r}: {e}") from e

    if not isinstance(result, list):
        raise InvalidQueryError(
            f"XPath {expression!r} must select nodes, "
            f"got {type(result).__name__} result {result!r}"
        )

    logger.debug(f"XPath {expression!r} selected {len(result)} node(s)")
    return result


def _select_css(root: etree._Element, locator: str) -> list[etree._Element]:
    try:
        return CSSSelector(locator)(root)
    except SelectorError:
        return []


def _select_xpath(document: Node, locator: str) -> list[etree._Element]:
    try:
        result = document.xpath(locator)
    except etree.XPathError:
        return []
    if not isinstance(result, list):
        return []
    return [node for node in result if isinstance(node, etree._Element)]


def select_element(document: Node, locator: str) -> etree._Element:
    """Find the first element matching a CSS selector or XPath expression.

    The locator is tried as CSS first and as XPath when CSS is invalid or
    matches nothing.

    Raises:
        ElementNotFoundError: If neither interpretation matches an element
    """
    root = document.getroot() if isinstance(document, etree._ElementTree) else document

    elements = _select_css(root, locator) or _select_xpath(document, locator)
    if not elements:
        raise ElementNotFoundError(
            f"Element not found in response: {locator}",
            expected=locator,
        )
    return elements[0]
