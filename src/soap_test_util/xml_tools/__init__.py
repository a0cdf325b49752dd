"""XML tools module.

Canonical form, structured conversion, shape matching and XPath helpers.
"""

from soap_test_util.xml_tools.builder import (
    XmlBuilder,
    structured_to_element,
    structured_to_xml,
    xml_to_structured,
)
from soap_test_util.xml_tools.canonicalizer import (
    canonical_form,
    canonicalize,
    parse_fragment,
    to_document,
)
from soap_test_util.xml_tools.structure import StructureMatcher, matches_structure
from soap_test_util.xml_tools.xpath import evaluate, select_element

__all__ = [
    "XmlBuilder",
    "structured_to_element",
    "structured_to_xml",
    "xml_to_structured",
    "canonical_form",
    "canonicalize",
    "parse_fragment",
    "to_document",
    "StructureMatcher",
    "matches_structure",
    "evaluate",
    "select_element",
]
