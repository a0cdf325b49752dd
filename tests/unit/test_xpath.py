"""Unit tests for XPath evaluation and element selection."""

import pytest
from lxml import etree

from soap_test_util.utils.exceptions import ElementNotFoundError, InvalidQueryError
from soap_test_util.xml_tools.xpath import evaluate, select_element

USERS = {"u": "http://example.com/users"}


@pytest.fixture
def document(user_response) -> etree._ElementTree:
    """Parsed namespaced user response."""
    return etree.ElementTree(etree.fromstring(user_response.encode("utf-8")))


class TestEvaluate:
    """Test XPath evaluation."""

    def test_namespaced_query(self, document):
        """Test the prefix map is applied to the expression."""
        # Act
        nodes = evaluate("//u:UpdateUserResponse/result", document, USERS)

        # Assert
        assert len(nodes) == 1
        assert nodes[0].text == "1"

    def test_zero_matches_is_empty_list(self, document):
        """Test a valid query selecting nothing is not an error."""
        assert evaluate("//missing", document) == []

    def test_attribute_and_text_results(self, document):
        """Test attribute and text nodes are returned as strings."""
        assert evaluate("//user/@status", document) == ["active"]
        assert evaluate("//user/name/text()", document) == ["bob"]

    def test_syntax_error_raises_invalid_query(self, document):
        """Test malformed expressions are distinguished from empty results."""
        with pytest.raises(InvalidQueryError, match="Invalid XPath expression"):
            evaluate("//user[", document)

    def test_undeclared_prefix_raises_invalid_query(self, document):
        """Test using a prefix missing from the map raises."""
        with pytest.raises(InvalidQueryError):
            evaluate("//u:UpdateUserResponse", document)

    def test_prefix_map_does_not_persist(self, document):
        """Test namespaces apply to a single call only."""
        evaluate("//u:UpdateUserResponse", document, USERS)

        with pytest.raises(InvalidQueryError):
            evaluate("//u:UpdateUserResponse", document)

    @pytest.mark.parametrize("expression", ["count(//user)", "string(//name)", "1 = 1"])
    def test_non_node_results_raise_invalid_query(self, document, expression):
        """Test numbers, strings and booleans are not node queries."""
        with pytest.raises(InvalidQueryError, match="must select nodes"):
            evaluate(expression, document)

    def test_empty_prefix_raises_invalid_query(self, document):
        """Test an empty prefix cannot be used in XPath."""
        with pytest.raises(InvalidQueryError):
            evaluate("//user", document, {"": "http://example.com/users"})


class TestSelectElement:
    """Test CSS/XPath element lookup."""

    def test_css_selector(self, document):
        """Test CSS selectors are tried first."""
        assert select_element(document, "user > name").text == "bob"

    def test_css_attribute_selector(self, document):
        """Test CSS attribute selectors."""
        element = select_element(document, "user[status='active']")

        assert element.get("id") == "7"

    def test_xpath_fallback(self, document):
        """Test XPath is used when the locator is not valid CSS."""
        assert select_element(document, "//roles/role[2]").text == "dev"

    def test_first_match_is_returned(self, document):
        """Test the first element in document order is returned."""
        assert select_element(document, "role").text == "admin"

    def test_accepts_element(self, document):
        """Test an element can be searched as well as a document."""
        assert select_element(document.getroot(), "result").text == "1"

    def test_no_match_raises(self, document):
        """Test nothing matching raises ElementNotFoundError."""
        with pytest.raises(ElementNotFoundError, match="Element not found in response: email"):
            select_element(document, "email")

    def test_attribute_xpath_is_not_an_element(self, document):
        """Test XPath selecting attributes does not count as an element."""
        with pytest.raises(ElementNotFoundError):
            select_element(document, "//user/@id")

    def test_invalid_locator_raises_not_found(self, document):
        """Test a locator invalid as CSS and XPath raises ElementNotFoundError."""
        with pytest.raises(ElementNotFoundError):
            select_element(document, "//user[")
