"""Unit tests for SOAP envelope construction."""

import pytest
from lxml import etree

from soap_test_util.config.defaults import SOAP_ENVELOPE_NS
from soap_test_util.soap.envelope import EnvelopeBuilder
from soap_test_util.utils.exceptions import StateError

SOAP12_NS = "http://www.w3.org/2003/05/soap-envelope"
USERS_NS = "http://example.com/users"


def _q(name: str, ns: str = SOAP_ENVELOPE_NS) -> str:
    return f"{{{ns}}}{name}"


@pytest.fixture
def builder() -> EnvelopeBuilder:
    """Envelope builder under test."""
    return EnvelopeBuilder()


@pytest.fixture
def envelope(builder) -> etree._ElementTree:
    """Fresh SOAP 1.1 envelope."""
    return builder.build_envelope(SOAP_ENVELOPE_NS)


class TestBuildEnvelope:
    """Test envelope creation."""

    def test_envelope_has_header_and_body(self, envelope):
        """Test root, Header and Body are qualified by the envelope namespace."""
        root = envelope.getroot()

        assert root.tag == _q("Envelope")
        assert [child.tag for child in root] == [_q("Header"), _q("Body")]
        assert len(root[0]) == 0
        assert len(root[1]) == 0

    def test_envelope_prefix(self, envelope):
        """Test the envelope uses the SOAP-ENV prefix."""
        assert envelope.getroot().prefix == "SOAP-ENV"

    def test_configurable_namespace(self, builder):
        """Test the envelope namespace follows the argument."""
        root = builder.build_envelope(SOAP12_NS).getroot()

        assert root.tag == _q("Envelope", SOAP12_NS)
        assert root[1].tag == _q("Body", SOAP12_NS)

    def test_each_call_returns_new_envelope(self, builder):
        """Test envelopes are not shared between calls."""
        first = builder.build_envelope(SOAP_ENVELOPE_NS)
        second = builder.build_envelope(SOAP_ENVELOPE_NS)

        assert first.getroot() is not second.getroot()


class TestAddHeaderBlock:
    """Test header block injection."""

    def test_header_blocks_keep_insertion_order(self, builder, envelope):
        """Test two header blocks appear as distinct children in order."""
        # Act
        builder.add_header_block(envelope, "AuthHeader", {"user": "a"})
        builder.add_header_block(envelope, "SessionHeader", {"id": 42})

        # Assert
        header = envelope.getroot()[0]
        assert [block.tag for block in header] == ["AuthHeader", "SessionHeader"]
        assert header[0].findtext("user") == "a"
        assert header[1].findtext("id") == "42"

    def test_nested_params(self, builder, envelope):
        """Test nested mappings and lists are converted recursively."""
        block = builder.add_header_block(
            envelope,
            "Security",
            {"token": {"value": "abc", "scope": ["read", "write"]}},
        )

        assert block.findtext("token/value") == "abc"
        assert [s.text for s in block.findall("token/scope")] == ["read", "write"]

    def test_no_params(self, builder, envelope):
        """Test a header block may be empty."""
        block = builder.add_header_block(envelope, "Ping")

        assert block.tag == "Ping"
        assert len(block) == 0

    def test_header_and_body_not_duplicated(self, builder, envelope):
        """Test adding blocks does not create more Header elements."""
        builder.add_header_block(envelope, "A", {})
        builder.add_header_block(envelope, "B", {})

        assert len(envelope.getroot().findall(_q("Header"))) == 1
        assert len(envelope.getroot().findall(_q("Body"))) == 1

    def test_missing_envelope_raises_state_error(self, builder):
        """Test adding a header block without an envelope fails fast."""
        with pytest.raises(StateError, match="No SOAP envelope has been built"):
            builder.add_header_block(None, "AuthHeader", {"user": "a"})

    def test_envelope_without_header_raises_state_error(self, builder):
        """Test an envelope lacking Header is rejected."""
        envelope = etree.ElementTree(
            etree.fromstring(f'<e:Envelope xmlns:e="{SOAP_ENVELOPE_NS}"><e:Body/></e:Envelope>')
        )

        with pytest.raises(StateError, match="no Header element"):
            builder.add_header_block(envelope, "AuthHeader")


class TestSetBody:
    """Test operation element placement."""

    def test_operation_element_in_target_namespace(self, builder, envelope):
        """Test Body holds ns:<action> with copies of the children."""
        # Arrange
        children = [etree.fromstring("<id>1</id>"), etree.fromstring("<name>bob</name>")]

        # Act
        operation = builder.set_body(envelope, USERS_NS, "UpdateUser", children)

        # Assert
        body = envelope.getroot()[1]
        assert list(body) == [operation]
        assert operation.tag == _q("UpdateUser", USERS_NS)
        assert operation.prefix == "ns"
        assert [child.tag for child in operation] == ["id", "name"]
        assert children[0].getparent() is None

    def test_body_is_replaced_on_each_call(self, builder, envelope):
        """Test previous Body content is removed."""
        builder.set_body(envelope, USERS_NS, "UpdateUser", [etree.fromstring("<id>1</id>")])
        builder.set_body(envelope, USERS_NS, "DeleteUser", [])

        body = envelope.getroot()[1]
        assert [child.tag for child in body] == [_q("DeleteUser", USERS_NS)]

    def test_header_blocks_survive_body_change(self, builder, envelope):
        """Test setting the body leaves header blocks alone."""
        builder.add_header_block(envelope, "AuthHeader", {"user": "a"})

        builder.set_body(envelope, USERS_NS, "UpdateUser", [])

        assert envelope.getroot()[0][0].tag == "AuthHeader"

    def test_missing_envelope_raises_state_error(self, builder):
        """Test setting a body without an envelope fails fast."""
        with pytest.raises(StateError):
            builder.set_body(None, USERS_NS, "UpdateUser", [])


class TestCopyHeaderBlocks:
    """Test moving header blocks into another envelope."""

    def test_creates_header_when_missing(self, builder, envelope):
        """Test a Header is inserted first when the target lacks one."""
        # Arrange
        builder.add_header_block(envelope, "AuthHeader", {"user": "a"})
        target = etree.ElementTree(etree.fromstring(
            f'<soap-env:Envelope xmlns:soap-env="{SOAP_ENVELOPE_NS}">'
            f"<soap-env:Body><op/></soap-env:Body></soap-env:Envelope>"
        ))

        # Act
        builder.copy_header_blocks(envelope, target)

        # Assert
        root = target.getroot()
        assert [child.tag for child in root] == [_q("Header"), _q("Body")]
        assert root[0][0].findtext("user") == "a"
        assert len(envelope.getroot()[0]) == 1

    def test_nothing_to_copy_leaves_target_unchanged(self, builder, envelope):
        """Test no Header is added when there are no blocks."""
        target = etree.ElementTree(etree.fromstring(
            f'<e:Envelope xmlns:e="{SOAP_ENVELOPE_NS}"><e:Body/></e:Envelope>'
        ))

        builder.copy_header_blocks(envelope, target)

        assert len(target.getroot()) == 1
