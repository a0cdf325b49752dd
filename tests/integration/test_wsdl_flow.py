"""Integration tests for WSDL encoded requests against the stub service."""

import pytest
from lxml import etree

from soap_test_util.config.defaults import SOAP_ENVELOPE_NS
from soap_test_util.config.schema import SoapConfig
from soap_test_util.mock_server.app import create_app
from soap_test_util.soap.module import SoapModule
from soap_test_util.transport.wsgi_client import WsgiTransport
from soap_test_util.utils.exceptions import WsdlError

pytestmark = pytest.mark.integration

USERS_NS = "http://example.com/users"

REPLY = (
    f'<soap-env:Envelope xmlns:soap-env="{SOAP_ENVELOPE_NS}">'
    f"<soap-env:Body>"
    f'<u:UpdateUserResponse xmlns:u="{USERS_NS}">'
    f"<u:result>1</u:result><u:message>ok</u:message>"
    f"</u:UpdateUserResponse>"
    f"</soap-env:Body>"
    f"</soap-env:Envelope>"
)


@pytest.fixture
def wsdl(fixtures_dir) -> str:
    """Path of the user service WSDL."""
    return str(fixtures_dir / "user_service.wsdl")


@pytest.fixture
def app():
    """Stub answering UpdateUser with a WSDL conforming reply."""
    return create_app({"UpdateUser": REPLY})


@pytest.fixture
def module(app) -> SoapModule:
    """Module sending to the stub in-process."""
    config = SoapConfig(endpoint="/soap", schema=USERS_NS)
    return SoapModule(config, WsgiTransport(app))


class TestWsdlFlow:
    """Encode with a WSDL, send, and decode the typed reply."""

    def test_encode_send_decode(self, module, app, wsdl):
        """Test the decoded result carries WSDL typed values."""
        # Arrange
        module.add_header_block("AuthHeader", {"username": "davert"})

        # Act
        module.send_request("UpdateUser", {"id": 1, "name": "bob"}, wsdl=wsdl)

        # Assert
        assert dict(module.grab_decoded_result()) == {"result": 1, "message": "ok"}

        sent = etree.fromstring(app.config["RECEIVED_REQUESTS"][0]["body"].encode("utf-8"))
        operation = sent.find(f"{{{SOAP_ENVELOPE_NS}}}Body/{{{USERS_NS}}}UpdateUser")
        assert operation.findtext(f"{{{USERS_NS}}}id") == "1"
        assert sent.find(f"{{{SOAP_ENVELOPE_NS}}}Header/AuthHeader/username").text == "davert"

    def test_response_assertions_in_wsdl_mode(self, module, wsdl):
        """Test the usual assertions work on WSDL replies."""
        module.send_request("UpdateUser", {"id": 1, "name": "bob"}, wsdl=wsdl)

        module.assert_response_contains_structure(
            "<UpdateUserResponse><result/><message/></UpdateUserResponse>"
        )
        module.assert_response_contains_xpath("//u:message", {"u": USERS_NS})

    def test_unknown_operation_is_not_sent(self, module, app, wsdl):
        """Test encoding errors stop the request before dispatch."""
        with pytest.raises(WsdlError):
            module.send_request("DeleteUser", {"id": 1}, wsdl=wsdl)

        assert app.config["RECEIVED_REQUESTS"] == []
