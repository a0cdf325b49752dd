"""WSDL driven encoding of requests and decoding of responses via zeep.

Clients are cached per WSDL location so a WSDL is fetched and parsed once
per codec instance.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

import requests
import zeep
from lxml import etree
from zeep.exceptions import Error as ZeepError
from zeep.helpers import serialize_object
from zeep.transports import Transport

from soap_test_util.config.schema import TransportConfig
from soap_test_util.utils.exceptions import WsdlError

logger = logging.getLogger(__name__)


class WsdlCodec:
    """Encode operation payloads and decode replies described by a WSDL.

    Example:
        >>> codec = WsdlCodec()
        >>> envelope = codec.encode("service.wsdl", "UpdateUser", {"id": 1, "name": "bob"})
        >>> codec.decode("service.wsdl", "UpdateUser", response_document)
        {'result': 1}
    """

    def __init__(self, transport_config: Optional[TransportConfig] = None) -> None:
        self.transport_config = transport_config or TransportConfig()
        self.clients_cache: dict[str, zeep.Client] = {}

    def get_client(self, wsdl: str) -> zeep.Client:
        """Return the cached zeep client for ``wsdl``, loading it on first use.

        Raises:
            WsdlError: If the WSDL cannot be fetched or parsed
        """
        if wsdl not in self.clients_cache:
            logger.info(f"Loading WSDL: {wsdl}")
            session = requests.Session()
            session.verify = self.transport_config.verify_tls
            transport = Transport(session=session, timeout=self.transport_config.timeout)
            try:
                self.clients_cache[wsdl] = zeep.Client(
                    wsdl=wsdl,
                    transport=transport,
                    settings=zeep.Settings(strict=False),
                )
            except (ZeepError, OSError, requests.RequestException, ValueError) as e:
                raise WsdlError(f"Cannot load WSDL {wsdl}: {e}") from e
        return self.clients_cache[wsdl]

    def encode(
        self,
        wsdl: str,
        action: str,
        payload: Mapping[str, Any],
    ) -> etree._ElementTree:
        """Build a request envelope for ``action`` from a structured payload.

        Raises:
            WsdlError: If the operation is unknown or the payload does not
                fit its input message
        """
        client = self.get_client(wsdl)
        try:
            envelope = client.create_message(client.service, action, **payload)
        except (ZeepError, ValueError, TypeError) as e:
            raise WsdlError(
                f"Cannot encode operation {action!r} with WSDL {wsdl}: {e}"
            ) from e
        return etree.ElementTree(envelope)

    def decode(
        self,
        wsdl: str,
        action: str,
        document: etree._ElementTree,
    ) -> Any:
        """Decode a response envelope into plain Python values.

        Raises:
            WsdlError: If the operation is unknown or the reply does not
                match its output message
        """
        client = self.get_client(wsdl)
        try:
            operation = client.service._binding.get(action)
            result = operation.process_reply(document.getroot())
        except (ZeepError, ValueError, TypeError) as e:
            raise WsdlError(
                f"Cannot decode reply of operation {action!r} with WSDL {wsdl}: {e}"
            ) from e
        return serialize_object(result, dict)
