"""Flask stub SOAP service answering canned envelopes per SOAPAction.

The stub is meant for local runs and tests of both dispatch strategies. It
can return responses normally, or print them to standard output the way
some embedded services do, optionally followed by a late header error.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Optional
from xml.sax.saxutils import escape

from flask import Flask, Response, jsonify, request

from soap_test_util.config.defaults import SOAP_ENVELOPE_NS
from soap_test_util.utils.exceptions import HeadersAlreadySentError

logger = logging.getLogger(__name__)

DEFAULT_PATH = "/soap"


def generate_soap_fault(
    faultcode: str,
    faultstring: str,
    http_status: int = 500,
    namespace: str = SOAP_ENVELOPE_NS,
) -> tuple[Response, int]:
    """Generate a SOAP 1.1 fault response.

    Args:
        faultcode: Fault code local name (e.g., 'Client', 'Server')
        faultstring: Human-readable fault description
        http_status: HTTP status code (default: 500)
        namespace: Envelope namespace URI

    Returns:
        Tuple of (Response object, HTTP status code)
    """
    fault_xml = (
        f'<SOAP-ENV:Envelope xmlns:SOAP-ENV="{namespace}">'
        f"<SOAP-ENV:Body>"
        f"<SOAP-ENV:Fault>"
        f"<faultcode>SOAP-ENV:{faultcode}</faultcode>"
        f"<faultstring>{escape(faultstring)}</faultstring>"
        f"</SOAP-ENV:Fault>"
        f"</SOAP-ENV:Body>"
        f"</SOAP-ENV:Envelope>"
    )

    logger.warning(f"SOAP Fault generated: {faultcode} - {faultstring}")

    response = Response(fault_xml, mimetype="text/xml; charset=utf-8")
    return response, http_status


def create_app(
    responses: Mapping[str, str],
    path: str = DEFAULT_PATH,
    print_responses: bool = False,
    raise_header_error: bool = False,
    namespace: str = SOAP_ENVELOPE_NS,
) -> Flask:
    """Create a stub SOAP service.

    Received requests are recorded in ``app.config["RECEIVED_REQUESTS"]``
    as dicts with ``action``, ``body`` and ``headers``.

    Args:
        responses: Response envelope per SOAPAction value
        path: URL path accepting SOAP POSTs
        print_responses: Print the envelope to stdout and return an empty body
        raise_header_error: After printing, raise HeadersAlreadySentError.
            Set ``app.testing`` so the error reaches the test client.
        namespace: Envelope namespace used for faults

    Returns:
        Configured Flask application

    Example:
        >>> app = create_app({"UpdateUser": "<Envelope><Body><result>1</result></Body></Envelope>"})
        >>> app.test_client().post("/soap", data=body, headers={"SOAPAction": "UpdateUser"})
    """
    app = Flask(__name__)
    app.config["RECEIVED_REQUESTS"] = []
    started = datetime.now(timezone.utc)
    canned = dict(responses)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            "status": "healthy",
            "endpoint": path,
            "actions": sorted(canned),
            "request_count": len(app.config["RECEIVED_REQUESTS"]),
            "uptime_seconds": int((datetime.now(timezone.utc) - started).total_seconds()),
        }), 200

    @app.route(path, methods=["POST"])
    def soap_endpoint():
        action = request.headers.get("SOAPAction", "").strip('"')
        body = request.get_data(as_text=True)
        app.config["RECEIVED_REQUESTS"].append({
            "action": action,
            "body": body,
            "headers": dict(request.headers),
        })
        logger.info(f"Stub request #{len(app.config['RECEIVED_REQUESTS'])}: SOAPAction={action!r}")

        envelope: Optional[str] = canned.get(action)
        if envelope is None:
            return generate_soap_fault(
                "Client", f"Unknown SOAPAction: {action}", namespace=namespace
            )

        if print_responses:
            print(envelope, end="")
            if raise_header_error:
                raise HeadersAlreadySentError(
                    "Cannot modify header information - headers already sent"
                )
            return Response("", mimetype="text/xml; charset=utf-8")

        return Response(envelope, mimetype="text/xml; charset=utf-8")

    logger.debug(f"Stub SOAP service created at {path} for actions: {sorted(canned)}")
    return app
