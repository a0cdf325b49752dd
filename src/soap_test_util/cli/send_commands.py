"""Send CLI command module.

This module provides the ``send`` command: one SOAP request over HTTP,
followed by the response assertions requested on the command line.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Union

import click
from requests import RequestException

from soap_test_util.config.manager import merge_soap_config
from soap_test_util.config.schema import Config
from soap_test_util.soap.module import SoapModule
from soap_test_util.transport.http_client import HttpTransport
from soap_test_util.utils.exceptions import (
    ConfigurationError,
    SoapAssertionError,
    SoapTestUtilError,
    create_error_info,
)

logger = logging.getLogger(__name__)


def _parse_header_option(name: str, raw: str) -> dict[str, Any]:
    try:
        params = json.loads(raw)
    except json.JSONDecodeError as e:
        raise click.BadParameter(
            f"Header {name}: invalid JSON ({e.msg})", param_hint="--header"
        ) from e
    if not isinstance(params, dict):
        raise click.BadParameter(
            f"Header {name}: JSON value must be an object", param_hint="--header"
        )
    return params


def _parse_namespace_option(values: tuple[str, ...]) -> dict[str, str]:
    namespaces = {}
    for value in values:
        prefix, sep, uri = value.partition("=")
        if not sep or not prefix or not uri:
            raise click.BadParameter(
                f"Expected PREFIX=URI, got {value!r}", param_hint="--namespace"
            )
        namespaces[prefix] = uri
    return namespaces


def _read_body(body_file: Optional[Path]) -> Union[str, dict[str, Any]]:
    """Read a request body: ``.json`` files give a structured payload."""
    if body_file is None:
        return ""
    text = body_file.read_text(encoding="utf-8")
    if body_file.suffix.lower() == ".json":
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise click.BadParameter(
                f"{body_file}: invalid JSON ({e.msg})", param_hint="--body"
            ) from e
        if not isinstance(payload, dict):
            raise click.BadParameter(
                f"{body_file}: JSON body must be an object", param_hint="--body"
            )
        return payload
    return text


def _display_exchange(module: SoapModule) -> None:
    click.echo(click.style("Request:", fg="cyan", bold=True))
    click.echo(module.grab_last_request())
    click.echo()
    click.echo(click.style(
        f"Response (HTTP {module.last_response.status_code}):", fg="cyan", bold=True
    ))
    click.echo(module.grab_last_response())
    click.echo()


@click.command(name="send")
@click.argument("action")
@click.option(
    "--body",
    "body_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Body payload file: XML fragment, or JSON object for a structured payload",
)
@click.option(
    "--header",
    "headers",
    type=(str, str),
    multiple=True,
    help="Header block as NAME JSON (repeatable)",
)
@click.option("--wsdl", type=str, default=None, help="WSDL used to encode a JSON body")
@click.option("--endpoint", type=str, default=None, help="Endpoint URL (overrides config)")
@click.option("--expect-code", type=int, default=None, help="Expected HTTP status code")
@click.option(
    "--expect-structure",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="XML file whose element shape must occur in the response",
)
@click.option(
    "--expect-xpath",
    "xpaths",
    multiple=True,
    help="XPath that must select at least one node (repeatable)",
)
@click.option(
    "--namespace",
    "namespace_values",
    multiple=True,
    help="Namespace prefix for XPath as PREFIX=URI (repeatable)",
)
@click.pass_context
def send(
    ctx: click.Context,
    action: str,
    body_file: Optional[Path],
    headers: tuple[tuple[str, str], ...],
    wsdl: Optional[str],
    endpoint: Optional[str],
    expect_code: Optional[int],
    expect_structure: Optional[Path],
    xpaths: tuple[str, ...],
    namespace_values: tuple[str, ...],
) -> None:
    """Send one SOAP request and check the response.

    Exit Codes:
        0: Request sent and every assertion held
        1: An assertion failed or the input was invalid
        2: Transport error (network, endpoint)
        3: Configuration error

    Examples:
        $ soap-test-util send UpdateUser --body user.xml --expect-code 200

        $ soap-test-util send UpdateUser --body user.json \\
            --expect-xpath '//u:result' --namespace u=http://example.com/users
    """
    header_blocks = [(name, _parse_header_option(name, raw)) for name, raw in headers]
    namespaces = _parse_namespace_option(namespace_values)
    body = _read_body(body_file)

    transport: Optional[HttpTransport] = None
    try:
        config_obj: Optional[Config] = ctx.obj.get("config") if ctx.obj else None
        if config_obj is None:
            raise ctx.obj.get("config_error") or ConfigurationError(
                "No configuration loaded"
            )

        soap_config = config_obj.soap
        if endpoint:
            soap_config = merge_soap_config(soap_config, {"endpoint": endpoint})

        transport = HttpTransport(config_obj.transport)
        module = SoapModule(soap_config, transport, transport_config=config_obj.transport)
        for name, params in header_blocks:
            module.add_header_block(name, params)

        logger.info(f"Sending {action} to {soap_config.endpoint}")
        module.send_request(action, body, wsdl=wsdl)
        _display_exchange(module)

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        click.echo(
            click.style("✗ Configuration Error: ", fg="red", bold=True) + str(e),
            err=True
        )
        sys.exit(3)

    except RequestException as e:
        error_info = create_error_info(e)
        logger.error(f"Transport error: {e}")
        click.echo(
            click.style("✗ Transport Error: ", fg="red", bold=True) + str(e),
            err=True
        )
        click.echo(f"\nRemediation: {error_info.remediation}", err=True)
        sys.exit(2)

    except SoapTestUtilError as e:
        error_info = create_error_info(e)
        logger.error(f"{error_info.error_type}: {e}")
        click.echo(
            click.style(f"✗ {error_info.error_type}: ", fg="red", bold=True) + str(e),
            err=True
        )
        click.echo(f"\nRemediation: {error_info.remediation}", err=True)
        sys.exit(1)

    finally:
        if transport is not None:
            transport.close()

    checks = []
    if expect_code is not None:
        checks.append((f"response code is {expect_code}",
                       lambda: module.assert_response_code_is(expect_code)))
    if expect_structure is not None:
        pattern = expect_structure.read_text(encoding="utf-8")
        checks.append((f"response contains structure of {expect_structure.name}",
                       lambda: module.assert_response_contains_structure(pattern)))
    for xpath in xpaths:
        checks.append((f"response contains XPath {xpath}",
                       lambda xpath=xpath: module.assert_response_contains_xpath(xpath, namespaces)))

    failures = 0
    for description, check in checks:
        try:
            check()
            click.echo(click.style("✓ ", fg="green", bold=True) + description)
        except SoapAssertionError as e:
            failures += 1
            click.echo(click.style("✗ ", fg="red", bold=True) + f"{description}: {e}")
        except SoapTestUtilError as e:
            failures += 1
            error_info = create_error_info(e)
            click.echo(
                click.style("✗ ", fg="red", bold=True)
                + f"{description}: {error_info.error_type}: {e}"
            )

    if failures:
        click.echo(click.style(f"\n{failures} of {len(checks)} assertion(s) failed", fg="red"))
        sys.exit(1)

    if checks:
        click.echo(click.style(f"\nAll {len(checks)} assertion(s) passed", fg="green"))
