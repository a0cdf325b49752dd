"""Main CLI entry point for SOAP Test Utility.

This module provides the main Click command group for the soap-test-util CLI.
"""

from pathlib import Path
from typing import Optional

import click

from soap_test_util import __version__
from soap_test_util.cli.send_commands import send
from soap_test_util.config import LoggingConfig, load_config
from soap_test_util.logging_audit import configure_logging
from soap_test_util.utils.exceptions import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="soap-test-util")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-secrets",
    is_flag=True,
    help="Mask password, token and secret values in logged SOAP XML",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_secrets: bool,
) -> None:
    """SOAP Test Utility - send SOAP requests and assert on responses.

    Common usage:

        # Send an operation with an XML body and check the reply
        soap-test-util send UpdateUser --body user.xml --expect-code 200

        # Structured JSON body, header block and shape check
        soap-test-util send UpdateUser --body user.json \\
            --header AuthHeader '{"username": "davert"}' \\
            --expect-structure result.xml

        # Validate a configuration file
        soap-test-util config validate config/config.json

    Use --help with any command for more information.
    """
    ctx.ensure_object(dict)

    # Commands that do not talk to a service work without a SOAP section
    try:
        config_obj = load_config(config)
        ctx.obj["config"] = config_obj
        logging_config = config_obj.logging
    except ConfigurationError as e:
        ctx.obj["config"] = None
        ctx.obj["config_error"] = e
        logging_config = LoggingConfig()

    ctx.obj["verbose"] = verbose
    ctx.obj["redact_secrets"] = redact_secrets
    ctx.obj["log_file"] = log_file

    # Configure logging with precedence: CLI flags > config file > defaults
    log_level = "DEBUG" if verbose else logging_config.level
    log_file_path = log_file if log_file else logging_config.log_file
    redact_setting = redact_secrets or logging_config.redact_secrets

    configure_logging(
        level=log_level, log_file=log_file_path, redact_secrets=redact_setting
    )


cli.add_command(send)


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a configuration file.

    Example:
        soap-test-util config validate config/config.json
    """
    try:
        config_obj = load_config(config_file)

        click.echo(click.style("✓", fg="green", bold=True) + " Configuration is valid")
        click.echo(f"\nConfiguration file: {config_file}")
        click.echo(f"\nSOAP:")
        click.echo(f"  Endpoint:         {config_obj.soap.endpoint}")
        click.echo(f"  Target namespace: {config_obj.soap.target_namespace}")
        click.echo(f"  Envelope schema:  {config_obj.soap.schema_url}")
        soap_action = config_obj.soap.soap_action
        click.echo(f"  SOAPAction:       {'operation name' if soap_action is None else repr(soap_action)}")
        click.echo(f"  Collect buffer:   {config_obj.soap.framework_collect_buffer}")

        click.echo(f"\nTransport:")
        click.echo(f"  Verify TLS:  {config_obj.transport.verify_tls}")
        click.echo(f"  Timeout:     {config_obj.transport.timeout}s")

        click.echo(f"\nLogging:")
        click.echo(f"  Level:          {config_obj.logging.level}")
        click.echo(f"  Log file:       {config_obj.logging.log_file}")
        click.echo(f"  Redact secrets: {config_obj.logging.redact_secrets}")

    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"soap-test-util version {__version__}")


if __name__ == "__main__":
    cli()
