"""Entry point for running soap_test_util as a module.

This allows the package to be executed as:
    python -m soap_test_util
"""

from soap_test_util.cli.main import cli

if __name__ == "__main__":
    cli()
