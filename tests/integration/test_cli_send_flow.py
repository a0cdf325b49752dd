"""Integration tests for the send command against a live stub service."""

import json

import pytest
from click.testing import CliRunner

from soap_test_util.cli.main import cli

pytestmark = pytest.mark.integration


@pytest.fixture
def config_file(tmp_path, live_server, users_ns):
    """Configuration pointing at the live stub."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "soap": {"endpoint": f"{live_server.url}/soap", "schema": users_ns},
        "logging": {"log_file": str(tmp_path / "logs" / "cli.log")},
    }), encoding="utf-8")
    return path


def test_send_and_assert(config_file, tmp_path, live_server, users_ns):
    """Test a JSON body is sent over HTTP and every check passes."""
    # Arrange
    body = tmp_path / "user.json"
    body.write_text(json.dumps({"id": 1, "name": "bob"}), encoding="utf-8")
    runner = CliRunner()

    # Act
    result = runner.invoke(cli, [
        "--config", str(config_file),
        "send", "UpdateUser",
        "--body", str(body),
        "--header", "AuthHeader", '{"username": "davert"}',
        "--expect-code", "200",
        "--expect-xpath", "//u:UpdateUserResponse/user[@status='active']",
        "--namespace", f"u={users_ns}",
    ])

    # Assert
    assert result.exit_code == 0, result.output
    assert "All 2 assertion(s) passed" in result.output
    received = live_server.app.config["RECEIVED_REQUESTS"][0]
    assert "<AuthHeader><username>davert</username></AuthHeader>" in received["body"]


def test_send_unknown_action_reports_fault(config_file, live_server):
    """Test a fault response fails the status check."""
    runner = CliRunner()

    result = runner.invoke(cli, [
        "--config", str(config_file), "send", "DeleteUser", "--expect-code", "200",
    ])

    assert result.exit_code == 1
    assert "Response (HTTP 500):" in result.output
    assert "Unknown SOAPAction: DeleteUser" in result.output
