from pathlib import Path
from unittest.mock import patch

import click.testing
import pytest

from tekmatic.cli import cli


@pytest.fixture
def cli_runner():
    return click.testing.CliRunner()


@pytest.fixture(autouse=True)
def home(tmp_path, monkeypatch):
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    return tmp_path


class TestTree:
    def test_tree(self, cli_runner):
        result = cli_runner.invoke(cli, ["--tree"])
        assert result.exit_code == 0
        for command in ("call", "config", "discover", "monitor", "ports", "status"):
            assert command in result.output

    def test_config_tree(self, cli_runner):
        result = cli_runner.invoke(cli, ["config", "--tree"])
        assert result.exit_code == 0
        assert "install" in result.output
        assert "show" in result.output


class TestPortsCLI:
    @patch("tekmatic.cli.base.get_hw_ports")
    def test_no_ports(self, mock_ports, cli_runner):
        mock_ports.return_value = {}
        result = cli_runner.invoke(cli, ["ports"])
        assert result.exit_code == 0
        assert "No COM ports found" in result.output

    @patch("tekmatic.cli.base.get_hw_ports")
    def test_ports(self, mock_ports, cli_runner):
        mock_ports.return_value = {"/dev/ttyUSB0": ["FTDI USB Serial", "USB VID:PID"]}
        result = cli_runner.invoke(cli, ["ports"])
        assert result.exit_code == 0
        assert "/dev/ttyUSB0" in result.output
        assert "FTDI USB Serial" in result.output


class TestControllerCLI:
    def test_discover(self, cli_runner):
        result = cli_runner.invoke(cli, ["discover", "-n", "mock", "-ll", "ERROR"])
        assert result.exit_code == 0, result.output
        assert "TS-0001" in result.output
        assert "TL-0003" in result.output
        assert "2 device(s)" in result.output

    def test_call(self, cli_runner):
        result = cli_runner.invoke(
            cli, ["call", "SetTargetTemperature", "37.5", "--slot", "1", "-ll", "ERROR"]
        )
        assert result.exit_code == 0, result.output
        assert "SetTargetTemperature: 0" in result.output

    def test_call_failure_exits_nonzero(self, cli_runner):
        result = cli_runner.invoke(cli, ["call", "SetClampState", "true", "-ll", "ERROR"])
        assert result.exit_code == 1
        assert "SetClampState: -1" in result.output

    def test_call_unknown_operation(self, cli_runner):
        result = cli_runner.invoke(cli, ["call", "Teleport"])
        assert result.exit_code != 0

    def test_connect_to_missing_slot(self, cli_runner):
        result = cli_runner.invoke(
            cli, ["call", "Disconnect", "--slot", "2", "-ll", "ERROR"]
        )
        assert result.exit_code != 0
        assert "failed (-2)" in result.output

    def test_status(self, cli_runner):
        result = cli_runner.invoke(cli, ["status", "-ll", "ERROR"])
        assert result.exit_code == 0, result.output
        assert "IsConnected" in result.output
        assert "TS-0001" in result.output

    def test_monitor(self, cli_runner):
        result = cli_runner.invoke(
            cli, ["monitor", "-s", "TL-0003", "-k", "2", "-i", "0.01", "-ll", "ERROR"]
        )
        assert result.exit_code == 0, result.output
        assert result.output.count("slot 3:") == 2
        assert "22.0" in result.output

    def test_unknown_controller(self, cli_runner):
        result = cli_runner.invoke(cli, ["discover", "-n", "nonexistent"])
        assert result.exit_code != 0
        assert "not found" in result.output


class TestConfigCLI:
    def test_list(self, cli_runner):
        result = cli_runner.invoke(cli, ["config", "list"])
        assert result.exit_code == 0
        assert "mock" in result.output
        assert "serial" in result.output

    def test_show(self, cli_runner):
        result = cli_runner.invoke(cli, ["config", "show", "mock"])
        assert result.exit_code == 0
        assert "[mock]" in result.output
        assert "mock = true" in result.output

    def test_show_missing(self, cli_runner):
        result = cli_runner.invoke(cli, ["config", "show", "nonexistent"])
        assert result.exit_code == 1

    def test_install(self, cli_runner, home):
        result = cli_runner.invoke(cli, ["config", "install", "serial"])
        assert result.exit_code == 0
        assert (home / ".tekmatic" / "controllers.ini").exists()

        result = cli_runner.invoke(cli, ["config", "list"])
        assert "User configurations" in result.output
