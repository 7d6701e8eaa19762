"""Tests for controller configuration handling."""

from configparser import ConfigParser
from pathlib import Path

import pytest

from tekmatic.system.base_config import ConfigVersion, ControllerConfig
from tekmatic.system.sysconfig import (
    install_controller_config,
    list_controller_configs,
    load_controller_config,
    save_controller_config,
    validate_controller_section,
)


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create temporary .tekmatic directory."""
    config_dir = tmp_path / ".tekmatic"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_controllers_file(temp_config_dir):
    """Create a user controllers.ini file."""
    controllers_file = temp_config_dir / "controllers.ini"
    config = ConfigParser()
    config["DEFAULT"] = {"version": ConfigVersion.CURRENT.value}
    config["Bench"] = {
        "port": "/dev/ttyUSB0",
        "baudrate": "9600",
        "read_timeout": "0.5",
        "poll_interval": "2.0",
        "mock": "false",
    }
    with controllers_file.open("w") as f:
        config.write(f)
    return controllers_file


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    return tmp_path


def test_validate_controller_section(mock_controllers_file):
    config = ConfigParser()
    config.read(mock_controllers_file)

    is_valid, error_msg = validate_controller_section(config, "Bench")
    assert is_valid, f"Valid configuration was marked as invalid: {error_msg}"
    assert error_msg == ""

    config["Bench"]["colour"] = "blue"
    is_valid, error_msg = validate_controller_section(config, "Bench")
    assert not is_valid
    assert "Unknown key" in error_msg


def test_validate_controller_section_errors(mock_controllers_file):
    config = ConfigParser()
    config.read(mock_controllers_file)

    config["Bench"]["baudrate"] = "fast"
    is_valid, error_msg = validate_controller_section(config, "Bench")
    assert not is_valid
    assert "Invalid value" in error_msg

    config["Bench"]["baudrate"] = "9600"
    config["Bench"]["poll_interval"] = "0"
    is_valid, error_msg = validate_controller_section(config, "Bench")
    assert not is_valid
    assert "must be positive" in error_msg

    config["Bench"]["poll_interval"] = "1.0"
    del config["Bench"]["port"]
    is_valid, error_msg = validate_controller_section(config, "Bench")
    assert not is_valid
    assert "port" in error_msg


def test_load_user_config(mock_controllers_file, home):
    config = load_controller_config("bench")
    assert config.name == "Bench"
    assert config.port == "/dev/ttyUSB0"
    assert config.baudrate == 9600
    assert config.read_timeout == 0.5
    assert config.write_timeout == ControllerConfig.write_timeout
    assert config.poll_interval == 2.0
    assert not config.mock


def test_load_package_config(home):
    config = load_controller_config("mock")
    assert config.mock
    assert config.port == ""


def test_load_missing_config(home):
    with pytest.raises(ValueError, match="not found"):
        load_controller_config("nonexistent")


def test_list_controller_configs(mock_controllers_file, home):
    controllers = list_controller_configs()
    assert controllers["mock"] == "package"
    assert controllers["serial"] == "package"
    assert controllers["Bench"] == "user"


def test_save_controller_config(home):
    config = ControllerConfig(name="lab", port="COM4", poll_interval=0.5)
    path = save_controller_config(config)
    assert path == home / ".tekmatic" / "controllers.ini"
    assert load_controller_config("lab") == config

    with pytest.raises(ValueError, match="already exists"):
        save_controller_config(config)

    config.baudrate = 115200
    save_controller_config(config, overwrite=True)
    assert load_controller_config("lab").baudrate == 115200


def test_install_controller_config(home):
    path = install_controller_config("serial")
    assert path.exists()
    assert list_controller_configs()["serial"] == "user"

    with pytest.raises(ValueError):
        install_controller_config("serial")
    with pytest.raises(FileNotFoundError):
        install_controller_config("nonexistent")


def test_invalid_values_rejected():
    with pytest.raises(ValueError):
        ControllerConfig(baudrate=0)
    with pytest.raises(ValueError):
        ControllerConfig(read_timeout=-1.0)
