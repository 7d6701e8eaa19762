"""Controller configuration handling for tekmatic.

Controller configurations live in INI files, one section per controller:

[bench]
port = COM3
baudrate = 19200
read_timeout = 1.0
write_timeout = 1.0
poll_interval = 1.0
mock = false

Search order:
1. ~/.tekmatic/controllers.ini (user)
2. package/sysconfig/controllers/<name>.ini (package defaults)

See Also
--------
tekmatic.system.base_config : The `ControllerConfig` dataclass
tekmatic.cli : `tekmatic config ...` commands
"""

from __future__ import annotations

from configparser import ConfigParser, SectionProxy
from pathlib import Path

from loguru import logger

from tekmatic.system.base_config import ConfigVersion, ControllerConfig

_INT_KEYS = {"baudrate"}
_FLOAT_KEYS = {"read_timeout", "write_timeout", "poll_interval"}
_BOOL_KEYS = {"mock"}
_STR_KEYS = {"port"}
VALID_KEYS = _INT_KEYS | _FLOAT_KEYS | _BOOL_KEYS | _STR_KEYS | {"version"}


def user_config_file() -> Path:
    return Path.home() / ".tekmatic" / "controllers.ini"


def package_config_dir() -> Path:
    import tekmatic

    return Path(tekmatic.__file__).parent / "sysconfig" / "controllers"


def validate_controller_section(config: ConfigParser, section: str) -> tuple[bool, str]:
    """Validate controller configuration section.

    Returns
    -------
    tuple[bool, str]
        (is_valid, error_message)
    """
    sect = config[section]
    for key in sect:
        if key not in VALID_KEYS:
            return False, f"Unknown key: {key}"
    try:
        for key in _INT_KEYS & set(sect):
            sect.getint(key)
        for key in _FLOAT_KEYS & set(sect):
            if sect.getfloat(key) <= 0:
                return False, f"{key} must be positive"
        for key in _BOOL_KEYS & set(sect):
            sect.getboolean(key)
    except ValueError as e:
        return False, f"Invalid value: {e}"
    if not sect.getboolean("mock", fallback=False) and "port" not in sect:
        return False, "Missing required field: port (may be empty to auto-detect)"
    return True, ""


def _create_controller_config(section: SectionProxy) -> ControllerConfig:
    return ControllerConfig(
        name=section.name,
        port=section.get("port", fallback=""),
        baudrate=section.getint("baudrate", fallback=ControllerConfig.baudrate),
        read_timeout=section.getfloat(
            "read_timeout", fallback=ControllerConfig.read_timeout
        ),
        write_timeout=section.getfloat(
            "write_timeout", fallback=ControllerConfig.write_timeout
        ),
        poll_interval=section.getfloat(
            "poll_interval", fallback=ControllerConfig.poll_interval
        ),
        mock=section.getboolean("mock", fallback=False),
    )


def _find_section(config: ConfigParser, name: str) -> str | None:
    # Case-insensitive section lookup
    for section in config.sections():
        if section.lower() == name.lower():
            return section
    return None


def load_controller_config(name: str) -> ControllerConfig:
    """Load controller configuration from INI file.

    User configuration takes precedence over package defaults.

    Raises
    ------
    ValueError
        If the configuration is missing or invalid
    """
    user_file = user_config_file()
    package_file = package_config_dir() / f"{name.lower()}.ini"

    for path in (user_file, package_file):
        if not path.exists():
            continue
        config = ConfigParser()
        config.read(path)
        section = _find_section(config, name)
        if section is None:
            continue
        is_valid, error_msg = validate_controller_section(config, section)
        if not is_valid:
            raise ValueError(f"Controller '{name}' in {path}: {error_msg}")
        logger.debug("Loaded controller config '{}' from {}", section, path)
        return _create_controller_config(config[section])

    raise ValueError(
        f"Controller '{name}' not found in:\n"
        f"- User config: {user_file}\n"
        f"- Package config: {package_file}"
    )


def save_controller_config(config: ControllerConfig, overwrite: bool = False) -> Path:
    """Write `config` as a section of the user configuration file."""
    user_file = user_config_file()
    user_file.parent.mkdir(parents=True, exist_ok=True)

    parser = ConfigParser()
    if user_file.exists():
        parser.read(user_file)
    else:
        parser["DEFAULT"] = {"version": ConfigVersion.CURRENT.value}

    existing = _find_section(parser, config.name)
    if existing is not None:
        if not overwrite:
            raise ValueError(
                f"Controller '{config.name}' already exists in user configuration"
            )
        parser.remove_section(existing)

    parser[config.name] = config.to_section()
    with user_file.open("w") as f:
        parser.write(f)
    logger.info("Saved controller config '{}' to {}", config.name, user_file)
    return user_file


def list_controller_configs() -> dict[str, str]:
    """Map each known controller configuration to its source ('user' or 'package')."""
    controllers = {}

    package_dir = package_config_dir()
    if package_dir.exists():
        for file in sorted(package_dir.glob("*.ini")):
            config = ConfigParser()
            config.read(file)
            for section in config.sections():
                controllers[section] = "package"

    # user configuration overrides package defaults
    user_file = user_config_file()
    if user_file.exists():
        config = ConfigParser()
        config.read(user_file)
        for section in config.sections():
            controllers[section] = "user"

    return controllers


def install_controller_config(name: str) -> Path:
    """Copy a package controller configuration into the user configuration file.

    Raises
    ------
    FileNotFoundError
        If the package configuration doesn't exist
    ValueError
        If the name already exists in the user configuration
    """
    package_file = package_config_dir() / f"{name.lower()}.ini"
    if not package_file.exists():
        raise FileNotFoundError(f"Package configuration '{name}' not found")
    config = ConfigParser()
    config.read(package_file)
    section = _find_section(config, name)
    if section is None:
        raise ValueError(f"Controller '{name}' not found in package configuration")
    controller = _create_controller_config(config[section])
    return save_controller_config(controller)
