# -*- coding: utf-8 -*-
"""
Controller configuration: the `ControllerConfig` dataclass and the INI files it
is loaded from.

Examples
--------
```python
from tekmatic.system import load_controller_config
config = load_controller_config("mock")
```
"""

from .base_config import ConfigVersion, ControllerConfig
from .sysconfig import (
    install_controller_config,
    list_controller_configs,
    load_controller_config,
    save_controller_config,
    validate_controller_section,
)

__all__ = [
    "ConfigVersion",
    "ControllerConfig",
    "install_controller_config",
    "list_controller_configs",
    "load_controller_config",
    "save_controller_config",
    "validate_controller_section",
]
