"""Device base class.

Every piece of hardware tekmatic talks to, whether the physical serial link, the
simulated controller or the slot controller facade built on top of them, inherits
from `Device`. The base class does two things:

1. Validates keyword configuration against `required_config`
2. Defines the connection contract (`open`, `close`, `is_connected`)
"""

from __future__ import annotations

from typing import Type

from loguru import logger


class Device:
    """Base class for all tekmatic devices.

    Required Methods
    --------------
    All device implementations must override these methods:

    - open(): Connect to the hardware, returning ``(ok, message)``
    - close(): Disconnect from the hardware
    - is_connected(): Check connection status

    Attributes
    ----------
    required_config : dict[str, Type]
        Required configuration parameters and their types

    Examples
    --------
    ```python
    class MyLink(Device):
        required_config = {"port": str}

        def open(self) -> tuple[bool, str]:
            ...
            return True, "Opened"
    ```
    """

    required_config: dict[str, Type] = {}  # Required configuration keys

    def __init__(self, **config_kwargs):
        for key, value in config_kwargs.items():
            setattr(self, key, value)
        for key, value in self.required_config.items():
            if not hasattr(self, key):
                logger.error(
                    f"Device {self.__class__.__name__} missing required config key: "
                    + f"{key}"
                )
                raise ValueError(
                    f"Device {self.__class__.__name__} missing required config "
                    + f"key: {key}"
                )
            if not isinstance(getattr(self, key), value):
                logger.error(
                    f"Device {self.__class__.__name__} config key {key} "
                    + f"has wrong type: {type(getattr(self, key))} (expected {value})"
                )
                raise ValueError(
                    f"Device {self.__class__.__name__} config key {key} has "
                    + f"wrong type: {type(getattr(self, key))} (expected {value})"
                )

    def open(self) -> tuple[bool, str]:
        raise NotImplementedError()

    def close(self):
        raise NotImplementedError()

    def is_connected(self) -> bool:
        raise NotImplementedError()

    def get_all_attrs(self):
        """
        Function to return all of the managed attributes of the class
        Managed attributes are the ones that start with a underscore
        """
        attrs = {}
        for key, value in self.__dict__.items():
            # single underscore attr are managed
            if key[0] == "_" and not key.startswith(f"_{self.__class__.__name__}"):
                attrs[key[1:]] = value
        return attrs
