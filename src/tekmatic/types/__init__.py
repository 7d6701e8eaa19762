# -*- coding: utf-8 -*-
"""
Shared types for tekmatic: the data model, the error taxonomy and the command
variants understood by the dispatcher.

See Also
--------
tekmatic.device.controller : Consumer of all of these types
tekmatic.surface : Maps named remote operations onto command variants
"""

from .commands import (
    AnyCommand,
    ClearErrorCodes,
    Command,
    ConnectBySerial,
    ConnectFirstAvailable,
    ConnectToSlot,
    Disconnect,
    DiscoverDevices,
    EnableShaking,
    EnableTemperature,
    GetErrorCodes,
    SetClampState,
    SetShakingRpm,
    SetTargetTemperature,
)
from .errors import (
    DeviceNotFoundError,
    InvalidArgumentError,
    NotConnectedError,
    ProtocolError,
    TekmaticError,
    TransportError,
)
from .models import (
    CONTROLLER_SLOT,
    DEVICE_TYPE_NAMES,
    NO_DEVICE,
    NO_SLOT_MODULE,
    NUM_SLOTS,
    SLOT_IDS,
    ConnectionSession,
    ConnectionState,
    ResultCode,
    SlotDevice,
    SlotSnapshot,
    StatusSnapshot,
    device_type_name,
)

__all__ = [
    "AnyCommand",
    "ClearErrorCodes",
    "Command",
    "ConnectBySerial",
    "ConnectFirstAvailable",
    "ConnectToSlot",
    "Disconnect",
    "DiscoverDevices",
    "EnableShaking",
    "EnableTemperature",
    "GetErrorCodes",
    "SetClampState",
    "SetShakingRpm",
    "SetTargetTemperature",
    "DeviceNotFoundError",
    "InvalidArgumentError",
    "NotConnectedError",
    "ProtocolError",
    "TekmaticError",
    "TransportError",
    "CONTROLLER_SLOT",
    "DEVICE_TYPE_NAMES",
    "NO_DEVICE",
    "NO_SLOT_MODULE",
    "NUM_SLOTS",
    "SLOT_IDS",
    "ConnectionSession",
    "ConnectionState",
    "ResultCode",
    "SlotDevice",
    "SlotSnapshot",
    "StatusSnapshot",
    "device_type_name",
]
