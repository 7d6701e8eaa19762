"""Control-surface boundary for remote front-ends.

A front-end (an OPC UA node manager, an RPC server, the CLI's ``call`` command)
knows operations by name and passes loosely typed arguments. This module turns
``("SetTargetTemperature", ["2", "37.5"])`` into a `SetTargetTemperature` command,
runs it through the controller and flattens the published snapshot into the
variable names such front-ends expose.

Operation names and result contracts:

| Operation            | Arguments          | Result                 |
|----------------------|--------------------|------------------------|
| DiscoverDevices      | none               | device count           |
| Connect/ConnectToSlot| [slot id or serial]| 0 / -1 / -2            |
| ConnectBySerial      | serial             | 0 / -1 / -2            |
| Disconnect           | none               | 0 / -1                 |
| SetTargetTemperature | [slot id], degC    | 0 / -1                 |
| EnableTemperature    | [slot id], bool    | 0 / -1                 |
| SetShakingRpm        | [slot id], rpm     | 0 / -1                 |
| EnableShaking        | [slot id], bool    | 0 / -1                 |
| SetClampState        | closed             | 0 / -1                 |
| ClearErrorCodes      | none               | 0 / -1                 |
| GetErrorCodes        | none               | error code string      |
"""

from __future__ import annotations

import math
from typing import Any, Sequence

from loguru import logger

from tekmatic.device.controller import TekmaticController
from tekmatic.types import (
    AnyCommand,
    ClearErrorCodes,
    ConnectBySerial,
    ConnectFirstAvailable,
    ConnectToSlot,
    Disconnect,
    DiscoverDevices,
    EnableShaking,
    EnableTemperature,
    GetErrorCodes,
    InvalidArgumentError,
    ResultCode,
    SetClampState,
    SetShakingRpm,
    SetTargetTemperature,
    StatusSnapshot,
)

OPERATIONS = {
    "DiscoverDevices": "Discover the devices in all slots",
    "Connect": "Connect to a slot id or serial number (first device if omitted)",
    "ConnectToSlot": "Connect to a slot id or serial number",
    "ConnectBySerial": "Connect to the device with the given serial number",
    "Disconnect": "Disconnect from the connected slot",
    "SetTargetTemperature": "Set target temperature [slot id] degC",
    "EnableTemperature": "Enable/disable temperature control [slot id] bool",
    "SetShakingRpm": "Set shaking speed [slot id] rpm",
    "EnableShaking": "Enable/disable shaking [slot id] bool",
    "SetClampState": "Close (true) or open (false) the clamps",
    "ClearErrorCodes": "Clear the controller error codes",
    "GetErrorCodes": "Read the controller error codes",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def parse_int(value: Any, what: str = "value") -> int:
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{what} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidArgumentError(f"{what} must be an integer, got {value!r}")


def parse_float(value: Any, what: str = "value") -> float:
    if isinstance(value, bool):
        raise InvalidArgumentError(f"{what} must be a number, got {value!r}")
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"{what} must be a number, got {value!r}") from None
    if not math.isfinite(result):
        raise InvalidArgumentError(f"{what} must be finite, got {value!r}")
    return result


def parse_bool(value: Any, what: str = "value") -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    raise InvalidArgumentError(f"{what} must be a boolean, got {value!r}")


def _connect_command(args: Sequence[Any]) -> AnyCommand:
    if not args:
        return ConnectFirstAvailable()
    if len(args) > 1:
        raise InvalidArgumentError(f"Connect takes one argument, got {len(args)}")
    target = args[0]
    if isinstance(target, str):
        target = target.strip()
        try:
            return ConnectToSlot(slot_id=int(target))
        except ValueError:
            return ConnectBySerial(serial=target)
    return ConnectToSlot(slot_id=parse_int(target, "slot id"))


def _slot_and_value(op: str, args: Sequence[Any]) -> tuple[int | None, Any]:
    match len(args):
        case 1:
            return None, args[0]
        case 2:
            return parse_int(args[0], "slot id"), args[1]
    raise InvalidArgumentError(f"{op} takes [slot id] and a value, got {len(args)} args")


def _no_args(op: str, args: Sequence[Any]) -> None:
    if args:
        raise InvalidArgumentError(f"{op} takes no arguments, got {len(args)}")


def build_command(operation: str, args: Sequence[Any] = ()) -> AnyCommand:
    """Map a named operation and its raw arguments onto a command variant.

    Raises `InvalidArgumentError` for unknown operations or malformed arguments.
    """
    match operation:
        case "DiscoverDevices":
            _no_args(operation, args)
            return DiscoverDevices()
        case "Connect" | "ConnectToSlot":
            return _connect_command(args)
        case "ConnectBySerial":
            if len(args) != 1:
                raise InvalidArgumentError("ConnectBySerial takes one argument")
            return ConnectBySerial(serial=str(args[0]).strip())
        case "Disconnect":
            _no_args(operation, args)
            return Disconnect()
        case "SetTargetTemperature":
            slot_id, value = _slot_and_value(operation, args)
            return SetTargetTemperature(
                celsius=parse_float(value, "temperature"), slot_id=slot_id
            )
        case "EnableTemperature":
            slot_id, value = _slot_and_value(operation, args)
            return EnableTemperature(enable=parse_bool(value, "enable"), slot_id=slot_id)
        case "SetShakingRpm":
            slot_id, value = _slot_and_value(operation, args)
            return SetShakingRpm(rpm=parse_int(value, "rpm"), slot_id=slot_id)
        case "EnableShaking":
            slot_id, value = _slot_and_value(operation, args)
            return EnableShaking(enable=parse_bool(value, "enable"), slot_id=slot_id)
        case "SetClampState":
            if len(args) != 1:
                raise InvalidArgumentError("SetClampState takes one argument")
            return SetClampState(closed=parse_bool(args[0], "closed"))
        case "ClearErrorCodes":
            _no_args(operation, args)
            return ClearErrorCodes()
        case "GetErrorCodes":
            _no_args(operation, args)
            return GetErrorCodes()
    raise InvalidArgumentError(f"Unknown operation: {operation}")


def read_variables(snapshot: StatusSnapshot) -> dict[str, Any]:
    """Flatten a snapshot into published variable names."""
    variables = {
        "IsConnected": snapshot.is_connected,
        "ConnectedSlot": snapshot.connected_slot,
        "Temperature": snapshot.temperature,
        "TargetTemperature": snapshot.target_temperature,
        "ShakingRpm": snapshot.shaking_rpm,
        "TargetShakingRpm": snapshot.target_shaking_rpm,
        "IsShaking": snapshot.is_shaking,
        "IsClampClosed": snapshot.is_clamp_closed,
        "ConnectedDeviceSerial": snapshot.connected_device_serial,
        "SerialNumber": snapshot.connected_device_serial,
        "DeviceName": snapshot.device_name,
        "DeviceType": snapshot.device_type,
        "DeviceCount": snapshot.device_count,
    }
    for slot in snapshot.slots:
        prefix = f"Slot{slot.slot_id}"
        variables[f"{prefix}.Name"] = slot.name
        variables[f"{prefix}.Serial"] = slot.serial
        variables[f"{prefix}.Type"] = slot.type
        variables[f"{prefix}.Present"] = slot.present
    return variables


class ControlSurface:
    """Named-operation front door of a `TekmaticController`."""

    def __init__(self, controller: TekmaticController):
        self.controller = controller

    async def call(self, operation: str, *args) -> int | str:
        """Run a named operation. Malformed calls answer -1 ("" for GetErrorCodes)."""
        try:
            command = build_command(operation, args)
        except InvalidArgumentError as e:
            logger.warning("Rejected call {}{}: {}", operation, args, e)
            return "" if operation == "GetErrorCodes" else ResultCode.FAILURE
        logger.debug("Call {} -> {}", operation, command)
        return await self.controller.execute(command)

    def variables(self) -> dict[str, Any]:
        return read_variables(self.controller.read_model.snapshot())
