"""Data model for the slot controller: slots, the connection session and the
published status snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum

from mashumaro.mixins.msgpack import DataClassMessagePackMixin

NUM_SLOTS = 6
SLOT_IDS = tuple(range(1, NUM_SLOTS + 1))
CONTROLLER_SLOT = 0  # controller-wide (non-slot) commands

NO_DEVICE = "No Device"
NO_SLOT_MODULE = "No Slot Module"
NO_TYPE = "None"

DEVICE_TYPE_NAMES = {
    0: "Thermoshake",
    1: "CPAC",
    2: "Teleshake",
    12: "Thermoshake AC",
    13: "Teleshake AC",
    14: "Teleshake95 AC",
}


def device_type_name(type_code: int) -> str:
    return DEVICE_TYPE_NAMES.get(type_code, f"Unknown ({type_code})")


class ResultCode(IntEnum):
    SUCCESS = 0
    FAILURE = -1
    NOT_FOUND = -2


class ConnectionState(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    DISCONNECTING = "DISCONNECTING"


@dataclass
class SlotDevice:
    """One slot entry of the registry, rebuilt wholesale on every discovery."""

    slot_id: int
    type_code: int | None = None
    type_name: str = NO_TYPE
    name: str = NO_DEVICE
    serial: str = ""
    present: bool = False
    connected: bool = False

    @classmethod
    def empty(cls, slot_id: int, name: str = NO_DEVICE) -> SlotDevice:
        return cls(slot_id=slot_id, name=name)

    @classmethod
    def found(cls, slot_id: int, type_code: int, serial: str = "") -> SlotDevice:
        type_name = device_type_name(type_code)
        return cls(
            slot_id=slot_id,
            type_code=type_code,
            type_name=type_name,
            name=type_name,
            serial=serial,
            present=True,
        )

    def __str__(self):
        if not self.present:
            return f"Slot {self.slot_id}: {self.name}"
        serial = self.serial or "no serial"
        return f"Slot {self.slot_id}: {self.name} ({serial})"


@dataclass
class ConnectionSession:
    """Live state of the single connected slot. Dropped on disconnect."""

    slot_id: int
    temperature: float = 0.0  # degC
    target_temperature: float = 0.0  # degC
    temperature_enabled: bool = True  # connecting enables temperature control
    shaking_rpm: int = 0
    target_rpm: int = 0
    shaking: bool = False
    clamp_closed: bool = False


@dataclass(frozen=True)
class SlotSnapshot(DataClassMessagePackMixin):
    slot_id: int
    name: str = NO_DEVICE
    serial: str = ""
    type: str = NO_TYPE
    present: bool = False

    @classmethod
    def from_device(cls, device: SlotDevice) -> SlotSnapshot:
        return cls(
            slot_id=device.slot_id,
            name=device.name,
            serial=device.serial,
            type=device.type_name,
            present=device.present,
        )


@dataclass(frozen=True)
class StatusSnapshot(DataClassMessagePackMixin):
    """Consistent copy of everything the controller publishes."""

    is_connected: bool = False
    connected_slot: int = 0
    temperature: float = 0.0
    target_temperature: float = 0.0
    shaking_rpm: int = 0
    target_shaking_rpm: int = 0
    is_shaking: bool = False
    is_clamp_closed: bool = False
    connected_device_serial: str = ""
    device_name: str = ""
    device_type: str = ""
    device_count: int = 0
    slots: tuple[SlotSnapshot, ...] = field(default_factory=tuple)
