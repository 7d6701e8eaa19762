"""Slot registry and the discovery pass that (re)builds it."""

from __future__ import annotations

from typing import Iterator, Optional

from loguru import logger

from tekmatic.device import protocol
from tekmatic.device.channel import Link
from tekmatic.types import (
    NO_SLOT_MODULE,
    NUM_SLOTS,
    SLOT_IDS,
    ProtocolError,
    SlotDevice,
    TekmaticError,
    TransportError,
)


class SlotRegistry:
    """In-memory table of the controller's slots.

    Empty until the first successful discovery, then always exactly one entry
    per slot. Entries are replaced wholesale, never merged.
    """

    def __init__(self):
        self._slots: dict[int, SlotDevice] = {}
        self.firmware: str = ""

    def replace(self, devices: list[SlotDevice]) -> None:
        slot_ids = sorted(d.slot_id for d in devices)
        if slot_ids != list(SLOT_IDS):
            raise ValueError(
                f"Registry needs exactly one entry per slot {SLOT_IDS}, got {slot_ids}"
            )
        self._slots = {d.slot_id: d for d in devices}

    def clear(self) -> None:
        self._slots = {}
        self.firmware = ""

    def is_empty(self) -> bool:
        return not self._slots

    def __len__(self):
        return len(self._slots)

    def __iter__(self) -> Iterator[SlotDevice]:
        return iter(self.devices())

    def devices(self) -> list[SlotDevice]:
        return [self._slots[slot_id] for slot_id in sorted(self._slots)]

    def get(self, slot_id: int) -> Optional[SlotDevice]:
        return self._slots.get(slot_id)

    def find_by_serial(self, serial: str) -> Optional[SlotDevice]:
        if not serial:
            return None
        for device in self.devices():
            if device.present and device.serial == serial:
                return device
        return None

    def first_present(self) -> Optional[SlotDevice]:
        for device in self.devices():
            if device.present:
                return device
        return None

    def present_count(self) -> int:
        return sum(1 for d in self._slots.values() if d.present)

    def mark_connected(self, slot_id: int, connected: bool) -> None:
        device = self._slots.get(slot_id)
        if device is not None:
            device.connected = connected


def probe_slot(link: Link, slot_id: int) -> SlotDevice:
    """Identify the device in one slot. Never raises for slot-level failures."""
    try:
        type_code = link.query_int(protocol.device_type_query(slot_id))
    except (TransportError, ProtocolError) as e:
        logger.info("  - Slot {}: {} ({})", slot_id, NO_SLOT_MODULE, e)
        return SlotDevice.empty(slot_id, name=NO_SLOT_MODULE)

    serial = ""
    try:
        serial = link.query(protocol.serial_query(slot_id)).strip()
    except (TransportError, ProtocolError) as e:
        logger.warning("Could not read serial number of slot {}: {}", slot_id, e)

    device = SlotDevice.found(slot_id, type_code, serial)
    logger.info("  - {}", device)
    return device


def discover(link: Link, registry: SlotRegistry) -> Optional[int]:
    """Run one discovery pass. The caller must hold the link guard.

    The firmware query on slot 0 doubles as a liveness probe: if it fails the
    link is presumed down, the registry is left untouched and None is returned.
    Otherwise every slot is probed and the registry replaced. Returns the number
    of slots holding a device.
    """
    logger.info("Discovering devices...")
    try:
        firmware = link.query(protocol.firmware_query()).strip()
    except TekmaticError as e:
        logger.error("Failed to communicate with the controller: {}", e)
        return None

    logger.info("Controller firmware: {}", firmware)
    registry.clear()
    registry.firmware = firmware
    devices = [probe_slot(link, slot_id) for slot_id in range(1, NUM_SLOTS + 1)]
    registry.replace(devices)
    count = registry.present_count()
    logger.info("Discovery found {} device(s)", count)
    return count
