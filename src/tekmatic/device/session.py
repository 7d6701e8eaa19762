"""Connection state machine: which single slot, if any, is under control.

    DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTING -> DISCONNECTED

All methods issue device traffic and must be called with the link guard held.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from tekmatic.device import protocol
from tekmatic.device.channel import Link
from tekmatic.device.registry import SlotRegistry
from tekmatic.types import (
    SLOT_IDS,
    ConnectionSession,
    ConnectionState,
    DeviceNotFoundError,
    NotConnectedError,
    SlotDevice,
    TekmaticError,
)


class ConnectionStateMachine:
    def __init__(self, link: Link, registry: SlotRegistry):
        self._link = link
        self._registry = registry
        self.state = ConnectionState.DISCONNECTED
        self.session: Optional[ConnectionSession] = None

    # ------------------------------------------------------------------------------
    # queries (no traffic)
    # ------------------------------------------------------------------------------

    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED and self.session is not None

    @property
    def connected_slot(self) -> int:
        return self.session.slot_id if self.is_connected() else 0

    @property
    def connected_device(self) -> Optional[SlotDevice]:
        if not self.is_connected():
            return None
        return self._registry.get(self.session.slot_id)

    def require_session(self) -> ConnectionSession:
        if not self.is_connected():
            raise NotConnectedError("No slot is connected")
        return self.session

    def resolve_slot(self, slot_id: Optional[int]) -> int:
        """Explicit slot, or the connected one for slot-less calls."""
        if slot_id is None:
            return self.require_session().slot_id
        return slot_id

    def session_for(self, slot_id: int) -> Optional[ConnectionSession]:
        """The session if `slot_id` is the connected slot, else None."""
        if self.is_connected() and self.session.slot_id == slot_id:
            return self.session
        return None

    # ------------------------------------------------------------------------------
    # transitions
    # ------------------------------------------------------------------------------

    def connect(self, slot_id: int) -> None:
        if self.is_connected() and self.session.slot_id == slot_id:
            logger.debug("Already connected to slot {}", slot_id)
            return

        if self.is_connected():
            self.disconnect()

        device = self._registry.get(slot_id) if slot_id in SLOT_IDS else None
        if device is None or not device.present:
            logger.warning("No device found in slot {}", slot_id)
            raise DeviceNotFoundError(f"No device in slot {slot_id}")

        logger.info("Connecting to device in slot {}...", slot_id)
        self.state = ConnectionState.CONNECTING
        try:
            self._link.acknowledge(protocol.enable_temperature(slot_id, True))
        except TekmaticError as e:
            logger.warning("Failed to initialize device in slot {}: {}", slot_id, e)
            self.state = ConnectionState.DISCONNECTED
            raise
        except Exception:
            self.state = ConnectionState.DISCONNECTED
            raise

        self.session = ConnectionSession(slot_id=slot_id)
        self._registry.mark_connected(slot_id, True)
        self.state = ConnectionState.CONNECTED
        logger.info("Connected to device in slot {}: {}", slot_id, device.name)

    def connect_by_serial(self, serial: str) -> None:
        device = self._registry.find_by_serial(serial)
        if device is None:
            logger.warning("No device found with serial '{}'", serial)
            raise DeviceNotFoundError(f"No device with serial '{serial}'")
        self.connect(device.slot_id)

    def disconnect(self) -> None:
        """Tear down the session. Always ends DISCONNECTED locally.

        Disabling temperature control (and shaking, when active) is best-effort:
        an unacknowledged step is logged and the teardown carries on.
        """
        if not self.is_connected():
            return

        session = self.session
        slot_id = session.slot_id
        logger.info("Disconnecting from device in slot {}...", slot_id)
        self.state = ConnectionState.DISCONNECTING
        try:
            try:
                self._link.acknowledge(protocol.enable_temperature(slot_id, False))
            except TekmaticError as e:
                logger.warning(
                    "Failed to disable temperature control on slot {}: {}", slot_id, e
                )
            if session.shaking:
                try:
                    self._link.acknowledge(protocol.enable_shaking(slot_id, False))
                except TekmaticError as e:
                    logger.warning(
                        "Failed to disable shaking on slot {}: {}", slot_id, e
                    )
        finally:
            self._registry.mark_connected(slot_id, False)
            self.session = None
            self.state = ConnectionState.DISCONNECTED
        logger.info("Disconnected from slot {}", slot_id)

    def after_discovery(self) -> None:
        """Re-attach the session to a freshly rebuilt registry.

        Discovery replaces every entry; if the connected slot still holds a
        device the new entry is flagged connected, otherwise the session is
        torn down.
        """
        if not self.is_connected():
            return
        device = self._registry.get(self.session.slot_id)
        if device is not None and device.present:
            device.connected = True
            return
        logger.warning(
            "Connected slot {} no longer holds a device, disconnecting",
            self.session.slot_id,
        )
        self.disconnect()
