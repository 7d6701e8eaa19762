"""Published read model.

Holds the last values the controller made public. Writers (the poller, the
command dispatcher, discovery) replace whole sections under a lock and readers
get a consistent `StatusSnapshot` copy, so they never block on device I/O.
"""

from __future__ import annotations

import dataclasses
import threading
from typing import Iterable, Optional

from tekmatic.types import (
    SLOT_IDS,
    ConnectionSession,
    SlotDevice,
    SlotSnapshot,
    StatusSnapshot,
)


def _empty_slots() -> tuple[SlotSnapshot, ...]:
    return tuple(SlotSnapshot(slot_id=slot_id) for slot_id in SLOT_IDS)


class ReadModel:
    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot = StatusSnapshot(slots=_empty_slots())

    def snapshot(self) -> StatusSnapshot:
        with self._lock:
            return self._snapshot

    def publish_session(
        self,
        session: Optional[ConnectionSession],
        device: Optional[SlotDevice] = None,
    ) -> None:
        """Publish the connection section: live values if connected, defaults if not."""
        if session is None:
            self.publish_disconnected()
            return
        with self._lock:
            self._snapshot = dataclasses.replace(
                self._snapshot,
                is_connected=True,
                connected_slot=session.slot_id,
                temperature=session.temperature,
                target_temperature=session.target_temperature,
                shaking_rpm=session.shaking_rpm,
                target_shaking_rpm=session.target_rpm,
                is_shaking=session.shaking,
                is_clamp_closed=session.clamp_closed,
                connected_device_serial=device.serial if device else "",
                device_name=device.name if device else "",
                device_type=device.type_name if device else "",
            )

    def publish_disconnected(self) -> None:
        with self._lock:
            self._snapshot = StatusSnapshot(
                device_count=self._snapshot.device_count,
                slots=self._snapshot.slots,
            )

    def publish_registry(self, devices: Iterable[SlotDevice]) -> None:
        """Publish per-slot identity and the device count."""
        devices = list(devices)
        if devices:
            slots = tuple(SlotSnapshot.from_device(d) for d in devices)
        else:
            slots = _empty_slots()
        with self._lock:
            self._snapshot = dataclasses.replace(
                self._snapshot,
                device_count=sum(1 for d in devices if d.present),
                slots=slots,
            )

    def slot(self, slot_id: int) -> Optional[SlotSnapshot]:
        for slot in self.snapshot().slots:
            if slot.slot_id == slot_id:
                return slot
        return None
