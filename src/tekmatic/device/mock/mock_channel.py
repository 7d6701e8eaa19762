from __future__ import annotations

import collections
import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from tekmatic.device.channel import Channel
from tekmatic.device.protocol import CLAMP_OPEN
from tekmatic.types import TransportError

MOCK_FIRMWARE = "V1.00 mock"


@dataclass
class MockSlot:
    """Simulated slot module.

    `type_code` None means an empty slot (no answer to the type query); a str is
    sent back verbatim, which lets tests feed non-numeric payloads.
    """

    type_code: int | str | None = 0
    serial: str = ""
    temperature_tenths: int = 250
    target_tenths: int = 0
    temperature_enabled: bool = False
    target_rpm: int = 0
    shaking: bool = False


def default_slots() -> dict[int, MockSlot]:
    return {
        1: MockSlot(type_code=0, serial="TS-0001"),
        3: MockSlot(type_code=2, serial="TL-0003", temperature_tenths=220),
    }


@dataclass
class MockChannel(Channel):
    """In-process stand-in for the slot controller, speaking the wire protocol.

    Fault injection
    ---------------
    responsive : bool
        When False every exchange returns "" (controller unplugged).
    fail_commands : set[str]
        Command mnemonics (e.g. ``"ATE"``) that get no answer.
    garble_commands : set[str]
        Command mnemonics answered with a wrong echo.
    injected : deque[str]
        Responses returned verbatim, one per exchange, before simulating.
    latency : float
        Seconds each exchange takes.
    """

    slots: dict[int, MockSlot] = field(default_factory=default_slots)
    firmware: str = MOCK_FIRMWARE
    clamp: int = CLAMP_OPEN
    error_codes: str = ""
    responsive: bool = True
    latency: float = 0.0
    fail_commands: set[str] = field(default_factory=set)
    garble_commands: set[str] = field(default_factory=set)
    injected: collections.deque = field(default_factory=collections.deque)
    requests: list[str] = field(default_factory=list)
    max_in_flight: int = 0

    def __post_init__(self):
        super().__init__()
        self._open = False
        self._in_flight = 0
        self._count_lock = threading.Lock()

    def open(self):
        self._open = True
        return True, "MockChannel opened"

    def close(self):
        self._open = False

    def is_connected(self) -> bool:
        return self._open

    # -- test helpers -----------------------------------------------------------

    def inject(self, *responses: str) -> None:
        self.injected.extend(responses)

    def commands_sent(self) -> list[str]:
        return [frame[1:4] for frame in self.requests]

    def clear_requests(self) -> None:
        self.requests.clear()

    # -- wire -------------------------------------------------------------------

    def exchange(self, frame: str) -> str:
        if not self._open:
            raise TransportError("Mock channel is not open")
        with self._count_lock:
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
            self.requests.append(frame)
        try:
            if self.latency:
                time.sleep(self.latency)
            return self._respond(frame)
        finally:
            with self._count_lock:
                self._in_flight -= 1

    def _respond(self, frame: str) -> str:
        if self.injected:
            return self.injected.popleft()
        if not self.responsive or len(frame) < 4 or not frame[0].isdigit():
            return ""
        slot_id, command, args = int(frame[0]), frame[1:4], frame[4:]
        if command in self.fail_commands:
            return ""
        if command in self.garble_commands:
            return f"{(slot_id + 1) % 10}{command.lower()}0"

        def reply(payload="") -> str:
            return f"{slot_id}{command.lower()}0{payload}"

        if slot_id == 0:
            match command:
                case "RFV":
                    return reply(self.firmware)
                case "RCS":
                    return reply(self.clamp)
                case "SCS":
                    self.clamp = int(args)
                    return reply()
                case "REC":
                    return reply(self.error_codes)
                case "CEC":
                    self.error_codes = ""
                    return reply()
            logger.debug("Mock controller ignoring {}", frame)
            return ""

        slot = self.slots.get(slot_id)
        if slot is None or slot.type_code is None:
            return ""
        match command:
            case "RTD":
                return reply(slot.type_code)
            case "RSN":
                return reply(slot.serial)
            case "ATE":
                slot.temperature_enabled = args == "1"
                return reply()
            case "RAT":
                return reply(slot.temperature_tenths)
            case "RTT":
                return reply(slot.target_tenths)
            case "STT":
                slot.target_tenths = int(args)
                return reply()
            case "RSR":
                return reply(slot.target_rpm if slot.shaking else 0)
            case "SSR":
                slot.target_rpm = int(args)
                return reply()
            case "ASE":
                slot.shaking = args == "1"
                return reply()
        logger.debug("Mock slot {} ignoring {}", slot_id, frame)
        return ""


def make_mock_channel(slots: Optional[dict[int, MockSlot]] = None, **kwargs):
    """Mock channel that is already open."""
    channel = MockChannel(slots=default_slots() if slots is None else slots, **kwargs)
    channel.open()
    return channel
