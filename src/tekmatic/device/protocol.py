"""ASCII wire protocol of the multi-slot controller.

A request frame is ``{slot}{COMMAND}{args}``, e.g. ``1STT365`` (set slot 1 target
to 36.5 degC) or ``0RFV0`` (controller firmware query). The controller answers
with the lowercased echo of ``{slot}{command}``, one reply status character, then
the payload::

    request   1RTT
    response  1rtt0365
              ^^^^      echo (must match the request)
                  ^     status digit (not interpreted)
                   ^^^  payload, from offset 5

An empty response means the controller (or the slot) did not answer.

Functions here raise `TransportError` for empty responses and `ProtocolError` for
anything present but untrustworthy. Callers that must not fail (the poller, the
dispatcher) catch those and fall back to cached values or result codes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from tekmatic.types import (
    CONTROLLER_SLOT,
    InvalidArgumentError,
    ProtocolError,
    TransportError,
)

PAYLOAD_OFFSET = 5
MIN_VALUE_RESPONSE_LEN = PAYLOAD_OFFSET + 1

# controller-wide (slot 0)
READ_FIRMWARE = "RFV"
READ_CLAMP_STATE = "RCS"
SET_CLAMP_STATE = "SCS"
READ_ERROR_CODES = "REC"
CLEAR_ERROR_CODES = "CEC"

# per slot
READ_DEVICE_TYPE = "RTD"
READ_SERIAL = "RSN"
ENABLE_TEMPERATURE = "ATE"
READ_TEMPERATURE = "RAT"
READ_TARGET_TEMPERATURE = "RTT"
SET_TARGET_TEMPERATURE = "STT"
READ_SHAKING_RPM = "RSR"
SET_SHAKING_RPM = "SSR"
ENABLE_SHAKING = "ASE"

CLAMP_OPEN = 1
CLAMP_CLOSED = 2


@dataclass(frozen=True)
class Request:
    slot_id: int
    command: str
    args: str = ""

    def encode(self) -> str:
        return f"{self.slot_id}{self.command}{self.args}"

    @property
    def prefix(self) -> str:
        """Echo a trustworthy response must start with."""
        return f"{self.slot_id}{self.command}".lower()

    def __str__(self):
        return self.encode()


def check_echo(request: Request, response: str) -> str:
    """Validate that `response` answers `request`; returns the response."""
    if not response:
        raise TransportError(f"No response to '{request}'")
    if not response.startswith(request.prefix):
        raise ProtocolError(
            f"Response '{response}' does not echo '{request.prefix}' for '{request}'"
        )
    return response


def decode_payload(request: Request, response: str) -> str:
    check_echo(request, response)
    if len(response) < MIN_VALUE_RESPONSE_LEN:
        raise ProtocolError(f"Response '{response}' to '{request}' has no payload")
    return response[PAYLOAD_OFFSET:]


def decode_int(request: Request, response: str) -> int:
    payload = decode_payload(request, response)
    try:
        return int(payload.strip())
    except ValueError:
        raise ProtocolError(
            f"Non-numeric payload '{payload}' in response to '{request}'"
        ) from None


def decode_tenths(request: Request, response: str) -> float:
    """Decode a temperature reported in tenths of a degree (``365`` -> 36.5)."""
    payload = decode_payload(request, response)
    try:
        value = float(payload.strip())
    except ValueError:
        raise ProtocolError(
            f"Non-numeric payload '{payload}' in response to '{request}'"
        ) from None
    if not math.isfinite(value):
        raise ProtocolError(f"Non-finite payload '{payload}' in response to '{request}'")
    return value / 10.0


def to_tenths(celsius: float) -> int:
    if not isinstance(celsius, (int, float)) or isinstance(celsius, bool):
        raise InvalidArgumentError(f"Temperature must be a number, got {celsius!r}")
    if not math.isfinite(celsius):
        raise InvalidArgumentError(f"Temperature must be finite, got {celsius!r}")
    return int(round(celsius * 10))


def flag(enable: bool) -> str:
    return "1" if enable else "0"


# -- request builders ----------------------------------------------------------


def firmware_query() -> Request:
    return Request(CONTROLLER_SLOT, READ_FIRMWARE, "0")


def device_type_query(slot_id: int) -> Request:
    return Request(slot_id, READ_DEVICE_TYPE)


def serial_query(slot_id: int) -> Request:
    return Request(slot_id, READ_SERIAL, "1")


def enable_temperature(slot_id: int, enable: bool) -> Request:
    return Request(slot_id, ENABLE_TEMPERATURE, flag(enable))


def set_target_temperature(slot_id: int, celsius: float) -> Request:
    return Request(slot_id, SET_TARGET_TEMPERATURE, str(to_tenths(celsius)))


def set_shaking_rpm(slot_id: int, rpm: int) -> Request:
    if isinstance(rpm, bool) or not isinstance(rpm, int) or rpm < 0:
        raise InvalidArgumentError(f"RPM must be a non-negative integer, got {rpm!r}")
    return Request(slot_id, SET_SHAKING_RPM, str(rpm))


def enable_shaking(slot_id: int, enable: bool) -> Request:
    return Request(slot_id, ENABLE_SHAKING, flag(enable))


def set_clamp_state(closed: bool) -> Request:
    state = CLAMP_CLOSED if closed else CLAMP_OPEN
    return Request(CONTROLLER_SLOT, SET_CLAMP_STATE, str(state))


def clamp_state_query() -> Request:
    return Request(CONTROLLER_SLOT, READ_CLAMP_STATE)


def error_codes_query() -> Request:
    return Request(CONTROLLER_SLOT, READ_ERROR_CODES)


def clear_error_codes() -> Request:
    return Request(CONTROLLER_SLOT, CLEAR_ERROR_CODES)
