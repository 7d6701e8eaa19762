"""Error taxonomy for the controller core.

These exceptions travel only *inside* the core: the codec and channel raise them,
the status poller absorbs them, and the command dispatcher converts them to the
integer result codes callers see (`TekmaticError.result_code`).
"""

from __future__ import annotations


class TekmaticError(Exception):
    """Base exception for controller errors."""

    result_code: int = -1


class TransportError(TekmaticError):
    """No (or empty) response: link down or device silent."""

    pass


class ProtocolError(TekmaticError):
    """Response present but echo prefix mismatched or payload unparseable."""

    pass


class NotConnectedError(TekmaticError):
    """Slot-less command issued while no slot session is active."""

    pass


class DeviceNotFoundError(TekmaticError):
    """Target slot or serial absent, or slot holds no device."""

    result_code = -2


class InvalidArgumentError(TekmaticError):
    """Out-of-range or malformed input."""

    pass
