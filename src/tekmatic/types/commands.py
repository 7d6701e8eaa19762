"""Command variants accepted by the controller's dispatcher.

Every remote-callable operation is one dataclass here, and `AnyCommand` is the
closed union of them. `TekmaticController.execute` matches over that union
exhaustively, so adding a variant without handling it is a type error rather than
a runtime fallthrough.

Commands serialize with msgpack (via mashumaro) so a front-end can ship them over
whatever transport it uses; `Command.from_msgpack` picks the right subclass from
the `op` field.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from mashumaro.mixins.msgpack import DataClassMessagePackMixin
from mashumaro.types import Discriminator


@dataclass(kw_only=True)
class Command(DataClassMessagePackMixin):
    """Base class for all commands."""

    op: str  # subclass to define

    class Config:
        discriminator = Discriminator(field="op", include_subtypes=True)


@dataclass(kw_only=True)
class DiscoverDevices(Command):
    op: str = "DiscoverDevices"


@dataclass(kw_only=True)
class ConnectToSlot(Command):
    op: str = "ConnectToSlot"
    slot_id: int


@dataclass(kw_only=True)
class ConnectBySerial(Command):
    op: str = "ConnectBySerial"
    serial: str


@dataclass(kw_only=True)
class ConnectFirstAvailable(Command):
    op: str = "ConnectFirstAvailable"


@dataclass(kw_only=True)
class Disconnect(Command):
    op: str = "Disconnect"


@dataclass(kw_only=True)
class SetTargetTemperature(Command):
    op: str = "SetTargetTemperature"
    celsius: float
    slot_id: Optional[int] = None  # None -> connected slot


@dataclass(kw_only=True)
class EnableTemperature(Command):
    op: str = "EnableTemperature"
    enable: bool
    slot_id: Optional[int] = None


@dataclass(kw_only=True)
class SetShakingRpm(Command):
    op: str = "SetShakingRpm"
    rpm: int
    slot_id: Optional[int] = None


@dataclass(kw_only=True)
class EnableShaking(Command):
    op: str = "EnableShaking"
    enable: bool
    slot_id: Optional[int] = None


@dataclass(kw_only=True)
class SetClampState(Command):
    op: str = "SetClampState"
    closed: bool


@dataclass(kw_only=True)
class ClearErrorCodes(Command):
    op: str = "ClearErrorCodes"


@dataclass(kw_only=True)
class GetErrorCodes(Command):
    op: str = "GetErrorCodes"


AnyCommand = Union[
    DiscoverDevices,
    ConnectToSlot,
    ConnectBySerial,
    ConnectFirstAvailable,
    Disconnect,
    SetTargetTemperature,
    EnableTemperature,
    SetShakingRpm,
    EnableShaking,
    SetClampState,
    ClearErrorCodes,
    GetErrorCodes,
]
