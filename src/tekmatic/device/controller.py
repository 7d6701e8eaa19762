"""Slot controller facade: the command dispatcher.

`TekmaticController` owns the channel, its guard, the slot registry, the
connection state machine, the status poller and the published read model. Every
command runs under the link guard in a worker thread and reports an integer
result code (`ResultCode`): 0 on success, -1 on failure, -2 when the target slot
or serial holds no device. Exceptions never cross this boundary.

Examples
--------
```python
controller = TekmaticController(load_controller_config("mock"))
await controller.initialize()
await controller.connect_to_slot(1)
await controller.set_target_temperature(37.0)
print(controller.read_model.snapshot())
await controller.shutdown()
```
"""

from __future__ import annotations

from typing import Callable, Optional, assert_never

from loguru import logger

from tekmatic.device import protocol
from tekmatic.device.channel import Channel, Link, SerialChannel
from tekmatic.device.device import Device
from tekmatic.device.mock import MockChannel
from tekmatic.device.poller import StatusPoller
from tekmatic.device.read_model import ReadModel
from tekmatic.device.registry import SlotRegistry, discover
from tekmatic.device.session import ConnectionStateMachine
from tekmatic.system.base_config import ControllerConfig
from tekmatic.types import (
    SLOT_IDS,
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
    SlotDevice,
    StatusSnapshot,
    TekmaticError,
    TransportError,
)
from tekmatic.util import find_controller_port


def _check_slot(slot_id) -> int:
    if isinstance(slot_id, bool) or not isinstance(slot_id, int):
        raise InvalidArgumentError(f"Slot id must be an integer, got {slot_id!r}")
    if slot_id not in SLOT_IDS:
        raise InvalidArgumentError(
            f"Slot id must be in {SLOT_IDS[0]}..{SLOT_IDS[-1]}, got {slot_id}"
        )
    return slot_id


class TekmaticController(Device):
    def __init__(
        self,
        config: Optional[ControllerConfig] = None,
        channel: Optional[Channel] = None,
    ):
        super().__init__()
        self.config = config if config is not None else ControllerConfig(mock=True)
        if channel is None:
            if self.config.mock:
                channel = MockChannel()
            else:
                channel = SerialChannel(
                    self.config.port,
                    baudrate=self.config.baudrate,
                    read_timeout=self.config.read_timeout,
                    write_timeout=self.config.write_timeout,
                )
        self.link = Link(channel)
        self.registry = SlotRegistry()
        self.state_machine = ConnectionStateMachine(self.link, self.registry)
        self.read_model = ReadModel()
        self.poller = StatusPoller(
            self.link, self.state_machine, self.read_model, self.config.poll_interval
        )

    @property
    def channel(self) -> Channel:
        return self.link.channel

    # ------------------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------------------

    def open(self) -> tuple[bool, str]:
        channel = self.channel
        if isinstance(channel, SerialChannel) and not channel.port:
            logger.info("No port configured, searching for a slot controller...")
            port = find_controller_port(
                baudrate=channel.baudrate, timeout=channel.read_timeout
            )
            if port is None:
                logger.error("No slot controller found on any serial port")
                return False, "No slot controller found on any serial port"
            channel.port = port
        return channel.open()

    def close(self):
        self.channel.close()

    def is_connected(self) -> bool:
        """A slot session is active (published ``IsConnected``)."""
        return self.read_model.snapshot().is_connected

    async def initialize(self, start_polling: bool = True) -> bool:
        """Open the link, check the controller answers, discover its slots.

        Returns False (never raises) if the controller is unreachable.
        """
        try:
            ok, msg = self.open()
            if not ok:
                logger.error("Failed to open controller link: {}", msg)
                self.close()
                return False
            count = await self.link.run_async(self._locked, self._discover)
            if count is None:
                logger.error("Controller did not respond, initialization failed")
                self.close()
                return False
            if start_polling:
                self.poller.start()
            logger.info("Controller initialized")
            return True
        except Exception:
            logger.exception("Error initializing controller.")
            self.close()
            return False

    async def shutdown(self) -> None:
        """Stop polling, disconnect best-effort and close the link."""
        try:
            await self.poller.stop()
            await self.disconnect()
        finally:
            self.close()
            logger.info("Controller shut down")

    # ------------------------------------------------------------------------------
    # dispatch plumbing
    # ------------------------------------------------------------------------------

    def _publish(self) -> None:
        sm = self.state_machine
        self.read_model.publish_registry(self.registry.devices())
        self.read_model.publish_session(
            sm.session if sm.is_connected() else None, sm.connected_device
        )

    def _locked(self, fn: Callable, *args):
        """Run `fn` (guard held), then re-publish whatever it changed."""
        try:
            return fn(*args)
        finally:
            self._publish()

    async def _dispatch(self, name: str, fn: Callable, *args) -> int:
        try:
            await self.link.run_async(self._locked, fn, *args)
        except TekmaticError as e:
            logger.warning("{} failed: {}", name, e)
            return e.result_code
        except Exception:
            logger.exception("Unexpected error in {}.", name)
            return ResultCode.FAILURE
        return ResultCode.SUCCESS

    def _target_slot(self, slot_id: Optional[int]) -> int:
        if slot_id is None:
            return self.state_machine.resolve_slot(None)
        return _check_slot(slot_id)

    # ------------------------------------------------------------------------------
    # guarded steps (sync, guard held)
    # ------------------------------------------------------------------------------

    def _discover(self) -> Optional[int]:
        count = discover(self.link, self.registry)
        if count is not None:
            self.state_machine.after_discovery()
        return count

    def _connect_first_available(self) -> None:
        if self.state_machine.is_connected():
            return
        if self.registry.is_empty() and self._discover() is None:
            raise TransportError("Controller did not respond to discovery")
        device = self.registry.first_present()
        if device is None:
            raise TekmaticError("No device available to connect to")
        self.state_machine.connect(device.slot_id)

    def _set_target_temperature(self, celsius: float, slot_id: Optional[int]) -> None:
        slot = self._target_slot(slot_id)
        request = protocol.set_target_temperature(slot, celsius)
        logger.info("Setting target temperature of slot {} to {} degC", slot, celsius)
        self.link.acknowledge(request)
        session = self.state_machine.session_for(slot)
        if session is not None:
            session.target_temperature = protocol.to_tenths(celsius) / 10.0

    def _enable_temperature(self, enable: bool, slot_id: Optional[int]) -> None:
        slot = self._target_slot(slot_id)
        logger.info(
            "{} temperature control on slot {}",
            "Enabling" if enable else "Disabling",
            slot,
        )
        self.link.acknowledge(protocol.enable_temperature(slot, enable))
        session = self.state_machine.session_for(slot)
        if session is not None:
            session.temperature_enabled = enable

    def _set_shaking_rpm(self, rpm: int, slot_id: Optional[int]) -> None:
        slot = self._target_slot(slot_id)
        request = protocol.set_shaking_rpm(slot, rpm)
        logger.info("Setting shaking speed of slot {} to {} rpm", slot, rpm)
        self.link.acknowledge(request)
        session = self.state_machine.session_for(slot)
        if session is not None:
            session.target_rpm = rpm
            if session.shaking:
                session.shaking_rpm = rpm

    def _enable_shaking(self, enable: bool, slot_id: Optional[int]) -> None:
        slot = self._target_slot(slot_id)
        logger.info("{} shaking on slot {}", "Enabling" if enable else "Disabling", slot)
        self.link.acknowledge(protocol.enable_shaking(slot, enable))
        session = self.state_machine.session_for(slot)
        if session is not None:
            session.shaking = enable
            session.shaking_rpm = session.target_rpm if enable else 0

    def _set_clamp_state(self, closed: bool) -> None:
        session = self.state_machine.require_session()
        logger.info("{} clamps", "Closing" if closed else "Opening")
        self.link.acknowledge(protocol.set_clamp_state(closed))
        session.clamp_closed = closed

    def _clear_error_codes(self) -> None:
        self.state_machine.require_session()
        logger.info("Clearing error codes")
        self.link.acknowledge(protocol.clear_error_codes())

    def _get_error_codes(self) -> str:
        self.state_machine.require_session()
        return self.link.query(protocol.error_codes_query())

    def _read_for_slot(
        self,
        slot_id: int,
        field: str,
        decode: Callable[[protocol.Request], float | int],
        request: protocol.Request,
        default,
    ):
        session = self.state_machine.session_for(slot_id)
        try:
            value = decode(request)
        except TekmaticError as e:
            logger.warning("Reading {} of slot {} failed: {}", field, slot_id, e)
            return getattr(session, field) if session is not None else default
        if session is not None:
            setattr(session, field, value)
        return value

    # ------------------------------------------------------------------------------
    # commands
    # ------------------------------------------------------------------------------

    async def discover_devices(self) -> int:
        """Rebuild the slot registry. Returns the number of slots holding a device."""
        try:
            count = await self.link.run_async(self._locked, self._discover)
        except Exception:
            logger.exception("Unexpected error in DiscoverDevices.")
            return 0
        return 0 if count is None else count

    async def connect_to_slot(self, slot_id: int) -> int:
        return await self._dispatch(
            "ConnectToSlot", self.state_machine.connect, slot_id
        )

    async def connect_by_serial(self, serial: str) -> int:
        return await self._dispatch(
            "ConnectBySerial", self.state_machine.connect_by_serial, serial
        )

    async def connect_first_available(self) -> int:
        return await self._dispatch(
            "ConnectFirstAvailable", self._connect_first_available
        )

    async def disconnect(self) -> int:
        return await self._dispatch("Disconnect", self.state_machine.disconnect)

    async def set_target_temperature(
        self, celsius: float, slot_id: Optional[int] = None
    ) -> int:
        return await self._dispatch(
            "SetTargetTemperature", self._set_target_temperature, celsius, slot_id
        )

    async def enable_temperature(
        self, enable: bool, slot_id: Optional[int] = None
    ) -> int:
        return await self._dispatch(
            "EnableTemperature", self._enable_temperature, enable, slot_id
        )

    async def set_shaking_rpm(self, rpm: int, slot_id: Optional[int] = None) -> int:
        return await self._dispatch(
            "SetShakingRpm", self._set_shaking_rpm, rpm, slot_id
        )

    async def enable_shaking(self, enable: bool, slot_id: Optional[int] = None) -> int:
        return await self._dispatch(
            "EnableShaking", self._enable_shaking, enable, slot_id
        )

    async def set_clamp_state(self, closed: bool) -> int:
        return await self._dispatch("SetClampState", self._set_clamp_state, closed)

    async def clear_error_codes(self) -> int:
        return await self._dispatch("ClearErrorCodes", self._clear_error_codes)

    async def get_error_codes(self) -> str:
        """Controller error codes, "" when not connected or on any failure."""
        try:
            return await self.link.run_async(self._get_error_codes)
        except TekmaticError as e:
            logger.warning("GetErrorCodes failed: {}", e)
        except Exception:
            logger.exception("Unexpected error in GetErrorCodes.")
        return ""

    async def _read_slot_value(
        self,
        slot_id: int,
        field: str,
        command: str,
        decode: Callable[[protocol.Request], float | int],
        default,
    ):
        try:
            slot = _check_slot(slot_id)
        except InvalidArgumentError as e:
            logger.warning("Reading {} failed: {}", field, e)
            return default
        try:
            return await self.link.run_async(
                self._locked,
                self._read_for_slot,
                slot,
                field,
                decode,
                protocol.Request(slot, command),
                default,
            )
        except Exception:
            logger.exception("Unexpected error reading {} of slot {}.", field, slot)
            return default

    async def get_temperature_for_slot(self, slot_id: int) -> float:
        """Live temperature of any slot; the cached value (or 0.0) on failure."""
        return await self._read_slot_value(
            slot_id,
            "temperature",
            protocol.READ_TEMPERATURE,
            self.link.query_tenths,
            0.0,
        )

    async def get_target_temperature_for_slot(self, slot_id: int) -> float:
        return await self._read_slot_value(
            slot_id,
            "target_temperature",
            protocol.READ_TARGET_TEMPERATURE,
            self.link.query_tenths,
            0.0,
        )

    async def get_shaking_rpm_for_slot(self, slot_id: int) -> int:
        return await self._read_slot_value(
            slot_id,
            "shaking_rpm",
            protocol.READ_SHAKING_RPM,
            self.link.query_int,
            0,
        )

    async def poll(self) -> StatusSnapshot:
        """Run one status poll tick now and return the published snapshot."""
        await self.poller.tick()
        return self.read_model.snapshot()

    async def execute(self, command: AnyCommand) -> int | str:
        """Dispatch one command variant. Only `GetErrorCodes` returns a str."""
        match command:
            case DiscoverDevices():
                return await self.discover_devices()
            case ConnectToSlot(slot_id=slot_id):
                return await self.connect_to_slot(slot_id)
            case ConnectBySerial(serial=serial):
                return await self.connect_by_serial(serial)
            case ConnectFirstAvailable():
                return await self.connect_first_available()
            case Disconnect():
                return await self.disconnect()
            case SetTargetTemperature(celsius=celsius, slot_id=slot_id):
                return await self.set_target_temperature(celsius, slot_id)
            case EnableTemperature(enable=enable, slot_id=slot_id):
                return await self.enable_temperature(enable, slot_id)
            case SetShakingRpm(rpm=rpm, slot_id=slot_id):
                return await self.set_shaking_rpm(rpm, slot_id)
            case EnableShaking(enable=enable, slot_id=slot_id):
                return await self.enable_shaking(enable, slot_id)
            case SetClampState(closed=closed):
                return await self.set_clamp_state(closed)
            case ClearErrorCodes():
                return await self.clear_error_codes()
            case GetErrorCodes():
                return await self.get_error_codes()
            case _:
                assert_never(command)

    # ------------------------------------------------------------------------------
    # cached accessors (no traffic)
    # ------------------------------------------------------------------------------

    def is_shaking(self) -> bool:
        return self.read_model.snapshot().is_shaking

    def get_temperature(self) -> float:
        return self.read_model.snapshot().temperature

    def get_target_temperature(self) -> float:
        return self.read_model.snapshot().target_temperature

    def get_shaking_rpm(self) -> int:
        return self.read_model.snapshot().shaking_rpm

    def get_target_shaking_rpm(self) -> int:
        return self.read_model.snapshot().target_shaking_rpm

    def is_clamp_closed(self) -> bool:
        return self.read_model.snapshot().is_clamp_closed

    def get_connected_device(self) -> Optional[SlotDevice]:
        return self.state_machine.connected_device

    def get_discovered_devices(self) -> list[SlotDevice]:
        return self.registry.devices()

    def get_device_count(self) -> int:
        return self.read_model.snapshot().device_count

