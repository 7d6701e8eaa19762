"""Tests for the named-operation boundary."""

import pytest
import pytest_asyncio
from loguru import logger

import tekmatic.util
from tekmatic.device import TekmaticController
from tekmatic.surface import ControlSurface, build_command, read_variables
from tekmatic.types import (
    Command,
    ConnectBySerial,
    ConnectFirstAvailable,
    ConnectToSlot,
    EnableShaking,
    InvalidArgumentError,
    SetClampState,
    SetShakingRpm,
    SetTargetTemperature,
    StatusSnapshot,
)
from tekmatic.util import TEST_LOGLEVEL


class TestBuildCommand:
    def test_connect_variants(self):
        assert build_command("Connect") == ConnectFirstAvailable()
        assert build_command("Connect", ["3"]) == ConnectToSlot(slot_id=3)
        assert build_command("ConnectToSlot", [2]) == ConnectToSlot(slot_id=2)
        assert build_command("Connect", ["SN1"]) == ConnectBySerial(serial="SN1")
        assert build_command("ConnectBySerial", [" SN1 "]) == ConnectBySerial(
            serial="SN1"
        )

    def test_optional_slot(self):
        assert build_command("SetTargetTemperature", ["37.5"]) == SetTargetTemperature(
            celsius=37.5
        )
        assert build_command(
            "SetTargetTemperature", ["2", "37.5"]
        ) == SetTargetTemperature(celsius=37.5, slot_id=2)
        assert build_command("SetShakingRpm", [400]) == SetShakingRpm(rpm=400)
        assert build_command("EnableShaking", ["4", "on"]) == EnableShaking(
            enable=True, slot_id=4
        )
        assert build_command("SetClampState", ["false"]) == SetClampState(closed=False)

    @pytest.mark.parametrize(
        "operation, args",
        [
            ("Teleport", []),
            ("Disconnect", ["1"]),
            ("SetTargetTemperature", []),
            ("SetTargetTemperature", ["1", "2", "3"]),
            ("SetTargetTemperature", ["hot"]),
            ("SetTargetTemperature", ["nan"]),
            ("SetShakingRpm", ["12.5"]),
            ("SetShakingRpm", [True]),
            ("EnableShaking", ["maybe"]),
            ("Connect", ["1", "2"]),
            ("SetClampState", []),
            ("GetErrorCodes", ["x"]),
        ],
    )
    def test_rejects_malformed(self, operation, args):
        with pytest.raises(InvalidArgumentError):
            build_command(operation, args)

    def test_commands_travel_as_msgpack(self):
        command = build_command("SetTargetTemperature", ["2", "37.5"])
        decoded = Command.from_msgpack(command.to_msgpack())
        assert isinstance(decoded, SetTargetTemperature)
        assert decoded == command


class TestReadVariables:
    def test_defaults(self):
        variables = read_variables(StatusSnapshot())
        assert variables["IsConnected"] is False
        assert variables["ConnectedSlot"] == 0
        assert variables["Temperature"] == 0.0
        assert variables["ConnectedDeviceSerial"] == ""


class TestControlSurface:
    @pytest_asyncio.fixture(autouse=True, scope="class", loop_scope="class")
    async def log_setup(self):
        tekmatic.util.start_log(
            log_level=TEST_LOGLEVEL, log_to_stdout=True, log_to_file=False
        )
        yield
        tekmatic.util.shutdown_log()

    @pytest_asyncio.fixture
    async def surface(self, channel):
        controller = TekmaticController(channel=channel)
        assert await controller.initialize(start_polling=False)
        yield ControlSurface(controller)
        await controller.shutdown()

    @pytest.mark.asyncio
    async def test_named_calls(self, surface, channel):
        logger.warning("STARTED: test_named_calls")
        assert await surface.call("DiscoverDevices") == 2
        assert await surface.call("Connect", "TL-0003") == 0
        assert await surface.call("SetTargetTemperature", "36.5") == 0
        assert channel.slots[3].target_tenths == 365
        assert await surface.call("SetClampState", "true") == 0
        assert await surface.call("GetErrorCodes") == ""

        await surface.controller.poll()
        variables = surface.variables()
        assert variables["IsConnected"] is True
        assert variables["ConnectedSlot"] == 3
        assert variables["TargetTemperature"] == 36.5
        assert variables["IsClampClosed"] is True
        assert variables["SerialNumber"] == "TL-0003"
        assert variables["DeviceCount"] == 2
        assert variables["Slot1.Serial"] == "TS-0001"
        assert variables["Slot2.Present"] is False
        assert variables["Slot3.Present"] is True
        logger.warning("COMPLETED: test_named_calls")

    @pytest.mark.asyncio
    async def test_bad_arguments_fail_without_traffic(self, surface, channel):
        channel.clear_requests()
        assert await surface.call("SetTargetTemperature", "warm") == -1
        assert await surface.call("Teleport") == -1
        assert await surface.call("GetErrorCodes", "extra") == ""
        assert channel.requests == []

    @pytest.mark.asyncio
    async def test_unknown_slot_is_absent(self, surface):
        assert await surface.call("Connect", "7") == -2
        assert await surface.call("Connect", "NOPE") == -2
