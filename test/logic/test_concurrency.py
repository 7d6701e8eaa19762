"""Tests that discovery, polling and commands never share the wire."""

import asyncio

import pytest
import pytest_asyncio

from tekmatic.device import TekmaticController, make_mock_channel
from tekmatic.system import ControllerConfig


class TestGuard:
    @pytest_asyncio.fixture
    async def setup(self):
        channel = make_mock_channel(latency=0.002)
        controller = TekmaticController(
            ControllerConfig(mock=True, poll_interval=0.005), channel=channel
        )
        assert await controller.initialize(start_polling=True)
        yield controller, channel
        await controller.shutdown()

    @pytest.mark.asyncio
    @pytest.mark.slow
    async def test_one_request_in_flight(self, setup):
        controller, channel = setup
        assert await controller.connect_to_slot(1) == 0

        calls = []
        for i in range(10):
            calls.append(controller.set_target_temperature(30.0 + i))
            calls.append(controller.set_shaking_rpm(100 * i))
            calls.append(controller.get_temperature_for_slot(3))
        calls.append(controller.discover_devices())
        results = await asyncio.gather(*calls)

        assert channel.max_in_flight == 1
        assert results[-1] == 2
        assert all(r == 0 for r in results[0:-1:3])
        assert all(r == 0 for r in results[1:-1:3])
        assert controller.poller.ticks > 0

    @pytest.mark.asyncio
    @pytest.mark.slow
    async def test_discovery_is_not_interleaved(self, setup):
        controller, channel = setup
        await controller.connect_to_slot(1)
        channel.clear_requests()

        await asyncio.gather(
            controller.discover_devices(),
            *[controller.set_target_temperature(20.0 + i) for i in range(5)],
        )

        frames = list(channel.requests)
        start = frames.index("0RFV0")
        discovery = frames[start : start + 9]
        assert discovery == [
            "0RFV0",
            "1RTD",
            "1RSN1",
            "2RTD",
            "3RTD",
            "3RSN1",
            "4RTD",
            "5RTD",
            "6RTD",
        ]

    @pytest.mark.asyncio
    async def test_stale_reply_is_rejected(self, setup):
        controller, channel = setup
        await controller.poller.stop()
        await controller.connect_to_slot(1)
        assert await controller.set_target_temperature(33.0) == 0

        # reply belonging to a poll query arriving for a command
        channel.inject("1rat0250")
        assert await controller.set_target_temperature(44.0) == -1
        assert controller.get_target_temperature() == 33.0
