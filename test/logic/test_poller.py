"""Tests for the status poller."""

import asyncio

import pytest
import pytest_asyncio

from tekmatic.device import (
    ConnectionStateMachine,
    Link,
    ReadModel,
    SlotRegistry,
    StatusPoller,
    discover,
    poll_once,
)


@pytest.fixture
def link(channel):
    return Link(channel)


@pytest.fixture
def sm(link, channel):
    registry = SlotRegistry()
    discover(link, registry)
    channel.clear_requests()
    return ConnectionStateMachine(link, registry)


@pytest.fixture
def read_model():
    return ReadModel()


class TestPollOnce:
    def test_disconnected_publishes_defaults(self, link, sm, read_model, channel):
        poll_once(link, sm, read_model)
        snapshot = read_model.snapshot()
        assert not snapshot.is_connected
        assert snapshot.temperature == 0.0
        assert snapshot.connected_device_serial == ""
        assert channel.requests == []

    def test_connected_reads_live_values(self, link, sm, read_model, channel):
        sm.connect(1)
        slot = channel.slots[1]
        slot.temperature_tenths = 372
        slot.target_tenths = 370
        slot.target_rpm = 600
        slot.shaking = True
        channel.clamp = 2
        channel.clear_requests()

        poll_once(link, sm, read_model)
        assert channel.requests == ["1RAT", "1RTT", "1RSR", "0RCS"]
        snapshot = read_model.snapshot()
        assert snapshot.is_connected
        assert snapshot.connected_slot == 1
        assert snapshot.temperature == 37.2
        assert snapshot.target_temperature == 37.0
        assert snapshot.shaking_rpm == 600
        assert snapshot.is_clamp_closed
        assert snapshot.connected_device_serial == "TS-0001"

    def test_failed_reads_keep_cached_values(self, link, sm, read_model, channel):
        sm.connect(1)
        channel.slots[1].temperature_tenths = 300
        channel.slots[1].target_tenths = 310
        poll_once(link, sm, read_model)

        channel.slots[1].temperature_tenths = 350
        channel.slots[1].target_tenths = 360
        channel.fail_commands = {"RAT"}
        channel.garble_commands = {"RCS"}
        channel.clamp = 2
        poll_once(link, sm, read_model)

        snapshot = read_model.snapshot()
        assert snapshot.temperature == 30.0
        assert snapshot.target_temperature == 36.0
        assert not snapshot.is_clamp_closed

    def test_dead_link_keeps_everything(self, link, sm, read_model, channel):
        sm.connect(3)
        poll_once(link, sm, read_model)
        before = read_model.snapshot()

        channel.responsive = False
        poll_once(link, sm, read_model)
        assert read_model.snapshot() == before
        assert read_model.snapshot().is_connected

    def test_disconnect_resets_published_fields(self, link, sm, read_model):
        sm.connect(1)
        poll_once(link, sm, read_model)
        assert read_model.snapshot().temperature == 25.0

        sm.disconnect()
        poll_once(link, sm, read_model)
        snapshot = read_model.snapshot()
        assert not snapshot.is_connected
        assert snapshot.temperature == 0.0
        assert snapshot.connected_slot == 0


class TestStatusPoller:
    @pytest_asyncio.fixture
    async def poller(self, link, sm, read_model):
        poller = StatusPoller(link, sm, read_model, interval=0.01)
        yield poller
        await poller.stop()

    @pytest.mark.asyncio
    async def test_runs_until_stopped(self, poller, sm):
        sm.connect(1)
        poller.start()
        assert poller.is_running()
        await asyncio.sleep(0.2)
        await poller.stop()
        assert not poller.is_running()
        ticks = poller.ticks
        assert ticks > 1
        await asyncio.sleep(0.05)
        assert poller.ticks == ticks
        assert poller.read_model.snapshot().temperature == 25.0

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_task(self, poller):
        poller.start()
        task = poller._task
        poller.start()
        assert poller._task is task

    @pytest.mark.asyncio
    async def test_tick_survives_unexpected_errors(self, poller, sm, channel):
        sm.connect(1)

        def explode(frame):
            raise RuntimeError("boom")

        channel.exchange = explode
        await poller.tick()
        await poller.tick()
        assert poller.ticks == 2

    @pytest.mark.asyncio
    async def test_stop_without_start(self, poller):
        await poller.stop()
        assert not poller.is_running()
