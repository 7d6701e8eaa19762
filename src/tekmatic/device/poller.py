"""Background status poller.

Every tick, under the link guard, the poller reads the live values of the
connected slot (actual temperature, target temperature, shaking speed) and the
controller's clamp state, folds them into the session and publishes the result.
A failed read keeps the previously cached value; no failure ever escapes a tick.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from loguru import logger

from tekmatic.device import protocol
from tekmatic.device.channel import Link
from tekmatic.device.read_model import ReadModel
from tekmatic.device.session import ConnectionStateMachine
from tekmatic.types import ConnectionSession, TekmaticError
from tekmatic.util.defaults import DEFAULT_POLL_INTERVAL


def _read_live_values(link: Link, session: ConnectionSession) -> None:
    slot_id = session.slot_id
    try:
        session.temperature = link.query_tenths(
            protocol.Request(slot_id, protocol.READ_TEMPERATURE)
        )
    except TekmaticError as e:
        logger.debug("Poll: temperature of slot {} unavailable: {}", slot_id, e)
    try:
        session.target_temperature = link.query_tenths(
            protocol.Request(slot_id, protocol.READ_TARGET_TEMPERATURE)
        )
    except TekmaticError as e:
        logger.debug("Poll: target temperature of slot {} unavailable: {}", slot_id, e)
    try:
        session.shaking_rpm = link.query_int(
            protocol.Request(slot_id, protocol.READ_SHAKING_RPM)
        )
    except TekmaticError as e:
        logger.debug("Poll: shaking speed of slot {} unavailable: {}", slot_id, e)
    try:
        clamp = link.query_int(protocol.clamp_state_query())
        session.clamp_closed = clamp == protocol.CLAMP_CLOSED
    except TekmaticError as e:
        logger.debug("Poll: clamp state unavailable: {}", e)


def poll_once(
    link: Link, state_machine: ConnectionStateMachine, read_model: ReadModel
) -> None:
    """One poll tick. The caller must hold the link guard."""
    session = state_machine.session if state_machine.is_connected() else None
    if session is not None:
        _read_live_values(link, session)
    read_model.publish_session(session, state_machine.connected_device)


class StatusPoller:
    """Runs `poll_once` on a fixed interval as an asyncio task."""

    def __init__(
        self,
        link: Link,
        state_machine: ConnectionStateMachine,
        read_model: ReadModel,
        interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self.link = link
        self.state_machine = state_machine
        self.read_model = read_model
        self.interval = interval
        self.ticks = 0
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> None:
        try:
            await self.link.run_async(
                poll_once, self.link, self.state_machine, self.read_model
            )
        except Exception:
            logger.exception("Error in status poll tick.")
        self.ticks += 1

    async def _loop(self):
        logger.info("Status poller started (every {}s)", self.interval)
        while not self._stop_event.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
        logger.info("Status poller stopped")

    def start(self) -> None:
        if self.is_running():
            logger.debug("Status poller already running")
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """Stop polling. Returns once any in-flight tick has finished."""
        if self._task is None:
            return
        self._stop_event.set()
        try:
            await self._task
        finally:
            self._task = None
