"""The physical link to the slot controller and the guard around it.

The controller is a half-duplex, strictly request/response device: one frame out,
one line back, no pipelining. `Channel` implementations only know how to do one
such exchange. `Link` owns a channel together with the single lock that every
exchange path (discovery, status polling, commands) must hold, and is the object
handed to all of those consumers by reference.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Callable, TypeVar

import serial  # pyserial package
from loguru import logger

from tekmatic.device.device import Device
from tekmatic.device.protocol import (
    Request,
    check_echo,
    decode_int,
    decode_payload,
    decode_tenths,
)
from tekmatic.types import TransportError
from tekmatic.util import format_error_response
from tekmatic.util.defaults import (
    DEFAULT_BAUDRATE,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_TERMINATOR,
    DEFAULT_WRITE_TIMEOUT,
)

T = TypeVar("T")


class Channel(Device):
    """A link that performs one synchronous request/response exchange at a time."""

    def exchange(self, frame: str) -> str:
        """Send `frame`, return the (stripped) response line, "" on silence.

        Raises `TransportError` if the link itself is unusable.
        """
        raise NotImplementedError()


class SerialChannel(Channel):
    port: str  # "COM3", "/dev/ttyUSB0" etc.
    required_config = {"port": str}

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        write_timeout: float = DEFAULT_WRITE_TIMEOUT,
        terminator: str = DEFAULT_TERMINATOR,
    ):
        super().__init__(port=port)
        self.baudrate = baudrate
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self.terminator = terminator
        self._ser: serial.Serial | None = None
        self._io_lock = threading.Lock()

    def open(self) -> tuple[bool, str]:
        """
        Opens the serial port to the controller. An already open port is closed
        and opened again.
        """
        if self.is_connected():
            self.close()
        try:
            self._ser = serial.Serial(
                self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.read_timeout,
                write_timeout=self.write_timeout,
            )
        except (serial.serialutil.SerialException, OSError):
            logger.exception("Error opening controller serial port {}.", self.port)
            self._ser = None
            return (
                False,
                f"Error opening controller serial port: {format_error_response()}",
            )
        logger.info("Opened controller serial port {}", self.port)
        return True, "Opened controller serial port " + self.port

    def close(self):
        if self._ser is not None:
            try:
                self._ser.close()
            finally:
                self._ser = None
            logger.info("Closed controller serial port {}", self.port)

    def is_connected(self) -> bool:
        return self._ser is not None and self._ser.is_open

    def exchange(self, frame: str) -> str:
        if not self.is_connected():
            raise TransportError(f"Serial port {self.port} is not open")
        term = self.terminator.encode("ascii")
        # one request outstanding, even for callers that bypass the Link guard
        with self._io_lock:
            try:
                self._ser.reset_input_buffer()
                self._ser.write(frame.encode("ascii") + term)
                raw = self._ser.read_until(term)
            except (serial.serialutil.SerialException, OSError) as e:
                raise TransportError(f"Serial I/O failed for '{frame}': {e}") from e
        return raw.decode("ascii", errors="replace").strip()


class Link:
    """A channel plus the one guard serializing every use of it.

    Sync helpers (`transact`, `acknowledge`, `query_*`) assume the caller holds
    the guard. `run` and `run_async` acquire it around a whole multi-step
    operation, so e.g. a discovery pass blocks the poller until it is done.
    """

    def __init__(self, channel: Channel):
        self.channel = channel
        self.guard = threading.Lock()

    # -- whole-operation locking ------------------------------------------------

    def run(self, fn: Callable[..., T], *args) -> T:
        with self.guard:
            return fn(*args)

    async def run_async(self, fn: Callable[..., T], *args) -> T:
        """Run `fn` under the guard in a worker thread.

        The guard is taken inside the worker, so cancelling the awaiting task
        never releases it while a request is still on the wire.
        """
        return await asyncio.to_thread(self.run, fn, *args)

    # -- single exchanges (guard held by caller) ----------------------------------

    def transact(self, request: Request) -> str:
        frame = request.encode()
        logger.trace("-> {}", frame)
        response = self.channel.exchange(frame)
        logger.trace("<- {!r}", response)
        return response

    def acknowledge(self, request: Request) -> str:
        return check_echo(request, self.transact(request))

    def query(self, request: Request) -> str:
        return decode_payload(request, self.transact(request))

    def query_int(self, request: Request) -> int:
        return decode_int(request, self.transact(request))

    def query_tenths(self, request: Request) -> float:
        return decode_tenths(request, self.transact(request))
