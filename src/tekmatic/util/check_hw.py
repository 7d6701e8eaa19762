from typing import Optional

import serial.tools.list_ports
from loguru import logger

from .defaults import DEFAULT_BAUDRATE, DEFAULT_READ_TIMEOUT


def get_hw_ports():
    port_dict = dict()
    for p in list(serial.tools.list_ports.comports()):
        # Only include if there's actual hardware info
        if p.hwid != "n/a":
            port_dict[p.device] = tuple(p)[1:]
    return port_dict


def find_controller_port(
    baudrate: int = DEFAULT_BAUDRATE,
    timeout: float = DEFAULT_READ_TIMEOUT,
    ports: Optional[list[str]] = None,
) -> Optional[str]:
    """Probe serial ports for a slot controller.

    Sends the firmware query to each port in turn and returns the first port
    that answers with a valid echo, or None.

    Args:
        baudrate: Serial baud rate to probe with
        timeout: Read timeout per port in seconds
        ports: Ports to probe. Defaults to every hardware port found.
    """
    # deferred: the device layer imports tekmatic.util
    from tekmatic.device import protocol
    from tekmatic.device.channel import SerialChannel
    from tekmatic.types import TekmaticError

    if ports is None:
        ports = list(get_hw_ports())

    for port in ports:
        logger.debug("Probing {} for a slot controller", port)
        channel = SerialChannel(port, baudrate=baudrate, read_timeout=timeout)
        ok, _ = channel.open()
        if not ok:
            continue
        try:
            request = protocol.firmware_query()
            firmware = protocol.decode_payload(request, channel.exchange(str(request)))
        except TekmaticError as e:
            logger.debug("No controller on {}: {}", port, e)
            continue
        finally:
            channel.close()
        logger.info("Found slot controller on {} (firmware {})", port, firmware)
        return port
    return None
