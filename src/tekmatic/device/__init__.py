# -*- coding: utf-8 -*-
"""
Device layer of tekmatic: everything between a command and the serial wire.

- `protocol`: request/response codec of the controller's ASCII protocol
- `channel`: the physical link (`SerialChannel`) and its guard (`Link`)
- `registry`: slot table and the discovery pass
- `session`: connection state machine for the single controlled slot
- `poller`: background status polling
- `read_model`: published status snapshot
- `controller`: `TekmaticController`, the command dispatcher tying it together
- `mock`: in-process simulated controller

Examples
--------
```python
from tekmatic.device import TekmaticController, make_mock_channel
controller = TekmaticController(channel=make_mock_channel())
```

See Also
--------
tekmatic.system : Controller configuration
tekmatic.surface : Named operations for remote front-ends
"""

from .channel import Channel, Link, SerialChannel
from .controller import TekmaticController
from .device import Device
from .mock import MockChannel, MockSlot, make_mock_channel
from .poller import StatusPoller, poll_once
from .read_model import ReadModel
from .registry import SlotRegistry, discover, probe_slot
from .session import ConnectionStateMachine

__all__ = [
    "Channel",
    "ConnectionStateMachine",
    "Device",
    "Link",
    "MockChannel",
    "MockSlot",
    "ReadModel",
    "SerialChannel",
    "SlotRegistry",
    "StatusPoller",
    "TekmaticController",
    "discover",
    "make_mock_channel",
    "poll_once",
    "probe_slot",
]
