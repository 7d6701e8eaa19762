# -*- coding: utf-8 -*-
"""# tekmatic

Control core for multi-slot incubator/shaker controllers (Thermoshake, Teleshake,
CPAC and friends on one controller bus).

The package discovers which slot modules are plugged in, holds a connection to
one of them at a time, polls its live values in the background and exposes a
small set of commands that always answer with an integer result code
(0 = success, -1 = failure, -2 = not found).

- `tekmatic.device`: protocol, serial link, discovery, connection state, poller
  and the `TekmaticController` dispatcher
- `tekmatic.surface`: named operations and published variables for remote
  front-ends
- `tekmatic.system`: INI-based controller configurations
- `tekmatic.cli`: the `tekmatic` command-line tool

## Example

```python
import asyncio
from tekmatic.device import TekmaticController
from tekmatic.system import load_controller_config

async def main():
    controller = TekmaticController(load_controller_config("mock"))
    await controller.initialize()
    await controller.connect_to_slot(1)
    await controller.set_target_temperature(37.0)
    await controller.shutdown()

asyncio.run(main())
```
"""

from ._version import __version__
