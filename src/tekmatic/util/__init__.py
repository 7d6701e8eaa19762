# -*- coding: utf-8 -*-
"""
Utility functions and constants for tekmatic.

- Logging configuration and management
- Hardware port detection
- Shared defaults

Examples
--------
Logging to stderr from a script:
```python
from tekmatic.util import start_log
start_log(log_to_file=False, log_to_stdout=True, log_level="DEBUG")
```

See Also
--------
tekmatic.util.logging : Logging configuration
tekmatic.util.check_hw : Serial port discovery
"""

from .check_hw import find_controller_port, get_hw_ports
from .defaults import (
    DEFAULT_BAUDRATE,
    DEFAULT_CONTROLLER,
    DEFAULT_LOGLEVEL,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_TERMINATOR,
    DEFAULT_WRITE_TIMEOUT,
    SINGLE_LINE_ERR_LOG,
    TEST_LOGLEVEL,
)
from .logging import (
    clear_log,
    format_error_response,
    get_log_filename,
    log_default_path,
    shutdown_log,
    start_log,
)

__all__ = [
    "DEFAULT_BAUDRATE",
    "DEFAULT_CONTROLLER",
    "DEFAULT_LOGLEVEL",
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_READ_TIMEOUT",
    "DEFAULT_TERMINATOR",
    "DEFAULT_WRITE_TIMEOUT",
    "SINGLE_LINE_ERR_LOG",
    "TEST_LOGLEVEL",
    "clear_log",
    "find_controller_port",
    "format_error_response",
    "get_hw_ports",
    "get_log_filename",
    "log_default_path",
    "shutdown_log",
    "start_log",
]
