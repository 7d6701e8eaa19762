import os

import pytest

from tekmatic.system import ControllerConfig
from tekmatic.util import get_hw_ports

PORT_ENV = "TEKMATIC_TEST_PORT"


@pytest.fixture(scope="session")
def hardware_port():
    """Serial port of a physical controller, from $TEKMATIC_TEST_PORT."""
    port = os.environ.get(PORT_ENV)
    if not port:
        pytest.skip(f"{PORT_ENV} not set")
    if port not in get_hw_ports():
        pytest.skip(f"Port {port} not available")
    return port


@pytest.fixture
def hardware_config(hardware_port):
    return ControllerConfig(name="hardware", port=hardware_port, poll_interval=0.5)
