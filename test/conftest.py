import pytest

from tekmatic.device.mock import MockChannel, MockSlot, make_mock_channel


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: marks test as slow running test")
    config.addinivalue_line(
        "markers", "hardware: marks test that require physical hardware"
    )


@pytest.fixture
def channel() -> MockChannel:
    """Open mock controller: Thermoshake (TS-0001) in slot 1, Teleshake (TL-0003) in 3."""
    return make_mock_channel()


@pytest.fixture
def scenario_channel() -> MockChannel:
    """Open mock controller: Teleshake95 AC (SN1) in slot 1, nothing else."""
    return make_mock_channel({1: MockSlot(type_code=14, serial="SN1")})
