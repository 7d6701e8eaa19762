from .mock_channel import MockChannel, MockSlot, default_slots, make_mock_channel

__all__ = ["MockChannel", "MockSlot", "default_slots", "make_mock_channel"]
