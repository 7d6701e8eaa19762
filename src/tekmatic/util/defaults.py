# -*- coding: utf-8 -*-

DEFAULT_BAUDRATE = 19200
DEFAULT_READ_TIMEOUT = 1.0  # seconds, serial read timeout per exchange
DEFAULT_WRITE_TIMEOUT = 1.0  # seconds
DEFAULT_POLL_INTERVAL = 1.0  # seconds between status poll ticks
DEFAULT_TERMINATOR = "\r"
DEFAULT_CONTROLLER = "mock"
DEFAULT_LOGLEVEL = "INFO"
TEST_LOGLEVEL = "TRACE"
SINGLE_LINE_ERR_LOG = False  # reformat tracebacks into a single line for err comms
