"""Tests for the loguru setup helpers."""

from pathlib import Path

from loguru import logger

import tekmatic.util
from tekmatic.util import (
    clear_log,
    get_log_filename,
    log_default_path,
    shutdown_log,
    start_log,
)


class TestLogSetup:
    def test_default_path_in_home(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert log_default_path() == str(tmp_path / ".tekmatic" / "tekmatic.log")

    def test_clear_missing_log(self, tmp_path):
        clear_log(str(tmp_path / "nothing.log"))

    def test_log_to_file(self, tmp_path):
        log_path = tmp_path / "run.log"
        start_log(log_to_file=True, log_path=str(log_path), log_level="DEBUG")
        logger.debug("Slot {} ready", 3)
        shutdown_log()
        assert get_log_filename() == str(log_path)
        assert "Slot 3 ready" in log_path.read_text()

    def test_logging_exports(self):
        exported = {name for name in tekmatic.util.__all__ if "log" in name.lower()}
        assert exported == {
            "DEFAULT_LOGLEVEL",
            "TEST_LOGLEVEL",
            "SINGLE_LINE_ERR_LOG",
            "clear_log",
            "get_log_filename",
            "log_default_path",
            "shutdown_log",
            "start_log",
        }
