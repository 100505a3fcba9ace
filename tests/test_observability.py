"""
Tests for logging setup and tool version probing.
"""

from __future__ import annotations

import logging

import pytest

from kindling.core.observability.logging_config import (
    DETAILED_FORMAT,
    console_formatter,
    parse_level,
    setup_logging,
    setup_logging_from_env,
)
from kindling.core.services.provision.detection.tool_version import get_tool_version


class TestLogging:
    @pytest.mark.parametrize(
        "name, level",
        [
            ("debug", logging.DEBUG),
            ("INFO", logging.INFO),
            ("warn", logging.WARNING),
            ("trace", logging.DEBUG),
            ("error", logging.ERROR),
            ("bogus", logging.WARNING),
            (None, logging.WARNING),
        ],
    )
    def test_parse_level(self, name, level):
        assert parse_level(name) == level

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "kindling.log"
        setup_logging(level="ERROR", log_file=str(log_file), log_file_level="DEBUG")

        logging.getLogger("kindling.test").debug("to the file only")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "to the file only" in log_file.read_text()
        setup_logging(level="WARNING")

    @pytest.mark.parametrize(
        "level, fmt",
        [
            (logging.DEBUG, DETAILED_FORMAT),
            (logging.INFO, "%(asctime)s [%(name)s] %(message)s"),
            (logging.WARNING, "%(message)s"),
            (logging.ERROR, "%(message)s"),
        ],
    )
    def test_console_format_per_level(self, level, fmt):
        assert console_formatter(level)._fmt == fmt

    def test_file_from_env(self, tmp_path):
        log_file = tmp_path / "daemon.log"
        setup_logging_from_env(
            "warn",
            {"KINDLING_LOG_FILE": str(log_file), "KINDLING_LOG_FILE_LEVEL": "trace"},
        )

        logging.getLogger("kindling.test").debug("traced")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert logging.getLogger().level == logging.DEBUG
        assert "traced" in log_file.read_text()
        setup_logging(level="WARNING")


class TestToolVersion:
    def test_nix_banner(self, tmp_path, exe):
        nix = exe(tmp_path / "nix", "#!/bin/sh\necho 'nix (Nix) 2.24.12'\n")
        assert get_tool_version("nix", nix) == "2.24.12"

    def test_unknown_tool(self, tmp_path):
        assert get_tool_version("mystery", tmp_path / "mystery") is None

    def test_failing_binary(self, tmp_path, exe):
        broken = exe(tmp_path / "direnv", "#!/bin/sh\nexit 3\n")
        assert get_tool_version("direnv", broken) is None

    def test_missing_binary(self, tmp_path):
        assert get_tool_version("nix", tmp_path / "absent") is None
