"""
Tests for logging configuration.
"""

import logging
from pathlib import Path

from flatdeploy.core.observability.logging_config import (
    parse_level,
    resolve_level,
    setup_logging,
    setup_logging_from_env,
)


class TestParseLevel:
    def test_known(self):
        assert parse_level("debug") == logging.DEBUG
        assert parse_level("ERROR") == logging.ERROR

    def test_unknown_defaults_to_warning(self):
        assert parse_level("chatty") == logging.WARNING
        assert parse_level("") == logging.WARNING
        assert parse_level(None) == logging.WARNING


class TestResolveLevel:
    def test_flag_precedence(self):
        assert resolve_level(debug=True, verbose=True, quiet=True, environ={}) == "DEBUG"
        assert resolve_level(verbose=True, quiet=True, environ={}) == "INFO"
        assert resolve_level(quiet=True, environ={"FLATDEPLOY_LOG_LEVEL": "DEBUG"}) == "ERROR"

    def test_env(self):
        assert resolve_level(environ={"FLATDEPLOY_LOG_LEVEL": "INFO"}) == "INFO"

    def test_default(self):
        assert resolve_level(environ={}) == "WARNING"
        assert resolve_level(environ={"FLATDEPLOY_LOG_LEVEL": ""}) == "WARNING"


class TestSetupLogging:
    def test_console_level(self):
        setup_logging(level="INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.INFO

    def test_file_handler_lowers_root_level(self, tmp_path: Path):
        log_file = tmp_path / "flatdeploy.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("flatdeploy.test").debug("written to file only")
        for handler in root.handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()

    def test_from_env(self, tmp_path: Path):
        log_file = tmp_path / "env.log"
        setup_logging_from_env("ERROR", environ={
            "FLATDEPLOY_LOG_FILE": str(log_file),
            "FLATDEPLOY_LOG_FILE_LEVEL": "INFO",
        })
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert [h.level for h in root.handlers] == [logging.ERROR, logging.INFO]

    def test_repeat_setup_replaces_handlers(self):
        setup_logging(level="INFO")
        setup_logging(level="DEBUG")
        assert len(logging.getLogger().handlers) == 1
