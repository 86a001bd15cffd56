"""Tests for ExceptionLogger."""

import json
import os

from tgcli.utils.exception_logger import ExceptionLogger


class TestExceptionLogger:
    def test_initialize_is_a_singleton(self, config_dir):
        first = ExceptionLogger.initialize(config_dir)
        second = ExceptionLogger.initialize(config_dir / "elsewhere")

        assert first is second
        assert ExceptionLogger.get_instance() is first

    def test_log_file_name_contains_pid(self, config_dir):
        logger = ExceptionLogger.initialize(config_dir)

        assert logger.log_file_path.parent == config_dir / "logs"
        assert logger.log_file_path.name.endswith(f"_{os.getpid()}.log")

    def test_file_created_only_when_logging(self, config_dir):
        logger = ExceptionLogger.initialize(config_dir)
        assert not logger.log_file_path.exists()

        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            logger.log_exception(e, context={"command": "ls"})

        entry = logger.log_file_path.read_text().split("\n---\n")[0]
        record = json.loads(entry)
        assert record["exception_type"] == "RuntimeError"
        assert record["exception_message"] == "boom"
        assert record["context"] == {"command": "ls"}
        assert "raise RuntimeError" in record["stack_trace"]

    def test_entries_are_appended(self, config_dir):
        logger = ExceptionLogger.initialize(config_dir)

        logger.log_exception(ValueError("one"))
        logger.log_exception(ValueError("two"))

        entries = [e for e in logger.log_file_path.read_text().split("\n---\n") if e]
        assert len(entries) == 2
