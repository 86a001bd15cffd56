"""Centralized exception logger for tgcli.

Appends failures with full debugging context to a per-invocation log file:
- Timestamp and process ID based file name
- Complete stack trace
- Caller supplied context (command, alias, endpoint)
"""

import json
import os
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


class ExceptionLogger:
    """Centralized exception logging facility.

    Log files live in ``<config dir>/logs`` and are only created once the
    first exception is recorded.
    """

    _instance: Optional["ExceptionLogger"] = None

    def __init__(self, log_file_path: Path):
        self.log_file_path = log_file_path

    @classmethod
    def initialize(cls, config_dir: Path) -> "ExceptionLogger":
        """Initialize the global exception logger (idempotent singleton).

        Tests should reset ``cls._instance = None`` if they need a fresh
        instance.

        Args:
            config_dir: tgcli configuration directory

        Returns:
            Initialized ExceptionLogger instance (singleton)
        """
        if cls._instance is not None:
            return cls._instance

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file_path = config_dir / "logs" / f"error_{timestamp}_{os.getpid()}.log"

        cls._instance = cls(log_file_path)
        return cls._instance

    @classmethod
    def get_instance(cls) -> Optional["ExceptionLogger"]:
        return cls._instance

    def log_exception(
        self, exception: BaseException, context: Optional[Dict[str, Any]] = None
    ) -> None:
        """Append one exception record.

        Args:
            exception: The exception to log
            context: Additional context data to include in the record
        """
        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "exception_type": type(exception).__name__,
            "exception_message": str(exception),
            "stack_trace": "".join(
                traceback.format_exception(
                    type(exception), exception, exception.__traceback__
                )
            ),
            "context": context or {},
        }

        self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_file_path, "a") as f:
            f.write(json.dumps(log_entry, indent=2))
            f.write("\n---\n")
