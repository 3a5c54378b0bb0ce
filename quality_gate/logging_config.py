from __future__ import annotations

import logging
import os
import sys
from typing import Optional

_QUIET_LOGGERS = ("uvicorn.access", "mediapipe", "absl", "PIL")


class KeyValueFormatter(logging.Formatter):
    """Renders ``ts=... level=... logger=... msg=...`` lines.

    Messages are already written as ``event key=value`` pairs, so the
    formatter only prefixes the record metadata.
    """

    def format(self, record: logging.LogRecord) -> str:
        line = "ts={} level={} logger={} msg={}".format(
            self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            record.levelname.lower(),
            record.name,
            record.getMessage(),
        )
        if record.exc_info:
            line += " exc={}".format(self.formatException(record.exc_info).splitlines()[-1])
        return line


def setup_logging(level: Optional[str] = None) -> None:
    """Route all records to stdout; meant to be called once by the process entry point."""
    level_name = (level or os.getenv("QUALITY_LOG_LEVEL", "INFO")).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(KeyValueFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level_name)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
