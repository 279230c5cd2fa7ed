"""Logging configuration for churnscore command-line runs."""

import logging
import sys
from datetime import datetime, timezone


class KeyValueFormatter(logging.Formatter):
    """Formats records as "[LEVEL] timestamp logger message key=value ..."."""

    EXTRA_KEYS = ("tenant", "status", "path")

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        parts = [f"[{record.levelname:<7}]", timestamp, record.name, record.getMessage()]

        for key in self.EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                parts.append(f"{key}={value}")

        if record.exc_info and record.exc_info[1]:
            parts.append(f"\n{self.formatException(record.exc_info)}")

        return " ".join(parts)


def setup_logging(level: str = "INFO") -> None:
    """Install a single stdout handler on the package logger."""
    package_logger = logging.getLogger("churnscore")
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid adding handlers multiple times
    if package_logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(KeyValueFormatter())
    package_logger.addHandler(handler)
