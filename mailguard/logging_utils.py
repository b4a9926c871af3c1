import json
import logging
import os
import sys

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log)


def make_formatter() -> logging.Formatter:
    if os.getenv("LOG_FORMAT", "plain").lower() == "json":
        return JsonFormatter(datefmt=DATE_FORMAT)
    return logging.Formatter(DEFAULT_FORMAT, DATE_FORMAT)


def configure_logging() -> None:
    """Set up root logging for the HTTP app; a no-op if the host already did."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(make_formatter())
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    logging.basicConfig(level=level, handlers=[handler])
