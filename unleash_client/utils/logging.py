"""Structured logging setup for the toggle client."""

import json
import logging
import sys
from typing import Optional, TextIO


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        # Structured fields emitted by the refresh cycle and evaluation
        for attr in [
            "toggle",
            "strategy",
            "feature_url",
            "error_code",
            "refresh_state",
        ]:
            if hasattr(record, attr):
                data[attr] = getattr(record, attr)
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def setup_logging(level: int = logging.INFO, stream: Optional[TextIO] = None) -> None:
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.handlers = [handler]
