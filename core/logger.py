"""Logging set-up for the Recipify API.

One JSON object per line by default (``LOG_FORMAT=json``), or a plain text
line for local work (``LOG_FORMAT=text``). Structured fields passed through
``extra=`` are copied into the JSON payload.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# attributes every LogRecord has; anything else came in through extra=
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": _now_iso(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = {
            k: v for k, v in record.__dict__.items()
            if k not in _RESERVED and not k.startswith("_")
        }
        line = f"{self.formatTime(record, '%Y-%m-%d %H:%M:%S')} {record.levelname:<8} {record.name}: {record.getMessage()}"
        if extras:
            line += " " + " ".join(f"{k}={v}" for k, v in extras.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Attach a single stdout handler to the ``recipify`` logger tree."""
    root = logging.getLogger("recipify")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.handlers = [handler]
    root.propagate = False

    # SDK debug output is noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"recipify.{name}")
