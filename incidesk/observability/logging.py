from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# httpx logs every request line at INFO; one per incident report is noise.
NOISY_LOGGERS = ("httpx", "httpcore")

# Standard LogRecord attributes; anything else on a record came in through extra={...}.
_RESERVED_FIELDS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line, with extra= fields merged in.

    {"ts":"2026-10-16T10:00:00Z","level":"INFO","logger":"incidesk.notify.notifier","msg":"simulated notification | ...","event":"created","recipient":"it@school.example"}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (key, val)
            for key, val in record.__dict__.items()
            if key not in _RESERVED_FIELDS and not key.startswith("_")
        )
        if record.exc_info:
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def _want_json(json_logs: bool | None) -> bool:
    if json_logs is not None:
        return json_logs
    # Unset: JSON when asked through LOG_FORMAT or when stderr goes to a collector.
    return os.getenv("LOG_FORMAT", "").lower() == "json" or not os.isatty(2)


def setup_logging(level: str = "INFO", json_logs: bool | None = None) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if _want_json(json_logs) else logging.Formatter(PLAIN_FORMAT))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    if root.level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
