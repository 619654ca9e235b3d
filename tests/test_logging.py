import json
import logging

from incidesk.observability.logging import JsonFormatter, setup_logging


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord(
        "incidesk.notify.notifier", logging.INFO, __file__, 1,
        "simulated notification | %s", ("new IT incident",), None,
    )
    record.recipient = "it@school.example"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "incidesk.notify.notifier"
    assert payload["msg"] == "simulated notification | new IT incident"
    assert payload["recipient"] == "it@school.example"
    assert "lineno" not in payload


def _json_handler_installed() -> bool:
    return isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)


def test_setup_logging_auto_detects_format(monkeypatch) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        monkeypatch.setenv("LOG_FORMAT", "json")
        setup_logging("INFO", json_logs=None)
        assert _json_handler_installed()

        setup_logging("INFO", json_logs=False)
        assert not _json_handler_installed()
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
        for name in ("httpx", "httpcore"):
            logging.getLogger(name).setLevel(logging.NOTSET)
