"""Tests for logging, timing and error tracking helpers."""
import json
import logging
from cityzip.utils.error_tracking import filter_sensitive_data, setup_error_tracking, capture_exception
from cityzip.utils.logging import LOGGER_NAME, log_structured, log_error
from cityzip.utils.timing import Timer


def _entries(caplog):
    return [json.loads(r.getMessage()) for r in caplog.records if r.name == LOGGER_NAME]


def test_log_structured(caplog):
    """Log entries are JSON with the extra fields."""
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        log_structured("info", "Resolved job location", city="København", zipcode="1150")

    entry = _entries(caplog)[-1]
    assert entry["level"] == "INFO"
    assert entry["message"] == "Resolved job location"
    assert entry["city"] == "København"
    assert "timestamp" in entry


def test_log_error(caplog):
    """Errors are logged with type and context."""
    try:
        raise ValueError("boom")
    except ValueError as e:
        with caplog.at_level(logging.ERROR, logger=LOGGER_NAME):
            log_error(e, {"script": "test"})

    entry = _entries(caplog)[-1]
    assert entry["error_type"] == "ValueError"
    assert entry["script"] == "test"
    assert "boom" in entry["traceback"]


def test_timer(caplog):
    """Timer records elapsed time."""
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        with Timer("import", source="CSV") as timer:
            timer.fields["rows"] = 17

    assert timer.elapsed >= 0
    entry = _entries(caplog)[-1]
    assert entry["operation"] == "import"
    assert entry["source"] == "CSV"
    assert entry["rows"] == 17


def test_filter_sensitive_data():
    """Secrets in environment data are redacted."""
    event = {"environment": {"SENTRY_DSN": "https://x", "API_KEY": "k", "LOG_LEVEL": "INFO"}}
    filtered = filter_sensitive_data(event, None)
    assert filtered["environment"]["SENTRY_DSN"] == "***REDACTED***"
    assert filtered["environment"]["API_KEY"] == "***REDACTED***"
    assert filtered["environment"]["LOG_LEVEL"] == "INFO"


def test_error_tracking_disabled(monkeypatch):
    """Without a DSN nothing is initialized or sent."""
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    assert setup_error_tracking() is False
    assert capture_exception(RuntimeError("not sent")) is False
