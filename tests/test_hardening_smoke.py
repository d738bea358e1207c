# File: tests/test_hardening_smoke.py | Version: 2.0 | Title: Coverage bump for logging, errors, sentry and bootstrap
import json
import logging
import sys
import types

from recordbase import bootstrap
from recordbase.core.config import settings
from recordbase.core.errors import (
    CoercionError,
    ConflictError,
    NotFoundError,
    OperationNotAllowedError,
    ValidationError,
)
from recordbase.core.logging import JsonFormatter, configure_logging
from recordbase.engine.query import RecordQueryService
from recordbase.engine.registry import PropertyTypeRegistry
from recordbase.engine.store import SqlRecordStore
from recordbase.observability.sentry import init_sentry_if_configured
from recordbase.schemas.records import FieldError


def test_configure_logging_plain_and_json(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("LOG_JSON", "false")
    configure_logging()
    logging.getLogger(__name__).debug("plain-log")
    monkeypatch.setenv("LOG_JSON", "true")
    configure_logging()
    logging.getLogger(__name__).info("json-log")
    assert logging.getLogger("recordbase").level == logging.DEBUG


def test_json_formatter_output():
    record = logging.LogRecord("recordbase.test", logging.WARNING, __file__, 1, "hello %s", ("there",), None)
    payload = json.loads(JsonFormatter().format(record))
    assert payload == {"level": "WARNING", "logger": "recordbase.test", "message": "hello there"}


def test_error_envelopes():
    assert NotFoundError("View", "v1").to_dict() == {
        "error": {"code": "NOT_FOUND", "message": "View 'v1' not found"}
    }
    assert ConflictError("dup").status_code == 409
    assert OperationNotAllowedError("no").code == "BAD_REQUEST"
    assert CoercionError("number", "abc").message == "Value 'abc' is not a valid number"


def test_validation_error_carries_every_field_error():
    errors = [
        FieldError(property_id="p1", property_name="Email", value=None, message="Email is required"),
        FieldError(property_id="p2", property_name="Score", value="x", message="Score must be a valid number"),
    ]
    body = ValidationError(errors).to_dict()
    assert body["error"]["code"] == "UNPROCESSABLE_ENTITY"
    assert [e["property_id"] for e in body["error"]["errors"]] == ["p1", "p2"]


def test_sentry_init_disabled_then_enabled(monkeypatch):
    monkeypatch.setattr(settings, "SENTRY_DSN", "")
    assert init_sentry_if_configured() is False

    captured = {}
    fake_sdk = types.ModuleType("sentry_sdk")
    fake_sdk.init = lambda **kwargs: captured.update(kwargs)  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "sentry_sdk", fake_sdk)
    monkeypatch.setattr(settings, "SENTRY_DSN", "https://dummy-public@o0.ingest.sentry.io/0")
    monkeypatch.setattr(settings, "SENTRY_TRACES_SAMPLE_RATE", 0.05)

    assert init_sentry_if_configured() is True
    assert captured["traces_sample_rate"] == 0.05
    assert captured["environment"] == settings.ENVIRONMENT


def test_init_runtime_returns_fresh_registry(monkeypatch, db_session):
    monkeypatch.setattr(settings, "SENTRY_DSN", "")
    first = bootstrap.init_runtime()
    second = bootstrap.init_runtime()
    assert isinstance(first, PropertyTypeRegistry)
    assert first is not second
    service = bootstrap.query_service(db_session, first)
    assert isinstance(service, RecordQueryService)
    assert isinstance(service.store, SqlRecordStore)
    assert service.default_limit == settings.DEFAULT_PAGE_SIZE
