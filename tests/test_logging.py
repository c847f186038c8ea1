"""Tests for the structured logging system (challan_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from challan_kernel.domain.challan import DcStatus
from challan_kernel.exceptions import InvalidTransitionError
from challan_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite's setup."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


def _parse_log(stream: StringIO) -> dict:
    return _parse_all_logs(stream)[0]


# ---------------------------------------------------------------------------
# StructuredFormatter
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """One JSON object per record."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "challan.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info(
            "dc_transitioned",
            extra={"history_length": 3, "to_status": DcStatus.RETURNED},
        )

        record = _parse_log(stream)
        assert record["history_length"] == 3
        assert record["to_status"] == "returned"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(dc_id="dc-1", actor="asha")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["dc_id"] == "dc-1"
        assert record["actor"] == "asha"
        assert "procedure" not in record

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_challan_error_fields_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise InvalidTransitionError("dc-9", "LINK_INVOICE", "pending")
        except InvalidTransitionError:
            get_logger("test").error("transition_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "INVALID_TRANSITION"
        assert record["exc_type"] == "InvalidTransitionError"
        assert record["exc_dc_id"] == "dc-9"
        assert record["exc_action"] == "LINK_INVOICE"

    def test_uuid_and_decimal_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info("values", extra={"dc_uuid": uid, "amount": Decimal("12.50")})

        record = _parse_log(stream)
        assert record["dc_uuid"] == str(uid)
        assert record["amount"] == "12.50"

    def test_level_filters_records(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level="warning")
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})

        logs = _parse_all_logs(stream)
        assert [r["message"] for r in logs] == ["second"]


# ---------------------------------------------------------------------------
# LogContext
# ---------------------------------------------------------------------------


class TestLogContext:

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", procedure="Tibia Nailing")
        assert LogContext.get_all() == {"correlation_id": "x", "procedure": "Tibia Nailing"}

    def test_clear(self):
        LogContext.set(actor="asha")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous_value(self):
        LogContext.set(dc_id="outer")
        with LogContext.bind(dc_id="inner"):
            assert LogContext.get_all()["dc_id"] == "inner"
        assert LogContext.get_all()["dc_id"] == "outer"

    def test_bind_restores_none(self):
        with LogContext.bind(actor="temp"):
            assert LogContext.get_all()["actor"] == "temp"
        assert "actor" not in LogContext.get_all()

    def test_bind_rejects_unknown_fields(self):
        with pytest.raises(TypeError, match="Unknown log context fields"):
            LogContext.bind(event_id="e")


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


class TestConfigureLogging:

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert logging.getLogger("challan").handlers == [h1]

    def test_does_not_propagate_to_root(self):
        configure_logging(handler=_make_handler()[0])
        assert logging.getLogger("challan").propagate is False

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("storage.sql").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "challan.storage.sql"
