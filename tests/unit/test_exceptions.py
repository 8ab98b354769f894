"""Unit tests for the exception hierarchy (farmfocus/exceptions.py)"""
import logging
import psycopg
import pytest

from farmfocus.exceptions import (
    ConfigurationError,
    ConflictError,
    ConnectionError,
    FarmFocusError,
    NotFoundError,
    QueryError,
    TransientStoreError,
    ValidationError,
    wrap_store_exception,
)


class TestFarmFocusError:
    """Tests for the base exception"""

    def test_basic_error(self):
        error = FarmFocusError(message="harvest failed")

        assert error.message == "harvest failed"
        assert error.user_message == "An error occurred. Please try again."
        assert error.request_id is not None
        assert error.timestamp is not None

    def test_error_with_context(self):
        error = FarmFocusError(
            message="harvest failed",
            user_id=42,
            operation="harvest",
            context={"plant_id": 7},
        )

        assert error.user_id == 42
        assert error.operation == "harvest"
        assert error.context == {"plant_id": 7}

    def test_to_dict(self):
        error = FarmFocusError(message="boom", request_id="req-1")

        data = error.to_dict()

        assert data["error"] == "FarmFocusError"
        assert data["message"] == "boom"
        assert data["request_id"] == "req-1"

    def test_logged_on_creation(self, caplog):
        with caplog.at_level(logging.WARNING, logger="farmfocus.exceptions"):
            ValidationError(message="not enough gold", field="gold", value=3)

        assert any(r.levelno == logging.WARNING and "not enough gold" in r.getMessage() for r in caplog.records)


class TestCallerErrors:
    """Tests for validation, not-found and conflict errors"""

    def test_validation_error_fields(self):
        error = ValidationError(message="invalid amount", field="amount", value=-1)

        assert error.field == "amount"
        assert error.value == -1
        assert error.context == {"field": "amount", "value": -1}
        assert error.user_message == "Invalid amount: invalid amount"

    def test_not_found_error(self):
        error = NotFoundError(message="Plant 9 not found", record_type="Plant", record_id=9)

        assert error.user_message == "Plant not found."
        assert error.context["record_id"] == 9

    def test_conflict_error_accepts_context(self):
        error = ConflictError(message="task is already done", context={"task_id": 3})

        assert error.context == {"task_id": 3}
        assert isinstance(error, FarmFocusError)


class TestStoreErrors:
    """Tests for wrap_store_exception"""

    def test_wraps_operational_error(self):
        wrapped = wrap_store_exception(psycopg.OperationalError("refused"), operation="get_stat", user_id=1)

        assert isinstance(wrapped, ConnectionError)
        assert isinstance(wrapped, TransientStoreError)
        assert wrapped.operation == "get_stat"

    def test_wraps_query_error(self):
        wrapped = wrap_store_exception(psycopg.errors.UndefinedTable("no table"), operation="get_stat")

        assert isinstance(wrapped, QueryError)

    def test_passes_through_own_errors(self):
        original = ConfigurationError(message="bad", config_key="X")

        assert wrap_store_exception(original, operation="x") is original

    def test_wraps_unknown_error(self):
        wrapped = wrap_store_exception(RuntimeError("weird"), operation="take_good")

        assert type(wrapped) is TransientStoreError
        assert wrapped.cause is not None
