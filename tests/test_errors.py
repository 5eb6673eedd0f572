"""Tests for the error taxonomy and validation helpers"""

import pytest

from flowpath.domain.errors import (
    ConfigurationError,
    FlowPathError,
    InvalidArgumentError,
    InvalidOperationError,
    RetryExhausted,
    TimeoutExceeded,
    require_condition,
    require_defined,
    require_type,
)


class TestErrorClasses:
    """Tests for error attributes and hierarchy"""

    def test_invalid_argument_error(self):
        error = InvalidArgumentError("Test error", "test_arg", 123)
        assert str(error) == "Test error"
        assert error.argument_name == "test_arg"
        assert error.provided_value == 123
        assert isinstance(error, FlowPathError)
        assert isinstance(error, ValueError)

    def test_invalid_operation_and_configuration_errors(self):
        assert isinstance(InvalidOperationError("x"), FlowPathError)
        assert isinstance(ConfigurationError("x"), FlowPathError)

    def test_timeout_exceeded(self):
        error = TimeoutExceeded("Timeout of 1.5s exceeded", timeout=1.5)
        assert error.timeout == 1.5
        assert isinstance(error, FlowPathError)
        assert isinstance(error, TimeoutError)

    def test_retry_exhausted_message_includes_last_error(self):
        last_error = RuntimeError("Last error")
        error = RetryExhausted("Test error", 3, last_error)
        assert str(error) == "Test error: Last error after 3 attempts"
        assert error.attempts == 3
        assert error.last_error is last_error

    def test_retry_exhausted_without_last_error(self):
        error = RetryExhausted("Test error", 3)
        assert str(error) == "Test error after 3 attempts"
        assert error.last_error is None


class TestValidationHelpers:
    """Tests for require_* helpers"""

    def test_require_defined_returns_value(self):
        assert require_defined(0, "arg") == 0
        assert require_defined(False, "arg") is False
        assert require_defined("", "arg") == ""

    def test_require_defined_rejects_none(self):
        with pytest.raises(InvalidArgumentError, match="must not be None") as exc_info:
            require_defined(None, "arg")
        assert exc_info.value.argument_name == "arg"

    def test_require_condition(self):
        assert require_condition(5, lambda x: x > 0, "Must be positive", "arg") == 5
        with pytest.raises(InvalidArgumentError, match="Must be positive") as exc_info:
            require_condition(-5, lambda x: x > 0, "Must be positive", "arg")
        assert exc_info.value.provided_value == -5

    def test_require_type(self):
        assert require_type(3, int, "arg") == 3
        assert require_type(3.0, (int, float), "arg") == 3.0
        with pytest.raises(InvalidArgumentError, match="must be of type int"):
            require_type("3", int, "arg")

    def test_require_type_rejects_bool_for_int(self):
        with pytest.raises(InvalidArgumentError):
            require_type(True, int, "arg")
        assert require_type(True, bool, "arg") is True
