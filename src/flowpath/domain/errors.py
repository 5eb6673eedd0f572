"""Error taxonomy shared by the retry and batch engines."""

from typing import Any, Callable, Optional, Tuple, Type, TypeVar, Union

T = TypeVar("T")


class FlowPathError(Exception):
    """Base class for every error raised by flowpath."""

    pass


class InvalidArgumentError(FlowPathError, ValueError):
    """Invalid argument or policy value, raised before any work starts.

    Attributes:
        argument_name: Name of the offending argument (if known)
        provided_value: Value that failed validation
    """

    def __init__(
        self,
        message: str,
        argument_name: Optional[str] = None,
        provided_value: Any = None,
    ):
        super().__init__(message)
        self.argument_name = argument_name
        self.provided_value = provided_value


class InvalidOperationError(FlowPathError):
    """Operation is not valid in the current state."""

    pass


class ConfigurationError(FlowPathError):
    """Configuration validation error."""

    pass


class TimeoutExceeded(FlowPathError, TimeoutError):
    """A single attempt did not settle within its timeout.

    Attributes:
        timeout: Timeout that was exceeded, in seconds
    """

    def __init__(self, message: str, timeout: float):
        super().__init__(message)
        self.timeout = timeout


class RetryExhausted(FlowPathError):
    """Retry budget ran out; wraps the last failure.

    Attributes:
        attempts: Number of retries that were allowed (total tries = attempts + 1)
        last_error: Failure of the final attempt
    """

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: Optional[BaseException] = None,
    ):
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(f"{message}{detail} after {attempts} attempts")
        self.attempts = attempts
        self.last_error = last_error


def require_defined(value: Optional[T], name: str) -> T:
    """Return ``value`` unless it is None.

    Raises:
        InvalidArgumentError: If value is None
    """
    if value is None:
        raise InvalidArgumentError(f"Parameter '{name}' must not be None", name, value)
    return value


def require_condition(
    value: T,
    condition: Callable[[T], bool],
    message: str,
    name: Optional[str] = None,
) -> T:
    """Return ``value`` if it satisfies ``condition``.

    Raises:
        InvalidArgumentError: If the condition is not satisfied
    """
    if not condition(value):
        raise InvalidArgumentError(message, name, value)
    return value


def require_type(
    value: Any,
    expected: Union[Type[Any], Tuple[Type[Any], ...]],
    name: str,
) -> Any:
    """Return ``value`` if it is an instance of ``expected``.

    Booleans are rejected where an int is expected.

    Raises:
        InvalidArgumentError: If the value has the wrong type
    """
    expected_types = expected if isinstance(expected, tuple) else (expected,)
    if isinstance(value, bool) and bool not in expected_types:
        valid = False
    else:
        valid = isinstance(value, expected_types)
    if not valid:
        type_names = " or ".join(t.__name__ for t in expected_types)
        raise InvalidArgumentError(
            f"Parameter '{name}' must be of type {type_names}", name, value
        )
    return value
