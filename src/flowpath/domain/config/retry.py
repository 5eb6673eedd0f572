"""Retry configuration models."""

from typing import Any, Callable, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from flowpath.domain.config.base import PolicyModel, reject_bool


def _always_retry(error: BaseException) -> bool:
    return True


class RetrySettings(BaseModel):
    """Retry defaults loaded from the configuration file.

    Attributes:
        max_attempts: Number of retries after the first attempt
        base_delay: Delay between attempts in seconds
        exponential_backoff: Double the delay after every retry
    """

    max_attempts: int = Field(3, ge=0)
    base_delay: float = Field(1.0, ge=0.0, allow_inf_nan=False)
    exponential_backoff: bool = False

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    @field_validator("max_attempts", "base_delay", mode="before")
    @classmethod
    def reject_booleans(cls, value: Any) -> Any:
        return reject_bool(value)


class RetryPolicy(PolicyModel):
    """Policy for one ``retry`` call.

    Attributes:
        max_attempts: Number of retries; total tries = max_attempts + 1 (alias ``attempts``)
        base_delay: Delay before a retry in seconds (alias ``delay``)
        exponential_backoff: Wait base_delay * 2**k before retry k (alias ``exponential``)
        is_retryable: Predicate deciding whether a failure may be retried (alias ``retry_if``)
        on_retry: Called with (failure, attempt_index) before each delay
    """

    max_attempts: int = Field(3, ge=0, validation_alias=AliasChoices("max_attempts", "attempts"))
    base_delay: float = Field(
        1.0, ge=0.0, allow_inf_nan=False, validation_alias=AliasChoices("base_delay", "delay")
    )
    exponential_backoff: bool = Field(
        False, validation_alias=AliasChoices("exponential_backoff", "exponential")
    )
    is_retryable: Callable[[BaseException], bool] = Field(
        _always_retry, validation_alias=AliasChoices("is_retryable", "retry_if")
    )
    on_retry: Optional[Callable[[BaseException, int], Any]] = None

    @field_validator("max_attempts", "base_delay", mode="before")
    @classmethod
    def reject_booleans(cls, value: Any) -> Any:
        return reject_bool(value)
