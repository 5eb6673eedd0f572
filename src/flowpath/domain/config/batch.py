"""Batch configuration models."""

import math
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from flowpath.domain.config.base import PolicyModel, reject_bool
from flowpath.domain.config.retry import RetryPolicy

# Spellings accepted from environment variables and YAML strings
_NONE_STRINGS = {"none", "null"}
_UNBOUNDED_STRINGS = {"inf", "+inf", "infinity", "unbounded"}


def _is_keyword(value: Any, keywords: set) -> bool:
    return isinstance(value, str) and value.strip().lower() in keywords


def _unbounded_to_none(value: Any) -> Any:
    # math.inf, YAML .inf, "inf" and "none" all mean "no limit"
    reject_bool(value)
    if _is_keyword(value, _NONE_STRINGS | _UNBOUNDED_STRINGS):
        return None
    if isinstance(value, float) and math.isinf(value) and value > 0:
        return None
    return value


def _optional_duration(value: Any) -> Any:
    reject_bool(value)
    if _is_keyword(value, _NONE_STRINGS):
        return None
    return value


class BatchSettings(BaseModel):
    """Batch defaults loaded from the configuration file.

    Attributes:
        concurrency: Maximum items in flight (None = unbounded)
        retries: Retries per item
        retry_delay: Delay between item retries in seconds
        exponential_backoff: Double the delay after every retry
        timeout: Per-attempt timeout in seconds (None = no timeout)
    """

    concurrency: Optional[int] = Field(None, gt=0)
    retries: int = Field(0, ge=0)
    retry_delay: float = Field(1.0, ge=0.0, allow_inf_nan=False)
    exponential_backoff: bool = False
    timeout: Optional[float] = Field(None, gt=0.0, allow_inf_nan=False)

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    @field_validator("concurrency", mode="before")
    @classmethod
    def normalize_concurrency(cls, value: Any) -> Any:
        return _unbounded_to_none(value)

    @field_validator("retries", "retry_delay", mode="before")
    @classmethod
    def reject_booleans(cls, value: Any) -> Any:
        return reject_bool(value)

    @field_validator("timeout", mode="before")
    @classmethod
    def normalize_timeout(cls, value: Any) -> Any:
        return _optional_duration(value)


class BatchPolicy(PolicyModel):
    """Policy for one ``batch`` call.

    Attributes:
        process: Called as process(item, index); may return a value or an awaitable
        concurrency: Maximum items in flight (None or math.inf = unbounded)
        retries: Retries per item (0 = a single bare attempt)
        retry_delay: Delay between item retries in seconds
        exponential_backoff: Double the delay after every retry
        timeout: Per-attempt timeout in seconds (None = no timeout)
        on_progress: Called with a BatchProgress each time an item settles
    """

    process: Callable[..., Any]
    concurrency: Optional[int] = Field(None, gt=0)
    retries: int = Field(0, ge=0)
    retry_delay: float = Field(1.0, ge=0.0, allow_inf_nan=False)
    exponential_backoff: bool = False
    timeout: Optional[float] = Field(None, gt=0.0, allow_inf_nan=False)
    on_progress: Optional[Callable[..., Any]] = None

    @field_validator("concurrency", mode="before")
    @classmethod
    def normalize_concurrency(cls, value: Any) -> Any:
        return _unbounded_to_none(value)

    @field_validator("retries", "retry_delay", mode="before")
    @classmethod
    def reject_booleans(cls, value: Any) -> Any:
        return reject_bool(value)

    @field_validator("timeout", mode="before")
    @classmethod
    def normalize_timeout(cls, value: Any) -> Any:
        return _optional_duration(value)

    def retry_policy(self) -> RetryPolicy:
        """Derive the per-item retry policy"""
        return RetryPolicy(
            max_attempts=self.retries,
            base_delay=self.retry_delay,
            exponential_backoff=self.exponential_backoff,
        )
