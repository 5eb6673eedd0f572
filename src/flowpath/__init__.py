"""Async batch processing and retry-with-backoff utilities."""

from flowpath.application.batch_service import BatchRun, batch
from flowpath.domain.config import BatchPolicy, RetryPolicy
from flowpath.domain.errors import (
    ConfigurationError,
    FlowPathError,
    InvalidArgumentError,
    InvalidOperationError,
    RetryExhausted,
    TimeoutExceeded,
)
from flowpath.domain.models.progress import BatchProgress
from flowpath.infrastructure.array import chunk
from flowpath.infrastructure.config.config_manager import ConfigManager
from flowpath.infrastructure.retry import retry
from flowpath.infrastructure.timeout import with_timeout

__all__ = [
    "batch",
    "BatchRun",
    "retry",
    "with_timeout",
    "chunk",
    "BatchPolicy",
    "RetryPolicy",
    "BatchProgress",
    "ConfigManager",
    "FlowPathError",
    "InvalidArgumentError",
    "InvalidOperationError",
    "ConfigurationError",
    "RetryExhausted",
    "TimeoutExceeded",
]
