"""Configuration and policy models with Pydantic validation."""

from flowpath.domain.config.app import FlowPathConfig
from flowpath.domain.config.base import PolicyModel
from flowpath.domain.config.batch import BatchPolicy, BatchSettings
from flowpath.domain.config.retry import RetryPolicy, RetrySettings

__all__ = [
    "FlowPathConfig",
    "PolicyModel",
    "RetryPolicy",
    "RetrySettings",
    "BatchPolicy",
    "BatchSettings",
]
