"""Main configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from flowpath.domain.config.batch import BatchSettings
from flowpath.domain.config.retry import RetrySettings


class FlowPathConfig(BaseModel):
    """Root configuration model aggregating all configuration sections.

    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        retry: Defaults for ``retry`` calls
        batch: Defaults for ``batch`` calls
    """

    retry: RetrySettings = Field(default_factory=RetrySettings)
    batch: BatchSettings = Field(default_factory=BatchSettings)

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "retry": {
                    "max_attempts": 3,
                    "base_delay": 1.0,
                    "exponential_backoff": True,
                },
                "batch": {
                    "concurrency": 4,
                    "retries": 2,
                    "retry_delay": 0.5,
                    "exponential_backoff": False,
                    "timeout": 30.0,
                },
            }
        },
    )
