"""Retry engine using tenacity.

Runs an operation up to ``max_attempts + 1`` times with a fixed or exponential
delay between attempts. Running out of budget raises RetryExhausted; a failure
rejected by the policy's ``is_retryable`` predicate is re-raised unchanged.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_base,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)
from tenacity.wait import wait_base

from flowpath.domain.config import RetryPolicy
from flowpath.domain.errors import RetryExhausted, require_condition

logger = logging.getLogger(__name__)

T = TypeVar("T")


class retry_until_exhausted(retry_base):
    """Retry strategy that consults the policy predicate until the budget is spent.

    After the last allowed attempt the strategy always asks for a retry, so that
    the stop condition fires and the failure ends up wrapped in RetryExhausted
    instead of being re-raised bare. Only ``Exception`` failures are retried;
    cancellation and other ``BaseException`` subclasses propagate as is.
    """

    def __init__(self, policy: RetryPolicy):
        self.policy = policy

    def __call__(self, retry_state: RetryCallState) -> bool:
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return False
        exception = outcome.exception()
        if not isinstance(exception, Exception):
            return False
        if retry_state.attempt_number > self.policy.max_attempts:
            return True
        return bool(self.policy.is_retryable(exception))


def _wait_strategy(policy: RetryPolicy) -> wait_base:
    # Exponential backoff: base_delay * 2^attempt_index
    if policy.exponential_backoff:
        return wait_exponential(multiplier=policy.base_delay, exp_base=2, min=0)
    return wait_fixed(policy.base_delay)


def _before_sleep(policy: RetryPolicy) -> Callable[[RetryCallState], None]:
    """Log the failure and fire ``on_retry``; hook errors are logged, never raised."""

    def _notify(retry_state: RetryCallState) -> None:
        if retry_state.outcome is None:
            return
        exception = retry_state.outcome.exception()
        attempt_index = retry_state.attempt_number - 1
        delay = getattr(retry_state.next_action, "sleep", 0.0)
        logger.warning(
            f"Attempt {retry_state.attempt_number}/{policy.max_attempts + 1} failed: "
            f"{exception!r}. Retrying in {delay:.3f}s..."
        )
        if policy.on_retry is None:
            return
        try:
            policy.on_retry(exception, attempt_index)
        except Exception as e:
            logger.warning(f"on_retry callback failed: {e!r}", exc_info=True)

    return _notify


def _raise_exhausted(policy: RetryPolicy) -> Callable[[RetryCallState], Any]:
    def _exhausted(retry_state: RetryCallState) -> Any:
        cause = retry_state.outcome.exception() if retry_state.outcome else None
        logger.error(f"Giving up after {retry_state.attempt_number} attempt(s): {cause!r}")
        raise RetryExhausted(
            "Retry attempts exhausted", attempts=policy.max_attempts, last_error=cause
        ) from cause

    return _exhausted


def create_retrying(policy: RetryPolicy) -> AsyncRetrying:
    """Create a tenacity controller implementing ``policy``.

    Args:
        policy: Validated retry policy

    Returns:
        AsyncRetrying instance (one per ``retry`` call)
    """
    return AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts + 1),
        wait=_wait_strategy(policy),
        retry=retry_until_exhausted(policy),
        before_sleep=_before_sleep(policy),
        retry_error_callback=_raise_exhausted(policy),
        sleep=asyncio.sleep,
    )


async def retry(
    operation: Callable[[int], Union[T, Awaitable[T]]],
    policy: Optional[RetryPolicy] = None,
    **options: Any,
) -> T:
    """Run ``operation`` until it succeeds or the retry policy gives up.

    Args:
        operation: Called with the 0-based attempt index; returns a value or an awaitable
        policy: Retry policy (defaults apply when None)
        **options: RetryPolicy fields overriding ``policy`` (``attempts``, ``delay``,
            ``exponential``, ``retry_if``, ``on_retry`` and their long names)

    Returns:
        Value produced by the first successful attempt

    Raises:
        InvalidArgumentError: If operation is not callable or the policy is invalid
        RetryExhausted: If every allowed attempt failed
        Exception: The failure itself when ``is_retryable`` rejects it
    """
    require_condition(operation, callable, "Parameter 'operation' must be callable", "operation")
    policy = RetryPolicy.from_options(policy, **options)

    async for attempt in create_retrying(policy):
        with attempt:
            result = operation(attempt.retry_state.attempt_number - 1)
            if inspect.isawaitable(result):
                result = await result
    return result
