"""Batch service - processes a collection with bounded concurrency"""

from __future__ import annotations

import asyncio
import collections.abc
import inspect
import logging
from typing import Any, Generic, Iterable, List, Optional, TypeVar

from flowpath.domain.config import BatchPolicy, RetryPolicy
from flowpath.domain.errors import InvalidArgumentError, InvalidOperationError, require_defined
from flowpath.domain.models.progress import BatchProgress
from flowpath.infrastructure.array import chunk
from flowpath.infrastructure.retry import retry
from flowpath.infrastructure.timeout import with_timeout

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class BatchRun(Generic[T, R]):
    """State of a single ``batch`` invocation.

    Items are admitted in fixed groups of ``concurrency`` members. A group is
    started in index order and must fully settle before the next one starts;
    there is no refill of free slots. ``results[i]`` is written only by item
    ``i`` itself, so output order never depends on completion order.
    """

    def __init__(self, items: List[T], policy: BatchPolicy):
        self.items = items
        self.policy = policy
        self.results: List[Optional[R]] = [None] * len(items)
        self.completed = 0
        self.in_flight = 0
        self.failure: Optional[BaseException] = None
        self._started = False
        self._retry_policy: Optional[RetryPolicy] = (
            policy.retry_policy() if policy.retries > 0 else None
        )

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def group_size(self) -> int:
        """Number of items admitted together (whole input when unbounded)"""
        if self.policy.concurrency is None:
            return self.total
        return min(self.total, self.policy.concurrency)

    async def execute(self) -> List[R]:
        """Process every item and return the results in input order

        Raises:
            InvalidOperationError: If the run was already executed
            Exception: First failure surfaced by an item, once its group settled
        """
        if self._started:
            raise InvalidOperationError("BatchRun can only be executed once")
        self._started = True

        if not self.items:
            return []

        size = self.group_size
        groups = chunk(self.items, size)
        for group_index, group in enumerate(groups):
            offset = group_index * size
            logger.debug(
                f"Processing group {group_index + 1}/{len(groups)} "
                f"(items {offset}-{offset + len(group) - 1})"
            )
            await asyncio.gather(
                *(self._settle(item, offset + position) for position, item in enumerate(group))
            )
            if self.failure is not None:
                logger.error(
                    f"Batch failed in group {group_index + 1}/{len(groups)}: {self.failure!r}"
                )
                raise self.failure

        return self.results  # type: ignore[return-value]

    async def _settle(self, item: T, index: int) -> None:
        self.in_flight += 1
        try:
            result = await self._process_item(item, index)
        except Exception as e:
            error: Optional[Exception] = e
        else:
            error = None
        finally:
            self.in_flight -= 1

        if error is not None:
            if self.failure is None:
                self.failure = error
            self.completed += 1
            logger.warning(f"Item {index} failed: {error!r}")
            self._report(BatchProgress(self.completed, self.total, index, error=error))
            return

        self.results[index] = result
        self.completed += 1
        self._report(BatchProgress(self.completed, self.total, index, result=result))

    async def _process_item(self, item: T, index: int) -> R:
        if self._retry_policy is None:
            return await self._attempt(item, index)
        return await retry(lambda attempt_index: self._attempt(item, index), self._retry_policy)

    async def _attempt(self, item: T, index: int) -> R:
        """Run ``process`` once, raced against the per-attempt timeout if set"""
        if self.policy.timeout is not None:
            return await with_timeout(lambda: self.policy.process(item, index), self.policy.timeout)
        result = self.policy.process(item, index)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _report(self, progress: BatchProgress) -> None:
        if self.policy.on_progress is None:
            return
        try:
            self.policy.on_progress(progress)
        except Exception as e:
            logger.warning(f"on_progress callback failed: {e!r}", exc_info=True)


async def batch(
    items: Iterable[T],
    policy: Optional[BatchPolicy] = None,
    **options: Any,
) -> List[R]:
    """Process ``items`` with bounded concurrency, per-item retries and timeouts.

    Args:
        items: Finite iterable of inputs (materialized once)
        policy: Batch policy; may be omitted when ``process`` is given in options
        **options: BatchPolicy fields overriding ``policy`` (process, concurrency,
            retries, retry_delay, exponential_backoff, timeout, on_progress)

    Returns:
        Results in input order

    Raises:
        InvalidArgumentError: If items or the policy are invalid (before any work starts)
        RetryExhausted: If an item used up its retries
        TimeoutExceeded: If an item's only attempt timed out
        Exception: An item's own failure when no retries are configured
    """
    require_defined(items, "items")
    if isinstance(items, (str, bytes)) or not isinstance(items, collections.abc.Iterable):
        raise InvalidArgumentError("Parameter 'items' must be an iterable of items", "items", items)
    policy = BatchPolicy.from_options(policy, **options)

    run: BatchRun[T, R] = BatchRun(list(items), policy)
    logger.debug(
        f"Starting batch of {run.total} item(s) "
        f"(concurrency={policy.concurrency or 'unbounded'}, retries={policy.retries})"
    )
    return await run.execute()
