"""Race an operation against a timer.

The operation is not cancelled when the timer wins: it keeps running in the
background and its eventual outcome is discarded.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
from typing import Any, Awaitable, Callable, Set, TypeVar, Union

from flowpath.domain.errors import TimeoutExceeded, require_condition

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Strong references to operations that outlived their timeout
_abandoned: Set["asyncio.Future[Any]"] = set()


def _is_positive_duration(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


def _discard_late_outcome(task: "asyncio.Future[Any]") -> None:
    _abandoned.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Operation failed after its timeout, discarding: {error!r}")


def _prune_closed_loops() -> None:
    # A task whose loop was closed never runs its done callback
    for task in [t for t in _abandoned if t.get_loop().is_closed()]:
        _abandoned.discard(task)


def pending_count() -> int:
    """Number of timed-out operations still running in the background.

    Inside a running event loop only that loop's operations are counted;
    outside one, every operation whose loop is still open is counted.
    """
    _prune_closed_loops()
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return len(_abandoned)
    return sum(1 for task in _abandoned if task.get_loop() is loop)


async def with_timeout(operation: Callable[[], Union[T, Awaitable[T]]], seconds: float) -> T:
    """Run ``operation`` and fail if it does not settle within ``seconds``.

    Args:
        operation: Zero-argument callable returning a value or an awaitable
        seconds: Timeout in seconds (> 0)

    Returns:
        Result of the operation

    Raises:
        InvalidArgumentError: If seconds is not a positive finite number
        TimeoutExceeded: If the timer fires first
    """
    require_condition(
        seconds, _is_positive_duration, "Parameter 'seconds' must be a positive number", "seconds"
    )
    result = operation()
    if not inspect.isawaitable(result):
        return result

    task = asyncio.ensure_future(result)
    try:
        done, _ = await asyncio.wait({task}, timeout=seconds)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    _prune_closed_loops()
    _abandoned.add(task)
    task.add_done_callback(_discard_late_outcome)
    logger.debug(f"Operation exceeded {seconds}s timeout; leaving it to finish in the background")
    raise TimeoutExceeded(f"Timeout of {seconds}s exceeded", timeout=seconds)
