"""Sequence helpers used by the batch engine."""

from typing import List, Sequence, TypeVar

from flowpath.domain.errors import require_condition, require_type

T = TypeVar("T")


def chunk(sequence: Sequence[T], size: int) -> List[List[T]]:
    """Split a sequence into consecutive groups of ``size`` elements

    The final group may be shorter. An empty sequence yields no groups.

    Args:
        sequence: Items to split
        size: Group size (>= 1)

    Returns:
        List of groups in original order

    Raises:
        InvalidArgumentError: If size is not an integer >= 1
    """
    require_type(size, int, "size")
    require_condition(size, lambda s: s >= 1, "Chunk size must be at least 1", "size")

    return [list(sequence[start : start + size]) for start in range(0, len(sequence), size)]
