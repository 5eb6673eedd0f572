"""BatchProgress model - snapshot emitted each time a batch item settles"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

R = TypeVar("R")


@dataclass(frozen=True)
class BatchProgress(Generic[R]):
    """Progress snapshot for one settled item"""

    completed: int  # Items settled so far, including this one
    total: int  # Number of items in the batch
    index: int  # Position of the settled item in the input
    result: Optional[R] = None  # Value produced on success
    error: Optional[BaseException] = None  # Final failure of the item

    @property
    def succeeded(self) -> bool:
        """Check if the settled item succeeded"""
        return self.error is None

    @property
    def is_last(self) -> bool:
        """Check if every item has settled"""
        return self.completed == self.total
