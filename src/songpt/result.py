"""Tagged success/failure values for collaborator calls.

A :class:`Result` holds either a value or a :class:`SongptError`. The
pipeline uses it where a batch of independent calls must run to completion
even when some of them fail; everywhere else errors simply propagate.

Example:
    >>> result = await capture(client.get_track_for_title("Humble", token))
    >>> if result.ok:
    ...     print(result.value.id)
    ... else:
    ...     print(f"skipped: {result.error}")
"""

from dataclasses import dataclass
from typing import Awaitable, Generic, List, Optional, Sequence, Tuple, TypeVar

from .exceptions import SongptError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a single call.

    Attributes:
        value: Returned value when the call succeeded
        error: Raised error when the call failed
    """

    value: Optional[T] = None
    error: Optional[SongptError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: SongptError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, re-raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.value


async def capture(awaitable: Awaitable[T]) -> Result[T]:
    """Await a call and wrap its outcome.

    Only :class:`SongptError` is captured. Anything else is a bug and
    propagates.
    """
    try:
        return Result.success(await awaitable)
    except SongptError as e:
        return Result.failure(e)


def partition(results: Sequence[Result[T]]) -> Tuple[List[T], List[SongptError]]:
    """Split results into successful values and errors, keeping input order."""
    values = [r.unwrap() for r in results if r.ok]
    errors = [r.error for r in results if not r.ok]
    return values, errors
