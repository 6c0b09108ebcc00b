# enrollment_core/utils/settle.py
"""Settle-all fan-out: run independent async operations and keep every outcome."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Generic, Hashable, Iterable, Mapping, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar('K', bound=Hashable)
T = TypeVar('T')


@dataclass(frozen=True)
class Settled(Generic[T]):
    """Outcome of one operation: either a value or the exception it raised"""
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle_all(
    operations: Mapping[K, Callable[[], Awaitable[T]]],
    limit: Optional[int] = None,
) -> Dict[K, Settled[T]]:
    """Run every operation concurrently, never failing fast.

    Returns one ``Settled`` per key, in the order of ``operations`` regardless of
    completion order. At most ``limit`` operations are in flight at once.
    """
    keys = list(operations)
    semaphore = asyncio.Semaphore(limit) if limit else None

    async def run(key: K) -> Settled[T]:
        factory = operations[key]
        try:
            if semaphore is None:
                return Settled(value=await factory())
            async with semaphore:
                return Settled(value=await factory())
        except Exception as e:
            logger.debug(f"Operation for {key!r} failed: {type(e).__name__}: {e}")
            return Settled(error=e)

    outcomes = await asyncio.gather(*(run(key) for key in keys))
    return dict(zip(keys, outcomes))


def unique_keys(keys: Iterable[Optional[K]]) -> list:
    """Distinct non-empty keys, first occurrence order"""
    return [key for key in dict.fromkeys(keys) if key]


async def settle_by_key(
    keys: Iterable[Optional[K]],
    fetch: Callable[[K], Awaitable[T]],
    limit: Optional[int] = None,
) -> Dict[K, Settled[T]]:
    """Fetch each distinct key once and settle all results"""
    operations = {key: (lambda key=key: fetch(key)) for key in unique_keys(keys)}
    return await settle_all(operations, limit=limit)
