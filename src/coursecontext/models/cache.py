from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CachedEntry(Generic[T]):
    """A fetched payload and the clock reading taken when it was stored."""

    value: T
    fetched_at: float  # Reading of the cache's clock, in seconds

    def age(self, now: float) -> float:
        return now - self.fetched_at
