"""
Bounded, non-blocking message channel between the audio and control contexts.

Producers never wait: when the channel is full the configured
BackpressurePolicy decides whether the oldest item is evicted or the new
one is refused.
"""
from __future__ import annotations

from collections import deque
from typing import Deque, Generic, List, Optional, TypeVar
from enum import Enum, auto
import threading

T = TypeVar("T")


class BackpressurePolicy(Enum):
    DROP_OLDEST = auto()
    DROP_NEWEST = auto()
    BLOCK_NEVER = auto()  # non-blocking, return False


class Channel(Generic[T]):
    def __init__(self, capacity: int, policy: BackpressurePolicy = BackpressurePolicy.DROP_OLDEST) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.capacity = int(capacity)
        self.policy = policy
        self.dropped = 0
        self._items: Deque[T] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def put(self, item: T) -> bool:
        """Returns False when ``item`` was refused; evictions under DROP_OLDEST still return True."""
        with self._lock:
            if len(self._items) >= self.capacity:
                self.dropped += 1
                if self.policy is not BackpressurePolicy.DROP_OLDEST:
                    return False
                self._items.popleft()
            self._items.append(item)
            return True

    def drain(self, limit: Optional[int] = None) -> List[T]:
        with self._lock:
            n = len(self._items) if limit is None else max(0, min(limit, len(self._items)))
            return [self._items.popleft() for _ in range(n)]

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
