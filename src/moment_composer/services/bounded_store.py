"""Capacity-capped FIFO collections backing the per-user galleries."""

from collections import deque
from collections.abc import Callable, Iterator
from typing import Generic, TypeVar

T = TypeVar("T")

PHOTO_CAPACITY = 50
TRANSCRIPTION_CAPACITY = 100
SONG_CAPACITY = 25


class BoundedStore(Generic[T]):
    """Insertion-ordered collection that evicts its oldest item past capacity.

    Eviction is strict FIFO: reads never reorder items, so the store always
    holds the most recently appended ``capacity`` items in append order.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._items: deque[T] = deque()

    @property
    def capacity(self) -> int:
        """Maximum number of retained items."""
        return self._capacity

    def append(self, item: T) -> T | None:
        """Append an item and return the evicted one, if any."""
        self._items.append(item)
        if len(self._items) > self._capacity:
            return self._items.popleft()
        return None

    def find(self, predicate: Callable[[T], bool]) -> T | None:
        """Return the first item matching the predicate."""
        for item in self._items:
            if predicate(item):
                return item
        return None

    def filter(self, predicate: Callable[[T], bool]) -> list[T]:
        """Return every item matching the predicate, oldest first."""
        return [item for item in self._items if predicate(item)]

    def all(self) -> list[T]:
        """Return a snapshot of all items, oldest first."""
        return list(self._items)

    def latest(self, count: int | None = None) -> list[T]:
        """Return the newest ``count`` items, oldest first."""
        if count is None:
            return self.all()
        if count <= 0:
            return []
        return list(self._items)[-count:]

    def remove(self, item: T) -> bool:
        """Remove a specific item; return false when it was not stored."""
        try:
            self._items.remove(item)
        except ValueError:
            return False
        return True

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))
