from collections import OrderedDict
from typing import Callable, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class BoundedLog(Generic[T]):
    """
    Insertion-ordered, id-keyed store with a fixed capacity.

    Appending past capacity evicts the oldest entry that ``evictable`` allows
    (all entries by default). If nothing is evictable the store grows rather
    than drop a protected entry.
    """

    def __init__(
        self,
        capacity: int,
        key: Callable[[T], str],
        evictable: Optional[Callable[[T], bool]] = None,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._key = key
        self._evictable = evictable or (lambda item: True)
        self._items: "OrderedDict[str, T]" = OrderedDict()

    def append(self, item: T) -> List[T]:
        """Add ``item`` and return whatever was evicted to make room."""
        self._items[self._key(item)] = item
        evicted: List[T] = []
        while len(self._items) > self.capacity:
            victim = next((k for k, v in self._items.items() if self._evictable(v)), None)
            if victim is None:
                break
            evicted.append(self._items.pop(victim))
        return evicted

    def replace(self, item: T):
        """Swap an existing entry in place, keeping its position."""
        key = self._key(item)
        if key not in self._items:
            raise KeyError(key)
        self._items[key] = item

    def get(self, key: str) -> Optional[T]:
        return self._items.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items.values()))

    def newest_first(self) -> List[T]:
        return list(reversed(self._items.values()))
