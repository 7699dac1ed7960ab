from __future__ import annotations
from collections import OrderedDict
import threading
from typing import Any, Hashable, Optional

class InsertionOrderedCache:
    """
    Bounded map that evicts in insertion order, `evict_batch` entries at a time.

    Reads do not refresh an entry's position (this is not an LRU).
    """
    def __init__(self, capacity: int = 1000, evict_batch: int = 100):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = int(capacity)
        self.evict_batch = max(1, min(int(evict_batch), self.capacity))
        self.store: "OrderedDict[Hashable, Any]" = OrderedDict()
        self.lock = threading.Lock()

    def __len__(self) -> int:
        return len(self.store)

    def __contains__(self, key: Hashable) -> bool:
        with self.lock:
            return key in self.store

    def get(self, key: Hashable) -> Optional[Any]:
        with self.lock:
            return self.store.get(key)

    def set(self, key: Hashable, value: Any) -> int:
        """Insert/overwrite; returns how many entries were evicted to make room."""
        with self.lock:
            evicted = 0
            if key not in self.store and len(self.store) >= self.capacity:
                for _ in range(min(self.evict_batch, len(self.store))):
                    self.store.popitem(last=False)
                    evicted += 1
            self.store[key] = value
            return evicted

    def clear(self) -> None:
        with self.lock:
            self.store.clear()
