"""
Per-item serialization of allocations.

Allocate re-checks availability and inserts in one critical section: a
process-level lock per item id, plus a locking read of the item row for
databases that support SELECT ... FOR UPDATE.

Item ids are striped over a fixed set of locks, so memory stays constant
however many items pass through. Two items may share a stripe; callers
never hold more than one item lock at a time.
"""

import threading
from contextlib import contextmanager
from typing import List


class ItemLockRegistry:
    """Fixed pool of locks; an item id always maps to the same one"""

    def __init__(self, num_locks: int = 128):
        if num_locks < 1:
            raise ValueError(f"num_locks must be >= 1, got {num_locks}")
        self.num_locks = num_locks
        self._locks: List[threading.Lock] = [threading.Lock() for _ in range(num_locks)]

    def __len__(self):
        return self.num_locks

    def lock_for(self, item_id: int) -> threading.Lock:
        return self._locks[hash(item_id) % self.num_locks]

    @contextmanager
    def hold(self, item_id: int):
        with self.lock_for(item_id):
            yield


item_locks = ItemLockRegistry()
