from __future__ import annotations

import threading
from collections.abc import Iterable

from .models import ItemReference


class DedupStore:
    """
    Canonical item id -> ItemReference, in first-seen order.

    One store lives for one pagination run. There is no delete: once an id is
    in, re-inserting it (even with a different title or url) is a no-op.
    """

    def __init__(self) -> None:
        self._items: dict[str, ItemReference] = {}
        self._lock = threading.Lock()

    def insert(self, item: ItemReference) -> bool:
        """Store `item` unless its id is already known; True when it was new."""
        if not item.id:
            raise ValueError("ItemReference.id must be non-empty")
        with self._lock:
            if item.id in self._items:
                return False
            self._items[item.id] = item
            return True

    def insert_many(self, items: Iterable[ItemReference]) -> int:
        """Insert in order; returns how many were new."""
        return sum(1 for it in items if self.insert(it))

    def size(self) -> int:
        with self._lock:
            return len(self._items)

    def values(self) -> list[ItemReference]:
        with self._lock:
            return list(self._items.values())

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._items.keys())

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, item_id: object) -> bool:
        with self._lock:
            return item_id in self._items
