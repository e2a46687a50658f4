"""In-memory inventory for local runs and tests."""

from __future__ import annotations

import threading
from collections.abc import Iterable


class InMemoryInventory:
    """Tracks leasable items and their reservations.

    Reservation is atomic per item, so two requests cannot reserve the
    same item at once.
    """

    def __init__(self, items: Iterable[str] = ()):
        self._available = set(items)
        self._reserved: set[str] = set()
        self._lock = threading.Lock()

    def add_item(self, item_id: str) -> None:
        with self._lock:
            self._available.add(item_id)

    def reserve_item(self, item_id: str) -> bool:
        with self._lock:
            if item_id in self._available and item_id not in self._reserved:
                self._reserved.add(item_id)
                return True
            return False

    def release_item(self, item_id: str) -> None:
        with self._lock:
            self._reserved.discard(item_id)

    def check_availability(self, item_id: str) -> bool:
        with self._lock:
            return item_id in self._available and item_id not in self._reserved
