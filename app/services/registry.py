from __future__ import annotations

import threading

from app.models.pod import PodKey, PodRecord


class PodRegistry:
    """Pods known to this node, keyed by (namespace, name).

    Every operation holds one lock; records are immutable, so callers never
    share mutable state with the table.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pods: dict[PodKey, PodRecord] = {}

    def get(self, key: PodKey) -> PodRecord | None:
        with self._lock:
            return self._pods.get(key)

    def list(self) -> list[PodRecord]:
        with self._lock:
            return list(self._pods.values())

    def put(self, record: PodRecord) -> PodRecord | None:
        """Insert or wholesale-replace the record; returns the one it replaced."""
        with self._lock:
            previous = self._pods.get(record.key)
            self._pods[record.key] = record
            return previous

    def delete(self, key: PodKey) -> bool:
        with self._lock:
            return self._pods.pop(key, None) is not None

    def compare_and_put(self, expected: PodRecord, record: PodRecord) -> bool:
        """Replace ``expected`` with ``record`` unless the key changed hands meanwhile."""
        with self._lock:
            if self._pods.get(record.key) is not expected:
                return False
            self._pods[record.key] = record
            return True

    def restore(self, expected: PodRecord, previous: PodRecord | None) -> bool:
        """Undo ``expected``: put back ``previous``, or drop the key when there was none.

        Does nothing if ``expected`` is no longer the stored record.
        """
        with self._lock:
            if self._pods.get(expected.key) is not expected:
                return False
            if previous is None:
                del self._pods[expected.key]
            else:
                self._pods[expected.key] = previous
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._pods)
