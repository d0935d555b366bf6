# src/jobfeed/pipeline/context.py
"""
Shared, lock-guarded state for one collection run.

Worker threads only ever touch two mutable things: the remaining query budget
and the set of identities already seen. Both live here and get passed around
explicitly (no module-level globals).
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional, Set


class QuotaBudget:
    """
    Daily query budget shared by all workers.

    A worker reserves one unit before it starts a task, then either commits it
    (the query succeeded) or releases it (the query failed and cost nothing).
    `limit=None` means unlimited.
    """

    def __init__(self, limit: Optional[int] = None, used: int = 0):
        self._lock = threading.Lock()
        self.limit = limit
        self.used = max(0, int(used))
        self._held = 0
        self._exhausted = limit is not None and self.used >= limit

    @property
    def remaining(self) -> Optional[int]:
        with self._lock:
            return self._remaining()

    def _remaining(self) -> Optional[int]:
        if self.limit is None:
            return None if not self._exhausted else 0
        if self._exhausted:
            return 0
        return max(0, self.limit - self.used - self._held)

    @property
    def exhausted(self) -> bool:
        with self._lock:
            return self._remaining() == 0

    def reserve(self) -> bool:
        with self._lock:
            left = self._remaining()
            if left == 0:
                return False
            self._held += 1
            return True

    def commit(self) -> None:
        with self._lock:
            if self._held > 0:
                self._held -= 1
            self.used += 1
            if self.limit is not None and self.used >= self.limit:
                self._exhausted = True

    def release(self) -> None:
        with self._lock:
            if self._held > 0:
                self._held -= 1

    def exhaust(self) -> None:
        """Hard stop: nobody gets another reservation in this run."""
        with self._lock:
            self._exhausted = True


class SeenRegistry:
    """Thread-safe set of identity keys."""

    def __init__(self, initial: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._keys: Set[str] = {k for k in initial if k}

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)

    def claim(self, key: str) -> bool:
        """
        Add `key` and return True if it was new.
        Empty keys are never recorded and always count as new.
        """
        if not key:
            return True
        with self._lock:
            if key in self._keys:
                return False
            self._keys.add(key)
            return True

    def snapshot(self) -> Set[str]:
        with self._lock:
            return set(self._keys)


@dataclass
class RunContext:
    budget: QuotaBudget = field(default_factory=QuotaBudget)
    seen: SeenRegistry = field(default_factory=SeenRegistry)
