"""Thread-safe sets of strings with range-and-pattern scans."""

from __future__ import annotations

import re
import threading
from collections.abc import Iterable
from typing import Protocol, runtime_checkable


@runtime_checkable
class StringSet(Protocol):
    """A concurrent set of unique strings."""

    def add(self, key: str) -> bool:
        """Insert ``key``; return True if it was not already present."""

    def count(self) -> int:
        """Return the number of unique strings in the set."""

    def pred_range(self, begin: str, end: str, pattern: str) -> list[str]:
        """Return the strings in ``[begin, end)`` that match regex ``pattern``."""


def _select(keys: Iterable[str], begin: str, end: str, pattern: str) -> list[str]:
    regex = re.compile(pattern)
    return sorted(k for k in keys if begin <= k < end and regex.search(k))


class LockedStringSet:
    """A string set guarded by a single lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: set[str] = set()

    def add(self, key: str) -> bool:
        with self._lock:
            if key in self._items:
                return False
            self._items.add(key)
            return True

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def pred_range(self, begin: str, end: str, pattern: str) -> list[str]:
        with self._lock:
            keys = list(self._items)
        return _select(keys, begin, end, pattern)


class _Stripe:
    __slots__ = ("lock", "items")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.items: set[str] = set()


class StripedStringSet:
    """A string set split into independently locked stripes."""

    def __init__(self, stripe_count: int) -> None:
        if stripe_count < 1:
            raise ValueError(f"stripe_count must be positive, got {stripe_count}")
        self._stripes = [_Stripe() for _ in range(stripe_count)]

    def _stripe_for(self, key: str) -> _Stripe:
        return self._stripes[hash(key) % len(self._stripes)]

    def add(self, key: str) -> bool:
        stripe = self._stripe_for(key)
        with stripe.lock:
            if key in stripe.items:
                return False
            stripe.items.add(key)
            return True

    def count(self) -> int:
        total = 0
        for stripe in self._stripes:
            with stripe.lock:
                total += len(stripe.items)
        return total

    def pred_range(self, begin: str, end: str, pattern: str) -> list[str]:
        keys: list[str] = []
        for stripe in self._stripes:
            with stripe.lock:
                keys.extend(stripe.items)
        return _select(keys, begin, end, pattern)