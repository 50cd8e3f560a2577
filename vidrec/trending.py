"""Batched fetching, the trending-video fallback cache and client rotation."""

from __future__ import annotations

import itertools
import threading
from collections.abc import Callable, Iterable, Sequence
from typing import Generic, TypeVar

from vidrec.records import ServiceError, StatusCode, VideoInfo

T = TypeVar("T")
R = TypeVar("R")


def fetch_in_batches(
    fetch: Callable[[list[T]], Iterable[R]],
    ids: Sequence[T],
    batch_size: int,
) -> list[R]:
    """Call ``fetch`` on consecutive slices of at most ``batch_size`` ids.

    The results of all calls are concatenated in order. An exception raised
    by ``fetch`` propagates and stops further calls.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    results: list[R] = []
    for offset in range(0, len(ids), batch_size):
        results.extend(fetch(list(ids[offset : offset + batch_size])))
    return results


class TrendingCache:
    """Thread-safe cache of trending videos used as a fallback answer."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._videos: list[VideoInfo] = []
        self._expire_time = 0

    @property
    def expire_time(self) -> int:
        """Unix time in seconds until which the cached list is current."""
        with self._lock:
            return self._expire_time

    def snapshot(self) -> list[VideoInfo]:
        """Return a copy of the cached videos."""
        with self._lock:
            return list(self._videos)

    def update(self, videos: Iterable[VideoInfo], expire_time: int) -> None:
        """Replace the cached videos and their expiry time."""
        new_videos = list(videos)
        with self._lock:
            self._videos = new_videos
            self._expire_time = expire_time

    def is_fresh(self, now: float) -> bool:
        """Return whether the cache has not yet expired at time ``now``."""
        with self._lock:
            return self._expire_time >= now

    def fallback(self, limit: int) -> list[VideoInfo]:
        """Return up to ``limit`` cached videos; a limit of 0 or less means all.

        Raises :class:`ServiceError` with ``UNAVAILABLE`` when the cache is empty.
        """
        with self._lock:
            if not self._videos:
                raise ServiceError(
                    StatusCode.UNAVAILABLE,
                    "Fallback fails, no trending video cache is available",
                )
            count = len(self._videos)
            if 0 < limit < count:
                count = limit
            return self._videos[:count]


class RoundRobinPool(Generic[T]):
    """Hands out clients from a fixed pool in rotation, safely across threads."""

    def __init__(self, clients: Iterable[T]) -> None:
        self._clients = list(clients)
        if not self._clients:
            raise ValueError("a client pool needs at least one client")
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._clients)

    def next(self) -> T:
        """Return the next client in rotation."""
        with self._lock:
            index = next(self._counter)
        return self._clients[index % len(self._clients)]