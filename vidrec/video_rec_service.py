"""Video recommendations built from the user and video services."""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from vidrec.records import (
    ServiceError,
    StatusCode,
    TrendingVideos,
    UserInfo,
    VideoInfo,
    deduplicate_ids,
)
from vidrec.trending import RoundRobinPool, TrendingCache, fetch_in_batches

logger = logging.getLogger(__name__)

_MASK64 = (1 << 64) - 1
_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_RETRYABLE = frozenset({StatusCode.INTERNAL, StatusCode.UNAVAILABLE})

R = TypeVar("R")


class _UserClient(Protocol):
    def get_users(self, user_ids: Sequence[int]) -> list[UserInfo]: ...


class _VideoClient(Protocol):
    def get_videos(self, video_ids: Sequence[int]) -> list[VideoInfo]: ...

    def get_trending_videos(self) -> TrendingVideos: ...


def _fnv1_64(data: bytes) -> int:
    value = _FNV64_OFFSET
    for byte in data:
        value = (value * _FNV64_PRIME) & _MASK64
        value ^= byte
    return value


class Ranker:
    """Scores a video for a user from their coefficient vectors.

    The score is a deterministic hash of the 64-bit wrapping dot product of
    the coefficients the two vectors share.
    """

    def rank(
        self,
        user_coefficients: Mapping[int, int],
        video_coefficients: Mapping[int, int],
    ) -> int:
        dot = 0
        for feature, user_coeff in user_coefficients.items():
            video_coeff = video_coefficients.get(feature)
            if video_coeff is not None:
                dot = (dot + user_coeff * video_coeff) & _MASK64
        digest = hashlib.sha256(f"{dot:020d}".encode("ascii")).digest()
        return _fnv1_64(digest)


@dataclass(frozen=True)
class VideoRecServiceOptions:
    """Settings for a :class:`VideoRecService`.

    ``refresh_interval_s`` is how long the background trending refresher
    waits between checks; ``None`` disables the background refresher.
    """

    max_batch_size: int = 50
    disable_fallback: bool = False
    disable_retry: bool = False
    refresh_interval_s: float | None = 15.0


@dataclass(frozen=True)
class TopVideosResponse:
    """Recommended videos; ``stale_response`` marks an answer from the cache."""

    videos: list[VideoInfo] = field(default_factory=list)
    stale_response: bool = False


@dataclass(frozen=True)
class ServiceStats:
    """Counters describing the requests a service has handled."""

    total_requests: int
    total_errors: int
    active_requests: int
    user_service_errors: int
    video_service_errors: int
    stale_responses: int
    average_latency_ms: float


class VideoRecService:
    """Recommends videos liked by the users someone subscribes to.

    Falls back to a cache of trending videos when a backend call fails,
    unless fallback is disabled.
    """

    def __init__(
        self,
        options: VideoRecServiceOptions,
        user_clients: Iterable[_UserClient],
        video_clients: Iterable[_VideoClient],
        ranker: Ranker | None = None,
    ) -> None:
        if options.max_batch_size < 1:
            raise ValueError(
                f"max_batch_size must be positive, got {options.max_batch_size}"
            )
        self.options = options
        self._user_pool: RoundRobinPool[_UserClient] = RoundRobinPool(user_clients)
        self._video_pool: RoundRobinPool[_VideoClient] = RoundRobinPool(video_clients)
        self._ranker = ranker if ranker is not None else Ranker()
        self._trending = TrendingCache()

        self._lock = threading.Lock()
        self._total_requests = 0
        self._total_errors = 0
        self._active_requests = 0
        self._user_service_errors = 0
        self._video_service_errors = 0
        self._stale_responses = 0
        self._total_latency_ms = 0

        self._stopped = threading.Event()
        self._refresher: threading.Thread | None = None
        if options.refresh_interval_s is not None:
            self._refresher = threading.Thread(
                target=self._refresh_loop, name="trending-refresh", daemon=True
            )
            self._refresher.start()

    def __enter__(self) -> VideoRecService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _call(self, fn: Callable[..., R], *args: object) -> R:
        try:
            return fn(*args)
        except ServiceError as err:
            if self.options.disable_retry or err.code not in _RETRYABLE:
                raise
            logger.info("retrying after failed call: %s", err)
            return fn(*args)

    def _count(self, counter: str) -> None:
        with self._lock:
            setattr(self, counter, getattr(self, counter) + 1)

    def _fail_or_fallback(
        self, counter: str, err: ServiceError, limit: int
    ) -> TopVideosResponse:
        self._count(counter)
        if not self.options.disable_fallback:
            return self._fallback(limit)
        self._count("_total_errors")
        logger.warning("request failed: %s", err)
        raise err

    def _fallback(self, limit: int) -> TopVideosResponse:
        videos = self._trending.fallback(limit)
        self._count("_stale_responses")
        return TopVideosResponse(videos=videos, stale_response=True)

    def get_top_videos(self, user_id: int, limit: int) -> TopVideosResponse:
        """Return up to ``limit`` videos ranked for ``user_id``.

        Raises :class:`ServiceError` when a backend fails and no fallback
        answer is available.
        """
        start = time.monotonic()
        with self._lock:
            self._active_requests += 1
        try:
            user_client = self._user_pool.next()
            batch_size = self.options.max_batch_size

            try:
                user = self._call(user_client.get_users, [user_id])[0]
            except ServiceError as err:
                return self._fail_or_fallback("_user_service_errors", err, limit)

            try:
                subscriptions = fetch_in_batches(
                    lambda batch: self._call(user_client.get_users, batch),
                    user.subscribed_to,
                    batch_size,
                )
            except ServiceError as err:
                return self._fail_or_fallback("_user_service_errors", err, limit)

            candidates = deduplicate_ids(
                video_id for other in subscriptions for video_id in other.liked_videos
            )

            video_client = self._video_pool.next()
            try:
                videos = fetch_in_batches(
                    lambda batch: self._call(video_client.get_videos, batch),
                    candidates,
                    batch_size,
                )
            except ServiceError as err:
                unavailable = ServiceError(
                    StatusCode.UNAVAILABLE,
                    "Video service client fail to get the video responses "
                    f"from the server: {err.message}",
                )
                return self._fail_or_fallback("_video_service_errors", unavailable, limit)

            scored = sorted(
                videos,
                key=lambda video: self._ranker.rank(
                    user.user_coefficients, video.video_coefficients
                ),
                reverse=True,
            )
            top = scored[: max(0, min(limit, len(scored)))]

            elapsed_ms = int((time.monotonic() - start) * 1000)
            with self._lock:
                self._total_latency_ms += elapsed_ms
            return TopVideosResponse(videos=top)
        finally:
            with self._lock:
                self._active_requests -= 1
                self._total_requests += 1

    def get_stats(self) -> ServiceStats:
        """Return the current request counters."""
        with self._lock:
            answered = self._total_requests - self._total_errors
            average = self._total_latency_ms / answered if answered else 0.0
            return ServiceStats(
                total_requests=self._total_requests,
                total_errors=self._total_errors,
                active_requests=self._active_requests,
                user_service_errors=self._user_service_errors,
                video_service_errors=self._video_service_errors,
                stale_responses=self._stale_responses,
                average_latency_ms=average,
            )

    def peek_trending_videos(self) -> list[VideoInfo]:
        """Return the currently cached trending videos."""
        return self._trending.snapshot()

    def refresh_trending(self) -> list[VideoInfo]:
        """Fetch the trending videos once and store them in the cache.

        A failed batch stops the fetch; the videos gathered so far are
        cached. Raises :class:`ServiceError` if the trending list itself
        cannot be fetched.
        """
        client = self._video_pool.next()
        trending = self._call(client.get_trending_videos)
        ids = trending.videos
        size = self.options.max_batch_size
        infos: list[VideoInfo] = []
        for offset in range(0, len(ids), size):
            try:
                infos.extend(self._call(client.get_videos, ids[offset : offset + size]))
            except ServiceError as err:
                logger.warning("failed to fetch trending video infos: %s", err)
                break
        self._trending.update(infos, trending.expiration_time_s)
        return infos

    def _refresh_loop(self) -> None:
        interval = self.options.refresh_interval_s or 0.0
        while not self._stopped.is_set():
            if self._trending.is_fresh(time.time()):
                self._stopped.wait(interval)
                continue
            try:
                self.refresh_trending()
            except ServiceError as err:
                logger.warning("failed to fetch trending videos: %s", err)
                self._stopped.wait(interval)

    def close(self) -> None:
        """Stop the background refresher, if one is running."""
        self._stopped.set()
        if self._refresher is not None:
            self._refresher.join()
            self._refresher = None