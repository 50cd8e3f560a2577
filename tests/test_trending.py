from collections import Counter
from concurrent.futures import ThreadPoolExecutor

import pytest

from vidrec.records import ServiceError, StatusCode, VideoInfo
from vidrec.trending import RoundRobinPool, TrendingCache, fetch_in_batches


def _videos(n):
    return [
        VideoInfo(video_id=1000 + i, url=f"https://video-data.localhost/blob/{1000 + i}")
        for i in range(n)
    ]


class _Recorder:
    def __init__(self):
        self.batches = []

    def __call__(self, batch):
        self.batches.append(batch)
        return [x * 10 for x in batch]


@pytest.mark.parametrize("batch_size", [1, 2, 3, 5, 7, 50])
def test_fetch_in_batches_preserves_order_and_respects_size(batch_size):
    ids = list(range(17))
    recorder = _Recorder()
    result = fetch_in_batches(recorder, ids, batch_size)
    assert result == [x * 10 for x in ids]
    assert all(1 <= len(b) <= batch_size for b in recorder.batches)
    assert [x for b in recorder.batches for x in b] == ids
    assert all(len(b) == batch_size for b in recorder.batches[:-1])


def test_fetch_in_batches_empty_makes_no_calls():
    recorder = _Recorder()
    assert fetch_in_batches(recorder, [], 5) == []
    assert recorder.batches == []


@pytest.mark.parametrize("batch_size", [0, -1])
def test_fetch_in_batches_rejects_bad_size(batch_size):
    with pytest.raises(ValueError):
        fetch_in_batches(_Recorder(), [1, 2], batch_size)


def test_fetch_in_batches_stops_on_error():
    calls = []

    def fetch(batch):
        calls.append(batch)
        if len(calls) == 2:
            raise ServiceError(StatusCode.INTERNAL, "boom")
        return batch

    with pytest.raises(ServiceError) as info:
        fetch_in_batches(fetch, list(range(10)), 3)
    assert info.value.code is StatusCode.INTERNAL
    assert len(calls) == 2


def test_empty_cache_fallback_is_unavailable():
    cache = TrendingCache()
    assert cache.snapshot() == []
    with pytest.raises(ServiceError) as info:
        cache.fallback(5)
    assert info.value.code is StatusCode.UNAVAILABLE
    assert info.value.message == "Fallback fails, no trending video cache is available"


def test_update_then_snapshot_and_fallback_limit():
    cache = TrendingCache()
    videos = _videos(12)
    cache.update(videos, 100)
    assert cache.snapshot() == videos
    assert cache.fallback(5) == videos[:5]
    assert cache.expire_time == 100


@pytest.mark.parametrize("limit", [0, -3, 12, 40])
def test_fallback_non_limiting_returns_all(limit):
    cache = TrendingCache()
    videos = _videos(12)
    cache.update(videos, 100)
    assert cache.fallback(limit) == videos


def test_snapshot_is_a_copy():
    cache = TrendingCache()
    cache.update(_videos(3), 100)
    snap = cache.snapshot()
    snap.clear()
    assert len(cache.snapshot()) == 3


def test_update_with_empty_list_makes_fallback_fail():
    cache = TrendingCache()
    cache.update(_videos(3), 100)
    cache.update([], 200)
    with pytest.raises(ServiceError):
        cache.fallback(1)


def test_is_fresh_boundary():
    cache = TrendingCache()
    cache.update(_videos(1), 100)
    assert cache.is_fresh(99)
    assert cache.is_fresh(100)
    assert not cache.is_fresh(101)


def test_new_cache_is_not_fresh_now():
    assert not TrendingCache().is_fresh(1_700_000_000)


def test_round_robin_cycles_in_order():
    clients = ["a", "b", "c"]
    pool = RoundRobinPool(clients)
    assert len(pool) == 3
    assert [pool.next() for _ in range(7)] == [clients[i % 3] for i in range(7)]


def test_round_robin_rejects_empty_pool():
    with pytest.raises(ValueError):
        RoundRobinPool([])


def test_round_robin_is_balanced_across_threads():
    pool = RoundRobinPool(["a", "b", "c", "d"])

    def worker(_):
        return Counter(pool.next() for _ in range(250))

    with ThreadPoolExecutor(max_workers=8) as executor:
        counters = list(executor.map(worker, range(8)))

    seen = sum(counters, Counter())
    assert sum(seen.values()) == 2000
    assert seen == Counter({"a": 500, "b": 500, "c": 500, "d": 500})
    # 2000 picks over 4 clients leave the cursor back at the start.
    assert pool.next() == "a"