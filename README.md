# vidrec

A small video recommendation service that runs entirely inside one Python
process, together with the simulated backends it depends on and the tools
for making those backends misbehave.

## What is in the package

- **`vidrec.string_set`**: thread-safe sets of strings. `LockedStringSet`
  uses one lock, and `StripedStringSet(stripe_count)` spreads its members
  over independently locked stripes. Both have `add(key)`, which returns
  whether the key was new, `count()`, and `pred_range(begin, end, pattern)`.
  `pred_range` returns the members in `[begin, end)` that the regular
  expression `pattern` matches (searched anywhere in the string), sorted.
  A `stripe_count` below 1 raises `ValueError`.
- **`vidrec.failure_injection`**: `FailureInjector` applies an
  `InjectionConfig(sleep_ns, failure_rate, response_omission_rate)` on each
  call to `maybe_inject()`. The call first sleeps for `sleep_ns`, then
  returns `True` one time in `failure_rate`. One time in
  `response_omission_rate` it blocks the calling thread forever. A rate of
  0 means never. Use `configure(...)` or assign a new config to `config`
  to change the behaviour, and `clear()` to reset it. `one_in(n, rng)` is
  the underlying draw.
- **`vidrec.records`**: the shared data types `UserInfo`, `VideoInfo` and
  `TrendingVideos`, the `StatusCode` enum, and `ServiceError`, which
  carries `code` and `message`. `deduplicate_ids(ids)` drops repeated ids
  and keeps the first occurrence of each in order.
- **`vidrec.user_service`**: `UserService(UserServiceOptions(...))` builds a
  database of random users from `seed` (default 42). Every user gets the
  same generated profile on each run. `get_users(user_ids)` raises
  `ServiceError` in these cases:
  - an injected failure (`INTERNAL`);
  - an empty batch, or a batch larger than `max_batch_size` (`INVALID_ARGUMENT`);
  - an unknown id (`NOT_FOUND`).
- **`vidrec.video_service`**: `VideoService(VideoServiceOptions(...))` works
  the same way for videos. It also rejects batches with duplicate ids.
  `get_trending_videos()` returns the trending ids, which expire
  `ttl_seconds` from now.
- **`vidrec.trending`**: `fetch_in_batches(fetch, ids, batch_size)` calls
  `fetch` once per batch of ids and joins the results in order.
  `TrendingCache` is the fallback store, with `snapshot`, `update`,
  `is_fresh` and `fallback(limit)`. `fallback(limit)` raises `UNAVAILABLE`
  when the cache is empty. `RoundRobinPool(clients).next()` hands out
  clients in turn.
- **`vidrec.video_rec_service`**: `VideoRecService(options, user_clients,
  video_clients, ranker=None)` answers a request in these steps:
  1. Looks up the user.
  2. Fetches, in batches, the users that user subscribes to.
  3. Fetches, in batches, the distinct videos those users liked.
  4. Orders them by `Ranker.rank` and returns the first `limit`.

  `Ranker.rank` gives a deterministic hash of the dot product of the user's
  and the video's coefficient vectors.

### How `VideoRecService` handles failures

`VideoRecServiceOptions` controls what happens when a backend call fails:

- **Retry.** A call that fails with `INTERNAL` or `UNAVAILABLE` is retried
  once, unless `disable_retry` is set.
- **Fallback.** The service answers from the trending cache with
  `stale_response=True`, unless `disable_fallback` is set. With fallback
  disabled, the `ServiceError` is raised.
- **Trending refresh.** A background thread refreshes the trending cache
  whenever it has expired, checking every `refresh_interval_s` seconds.
  Pass `refresh_interval_s=None` to turn the thread off and call
  `refresh_trending()` yourself.

Other methods on the service:

- `get_stats()` returns a `ServiceStats` with request, error, stale-response
  and latency counters.
- `peek_trending_videos()` returns the cached trending list.
- `close()` stops the background thread. The service is also a context
  manager.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

```python
from vidrec.string_set import StripedStringSet

s = StripedStringSet(4)
s.add("abc")
s.add("bbc")
s.add("dbf")
print(s.pred_range("a", "z", "b"))   # ['abc', 'bbc', 'dbf']
```

```python
from vidrec.failure_injection import InjectionConfig
from vidrec.user_service import UserService, UserServiceOptions
from vidrec.video_service import VideoService, VideoServiceOptions
from vidrec.video_rec_service import VideoRecService, VideoRecServiceOptions

users = UserService(UserServiceOptions())
videos = VideoService(VideoServiceOptions())

with VideoRecService(VideoRecServiceOptions(max_batch_size=50), [users], [videos]) as service:
    response = service.get_top_videos(204054, 5)
    for video in response.videos:
        print(video.video_id, video.title, video.author)

    # Simulate an outage: every user lookup now fails.
    users.set_injection_config(InjectionConfig(failure_rate=1))
    service.refresh_trending()
    stale = service.get_top_videos(204054, 5)
    print(stale.stale_response)   # True

    print(service.get_stats())
```

## What this package does not do

The services here are plain Python objects called directly in the same
process:

- There is no network transport, RPC server or client.
- There are no command-line programs to start services, generate load or
  poll statistics.
- Nothing is stored on disk: each backend keeps its generated database in
  memory.