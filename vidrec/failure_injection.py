"""Configurable latency, error and hang injection for simulated backends."""

from __future__ import annotations

import random
import threading
import time
from dataclasses import dataclass


@dataclass(frozen=True)
class InjectionConfig:
    """What to inject on each request; a rate of N means one in N, 0 means never."""

    sleep_ns: int = 0
    failure_rate: int = 0
    response_omission_rate: int = 0


def one_in(n: int, rng: random.Random) -> bool:
    """Return True with probability 1/n; always False when n is 0."""
    if n == 0:
        return False
    if n < 0:
        raise ValueError(f"rate must not be negative, got {n}")
    return rng.randrange(n) == 0


class FailureInjector:
    """Thread-safe failure injector.

    ``config`` may be replaced at any time by assigning a new
    :class:`InjectionConfig`; readers always see a whole config.
    """

    def __init__(self) -> None:
        self.config = InjectionConfig()
        self._rng = random.Random()
        self._rng_lock = threading.Lock()
        self._never = threading.Event()

    def clear(self) -> None:
        """Reset to injecting nothing."""
        self.config = InjectionConfig()

    def configure(
        self, sleep_ns: int, failure_rate: int, response_omission_rate: int
    ) -> None:
        """Replace the configuration with the given values."""
        self.config = InjectionConfig(sleep_ns, failure_rate, response_omission_rate)

    def maybe_inject(self) -> bool:
        """Apply the current config; return whether the request should fail.

        Sleeps for the configured latency first. When a response omission is
        drawn, the calling thread blocks forever.
        """
        config = self.config
        if config.sleep_ns > 0:
            time.sleep(config.sleep_ns / 1e9)
        with self._rng_lock:
            should_error = one_in(config.failure_rate, self._rng)
            omit = one_in(config.response_omission_rate, self._rng)
        if omit:
            self._never.wait()
        return should_error