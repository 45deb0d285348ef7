"""Capped exponential backoff with jitter for reconnect attempts."""

import random


class ExponentialBackoff:
    """Delay doubles each attempt (0.1s, 0.2s, 0.4s, ...), capped at
    ``maximum``, then multiplied by a random factor in
    ``[1 - jitter, 1 + jitter]``. Never returns zero.
    """

    def __init__(self, initial: float = 0.1, maximum: float = 5.0,
                 multiplier: float = 2.0, jitter: float = 0.2, rng=None):
        if initial <= 0:
            raise ValueError("initial backoff delay must be positive")
        if not 0 <= jitter < 1:
            raise ValueError("jitter must be in [0, 1)")
        self._initial = initial
        self._maximum = max(initial, maximum)
        self._multiplier = multiplier
        self._jitter = jitter
        self._rng = rng or random.Random()
        self._attempt = 0

    @property
    def attempt(self) -> int:
        return self._attempt

    def next_delay(self) -> float:
        base = min(self._initial * (self._multiplier ** self._attempt), self._maximum)
        if base < self._maximum:
            self._attempt += 1
        if not self._jitter:
            return base
        return base * self._rng.uniform(1 - self._jitter, 1 + self._jitter)

    def reset(self):
        self._attempt = 0
