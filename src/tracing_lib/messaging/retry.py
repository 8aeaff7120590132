"""ExponentialBackOff: growing, randomized wait intervals with an elapsed-time cap."""

from __future__ import annotations

import random
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

DEFAULT_INITIAL_INTERVAL = 0.5
DEFAULT_RANDOMIZATION_FACTOR = 0.5
DEFAULT_MULTIPLIER = 1.5
DEFAULT_MAX_INTERVAL = 60.0
DEFAULT_MAX_ELAPSED_TIME = 15 * 60.0


class ExponentialBackOff:
    """Stateful backoff generator.

    Each call to :meth:`next_backoff` returns the current interval randomized
    into ``[interval * (1 - f), interval * (1 + f)]`` and then grows the
    interval by ``multiplier`` up to ``max_interval``. Once more than
    ``max_elapsed_time`` seconds passed since the last :meth:`reset`, it
    returns None ("stop") until reset. A ``max_elapsed_time`` of 0 never stops.
    All durations are in seconds.
    """

    def __init__(
        self,
        *,
        initial_interval: float = DEFAULT_INITIAL_INTERVAL,
        randomization_factor: float = DEFAULT_RANDOMIZATION_FACTOR,
        multiplier: float = DEFAULT_MULTIPLIER,
        max_interval: float = DEFAULT_MAX_INTERVAL,
        max_elapsed_time: float = DEFAULT_MAX_ELAPSED_TIME,
        clock: Callable[[], float] = time.monotonic,
        rng: random.Random | None = None,
    ) -> None:
        """Configure the generator.

        Args:
            initial_interval: First interval before randomization.
            randomization_factor: Spread around the interval, in [0, 1].
            multiplier: Growth factor per call, >= 1.
            max_interval: Cap on the (non-randomized) interval.
            max_elapsed_time: Stop after this long since reset; 0 disables.
            clock: Monotonic time source (overridable for tests).
            rng: Random source (seed it for reproducible sequences).
        """
        if initial_interval < 0 or max_interval < 0 or max_elapsed_time < 0:
            raise ValueError("intervals and max_elapsed_time must be >= 0")
        if not 0 <= randomization_factor <= 1:
            raise ValueError("randomization_factor must be within [0, 1]")
        if multiplier < 1:
            raise ValueError("multiplier must be >= 1")
        self.initial_interval = initial_interval
        self.randomization_factor = randomization_factor
        self.multiplier = multiplier
        self.max_interval = max_interval
        self.max_elapsed_time = max_elapsed_time
        self._clock = clock
        self._rng = rng or random.Random()  # noqa: S311
        self._current_interval = initial_interval
        self._start = clock()

    @property
    def current_interval(self) -> float:
        return self._current_interval

    def reset(self) -> None:
        """Back to the initial interval; restart the elapsed clock."""
        self._current_interval = self.initial_interval
        self._start = self._clock()

    def elapsed(self) -> float:
        """Seconds since the last reset."""
        return self._clock() - self._start

    def next_backoff(self) -> float | None:
        """Return the next wait in seconds, or None once max elapsed time passed."""
        if self.max_elapsed_time and self.elapsed() > self.max_elapsed_time:
            return None
        value = self._randomized(self._current_interval)
        self._increment()
        return value

    def _randomized(self, interval: float) -> float:
        delta = self.randomization_factor * interval
        low = interval - delta
        high = interval + delta
        return low + self._rng.random() * (high - low)

    def _increment(self) -> None:
        if self._current_interval >= self.max_interval / self.multiplier:
            self._current_interval = self.max_interval
        else:
            self._current_interval *= self.multiplier
