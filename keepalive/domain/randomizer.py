"""
Seeded random choices for task generation.

Every random pick of the generator goes through Randomizer so that the same
inputs plus the same seed reproduce the same schedule.
"""
import random
from datetime import time
from decimal import Decimal, ROUND_DOWN

_PRECISIONS = (Decimal("1"), Decimal("0.1"), Decimal("0.01"))


class Randomizer:
    def __init__(self, seed: int | None = None):
        self.seed = seed
        self._rng = random.Random(seed)

    def interval_days(self, interval_min: int, interval_max: int) -> int:
        """Uniform integer in [interval_min, interval_max]."""
        if interval_max < interval_min:
            interval_max = interval_min
        return self._rng.randint(interval_min, interval_max)

    def amount(self, amount_min: Decimal, amount_max: Decimal) -> Decimal:
        """
        Uniform amount in [amount_min, amount_max].

        The draw is truncated to a random precision (whole, 0.1 or 0.01) so
        that transfers don't all look like 17.43, and clamped back to
        amount_min if truncation went below it.
        """
        if amount_max <= amount_min:
            return amount_min.quantize(_PRECISIONS[-1])
        span = amount_max - amount_min
        base = amount_min + span * Decimal(repr(self._rng.random()))
        value = base.quantize(self._rng.choice(_PRECISIONS), rounding=ROUND_DOWN)
        if value < amount_min:
            value = amount_min
        return value.quantize(_PRECISIONS[-1])

    def time_of_day(self, time_start: time, time_end: time) -> time:
        """Uniform time in [time_start, time_end], second resolution."""
        start = _seconds(time_start)
        end = _seconds(time_end)
        if end < start:
            end = start
        picked = self._rng.randint(start, end)
        return time(picked // 3600, picked % 3600 // 60, picked % 60)


def _seconds(t: time) -> int:
    return t.hour * 3600 + t.minute * 60 + t.second
