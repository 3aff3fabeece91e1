"""Small seeded PRNG for shuffling drill queues. Not suitable for anything secret."""

import time
from typing import TypeVar

from hashcards.domain.constants import LCG_INCREMENT, LCG_MULTIPLIER, U64_MASK

T = TypeVar("T")


class TinyRng:
    """64-bit linear congruential generator; each output is the high half of the state."""

    def __init__(self, seed: int):
        self.state = seed & U64_MASK

    @classmethod
    def from_clock(cls) -> "TinyRng":
        return cls(time.time_ns())

    def next_u32(self) -> int:
        self.state = (self.state * LCG_MULTIPLIER + LCG_INCREMENT) & U64_MASK
        return self.state >> 32

    def generate(self, max_value: int) -> int:
        """Random integer in [0, max_value)."""
        return self.next_u32() % max_value


def shuffle(items: list[T], rng: TinyRng) -> list[T]:
    """Return a shuffled copy: every position i is swapped with rng.generate(len)."""
    result = list(items)
    n = len(result)
    for i in range(n):
        j = rng.generate(n)
        result[i], result[j] = result[j], result[i]
    return result
