"""
FSRS (Free Spaced Repetition Scheduler) formulas.

Pure, stateless numeric functions. Key quantities:
- Stability (S): days until recall probability drops to 90%.
- Difficulty (D): how hard the card is, clamped to [1, 10].
- Retrievability (R): probability of recall after t days.
"""

import math
from enum import Enum

from hashcards.domain.constants import (
    FSRS_DECAY,
    FSRS_FACTOR,
    FSRS_WEIGHTS,
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
)
from hashcards.domain.errors import DecodeError

W = FSRS_WEIGHTS
F = FSRS_FACTOR
C = FSRS_DECAY


class Grade(Enum):
    """How well the card was recalled. Values are the FSRS numeric grades."""

    FORGOT = 1
    HARD = 2
    GOOD = 3
    EASY = 4

    def as_str(self) -> str:
        return self.name.lower()

    @property
    def label(self) -> str:
        """Button label, e.g. 'Forgot'."""
        return self.name.capitalize()

    @classmethod
    def parse(cls, text: str) -> "Grade":
        for grade in cls:
            if grade.as_str() == text:
                return grade
        raise DecodeError(f"invalid grade string: {text}")


def retrievability(elapsed_days: float, stability: float) -> float:
    """R(t, S) = (1 + F * t / S) ^ C"""
    return (1.0 + F * (elapsed_days / stability)) ** C


def interval(target_recall: float, stability: float) -> float:
    """Inverse of retrievability: days until recall falls to target_recall."""
    return (stability / F) * (target_recall ** (1.0 / C) - 1.0)


def initial_stability(grade: Grade) -> float:
    return W[grade.value - 1]


def _clamp_difficulty(d: float) -> float:
    return min(max(d, MIN_DIFFICULTY), MAX_DIFFICULTY)


def initial_difficulty(grade: Grade) -> float:
    g = float(grade.value)
    return _clamp_difficulty(W[4] - math.exp(W[5] * (g - 1.0)) + 1.0)


def _stability_success(d: float, s: float, r: float, grade: Grade) -> float:
    t_d = 11.0 - d
    t_s = s ** -W[9]
    t_r = math.exp(W[10] * (1.0 - r)) - 1.0
    h = W[15] if grade is Grade.HARD else 1.0
    b = W[16] if grade is Grade.EASY else 1.0
    c = math.exp(W[8])
    alpha = 1.0 + t_d * t_s * t_r * h * b * c
    return s * alpha


def _stability_fail(d: float, s: float, r: float) -> float:
    d_f = d ** -W[12]
    s_f = (s + 1.0) ** W[13] - 1.0
    r_f = math.exp(W[14] * (1.0 - r))
    # Post-lapse stability never exceeds the pre-lapse stability.
    return min(d_f * s_f * r_f * W[11], s)


def new_stability(d: float, s: float, r: float, grade: Grade) -> float:
    if grade is Grade.FORGOT:
        return _stability_fail(d, s, r)
    return _stability_success(d, s, r, grade)


def new_difficulty(d: float, grade: Grade) -> float:
    delta = -W[6] * (float(grade.value) - 3.0)
    d_prime = d + delta * ((10.0 - d) / 9.0)
    return _clamp_difficulty(W[7] * initial_difficulty(Grade.EASY) + (1.0 - W[7]) * d_prime)
