"""Caller-facing scheduling update: (performance, grade, timestamp) -> next review."""

import math
from datetime import datetime, timedelta

from hashcards.domain.constants import MAX_INTERVAL_DAYS, MIN_INTERVAL_DAYS, TARGET_RECALL
from hashcards.domain.fsrs import (
    Grade,
    initial_difficulty,
    initial_stability,
    interval,
    new_difficulty,
    new_stability,
    retrievability,
)
from hashcards.domain.models import Performance, ReviewedPerformance, truncate_timestamp


def round_half_away(x: float) -> float:
    """Round to the nearest integer, ties away from zero."""
    return math.copysign(math.floor(abs(x) + 0.5), x)


def clamp_interval(interval_raw: float) -> int:
    rounded = round_half_away(interval_raw)
    return int(min(max(rounded, MIN_INTERVAL_DAYS), MAX_INTERVAL_DAYS))


def update_performance(
    perf: Performance,
    grade: Grade,
    reviewed_at: datetime,
) -> ReviewedPerformance:
    """
    Compute the performance record after grading a card.

    Elapsed time is measured in whole calendar days between the date of the
    last review and the date of this one.
    """
    reviewed_at = truncate_timestamp(reviewed_at)
    today = reviewed_at.date()

    if isinstance(perf, ReviewedPerformance):
        elapsed = float((today - perf.last_reviewed_at.date()).days)
        recall = retrievability(elapsed, perf.stability)
        stability = new_stability(perf.difficulty, perf.stability, recall, grade)
        difficulty = new_difficulty(perf.difficulty, grade)
        review_count = perf.review_count
    else:
        stability = initial_stability(grade)
        difficulty = initial_difficulty(grade)
        review_count = 0

    interval_raw = interval(TARGET_RECALL, stability)
    interval_days = clamp_interval(interval_raw)

    return ReviewedPerformance(
        last_reviewed_at=reviewed_at,
        stability=stability,
        difficulty=difficulty,
        interval_raw=interval_raw,
        interval_days=interval_days,
        due_date=today + timedelta(days=interval_days),
        review_count=review_count + 1,
    )
