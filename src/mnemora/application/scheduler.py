"""
SM-2 scheduler.

Converts a recall-quality rating into an updated MemoryState and a concrete
next-review date. This is a pure computation module with no I/O; "now" is
always passed in by the caller.

Quality ratings (0-5):
- 0: Complete blackout
- 1: Incorrect response, but the answer was remembered once shown
- 2: Incorrect response, but the answer seemed easy once shown
- 3: Correct response with serious difficulty
- 4: Correct response after hesitation
- 5: Perfect response
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from mnemora.application.utils.clock import ONE_DAY, ensure_utc
from mnemora.domain.constants import (
    DAYS_PER_MONTH,
    DAYS_PER_WEEK,
    DAYS_PER_YEAR,
    DEFAULT_EASE_FACTOR,
    FAILED_INTERVAL_DAYS,
    FIRST_INTERVAL_DAYS,
    MASTERED_INTERVAL_DAYS,
    MAX_QUALITY,
    MIN_EASE_FACTOR,
    MIN_QUALITY,
    PASSING_QUALITY,
    SECOND_INTERVAL_DAYS,
)
from mnemora.domain.errors import InvalidQuality
from mnemora.domain.progress.models import MasteryLevel, MemoryState, Quality


@dataclass(frozen=True)
class ScheduleResult:
    """Outcome of a single review: the new state and how it moved."""

    new_state: MemoryState
    previous_state: MemoryState
    interval_change: int
    ease_factor_change: float


def initial_state(now: datetime) -> MemoryState:
    """State of a card that has never been reviewed; due immediately."""
    return MemoryState(
        next_review_date=ensure_utc(now),
        ease_factor=DEFAULT_EASE_FACTOR,
        interval=0,
        repetitions=0,
        last_review_date=None,
    )


def validate_quality(quality: object) -> Quality:
    """
    Coerce a rating to Quality.

    Raises:
        InvalidQuality: For anything that is not an integer in [0, 5].
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQuality(quality)
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidQuality(quality)
    return Quality(quality)


def next_ease_factor(ease_factor: float, quality: int) -> float:
    """
    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at 1.3.
    """
    miss = MAX_QUALITY - quality
    updated = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    return max(MIN_EASE_FACTOR, updated)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate(state: MemoryState, quality: int, now: datetime) -> ScheduleResult:
    """
    Apply one review to ``state``.

    A failed review (quality < 3) resets the repetition streak and brings the
    card back tomorrow regardless of its history. A correct review grows the
    interval 1 -> 6 -> previous * ease factor. The ease factor is updated on
    every review, before it is used for the interval.

    Raises:
        InvalidQuality: If ``quality`` is outside [0, 5].
    """
    q = validate_quality(quality)
    now = ensure_utc(now)

    ease_factor = next_ease_factor(state.ease_factor, q)

    if q < PASSING_QUALITY:
        repetitions = 0
        interval = FAILED_INTERVAL_DAYS
    else:
        repetitions = state.repetitions + 1
        if repetitions == 1:
            interval = FIRST_INTERVAL_DAYS
        elif repetitions == 2:
            interval = SECOND_INTERVAL_DAYS
        else:
            interval = _round_half_up(state.interval * ease_factor)

    new_state = MemoryState(
        next_review_date=now + timedelta(days=interval),
        ease_factor=ease_factor,
        interval=interval,
        repetitions=repetitions,
        last_review_date=now,
    )

    return ScheduleResult(
        new_state=new_state,
        previous_state=state,
        interval_change=interval - state.interval,
        ease_factor_change=ease_factor - state.ease_factor,
    )


def compute_next_state(state: MemoryState, quality: int, now: datetime) -> MemoryState:
    """Return the MemoryState that replaces ``state`` after a review rated ``quality``."""
    return calculate(state, quality, now).new_state


def format_interval(days: int) -> str:
    """Human-readable interval: "Now", "1 day", "4 days", "3 weeks", "2 months", "1 year"."""
    if days <= 0:
        return "Now"
    if days == 1:
        return "1 day"
    if days < DAYS_PER_WEEK:
        return f"{days} days"
    if days < DAYS_PER_MONTH:
        weeks = _round_half_up(days / DAYS_PER_WEEK)
        return f"{weeks} week{'s' if weeks > 1 else ''}"
    if days < DAYS_PER_YEAR:
        months = _round_half_up(days / DAYS_PER_MONTH)
        return f"{months} month{'s' if months > 1 else ''}"
    years = _round_half_up(days / DAYS_PER_YEAR)
    return f"{years} year{'s' if years > 1 else ''}"


def preview_intervals(state: MemoryState, now: datetime) -> dict[Quality, str]:
    """What each rating button would schedule, without changing ``state``."""
    return {q: format_interval(compute_next_state(state, q, now).interval) for q in Quality}


def mastery_level(state: MemoryState) -> MasteryLevel:
    """
    Coarse display label; has no effect on scheduling.
    """
    if not state.is_reviewed:
        return MasteryLevel.NEW
    if state.interval > MASTERED_INTERVAL_DAYS:
        return MasteryLevel.MASTERED
    if state.repetitions > 0:
        return MasteryLevel.REVIEW
    return MasteryLevel.LEARNING


def is_due(state: MemoryState, now: datetime) -> bool:
    return ensure_utc(now) >= ensure_utc(state.next_review_date)


def overdue_days(state: MemoryState, now: datetime) -> int:
    """Whole days past the due date; negative if not yet due."""
    elapsed = ensure_utc(now) - ensure_utc(state.next_review_date)
    return math.floor(elapsed / ONE_DAY)
