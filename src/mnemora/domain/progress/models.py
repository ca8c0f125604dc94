"""
Domain models for spaced-repetition progress.

These are pure data structures with no I/O or external dependencies.
All timestamps are timezone-aware UTC datetimes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import NewType

from mnemora.domain.constants import DEFAULT_EASE_FACTOR

CardId = NewType("CardId", str)
ProgressId = NewType("ProgressId", str)


class Quality(IntEnum):
    """Six-point recall scale used to rate a single review."""

    COMPLETE_BLACKOUT = 0
    INCORRECT_REMEMBERED = 1
    INCORRECT_EASY = 2
    CORRECT_DIFFICULT = 3
    CORRECT_HESITATION = 4
    PERFECT = 5

    @property
    def label(self) -> str:
        return QUALITY_LABELS[self]


QUALITY_LABELS: dict[Quality, str] = {
    Quality.COMPLETE_BLACKOUT: "Again",
    Quality.INCORRECT_REMEMBERED: "Hard",
    Quality.INCORRECT_EASY: "Hard",
    Quality.CORRECT_DIFFICULT: "Good",
    Quality.CORRECT_HESITATION: "Good",
    Quality.PERFECT: "Easy",
}

# Simplified Anki-style buttons shown to the learner.
QUALITY_BUTTONS: dict[str, Quality] = {
    "again": Quality.COMPLETE_BLACKOUT,
    "hard": Quality.INCORRECT_EASY,
    "good": Quality.CORRECT_HESITATION,
    "easy": Quality.PERFECT,
}


class MasteryLevel(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    MASTERED = "mastered"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class MemoryState:
    """
    SM-2 scheduling state for one learner-card pair.

    Attributes:
        ease_factor: Interval growth multiplier, never below 1.3.
        interval: Days until the next scheduled review (0 for an unseen card).
        repetitions: Consecutive reviews rated >= 3; reset on failure.
        next_review_date: The card is due once "now" reaches this instant.
        last_review_date: None until the card has been reviewed once.
    """

    next_review_date: datetime
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0
    repetitions: int = 0
    last_review_date: datetime | None = None

    @property
    def is_reviewed(self) -> bool:
        return self.last_review_date is not None


@dataclass(frozen=True)
class ReviewRecord:
    """
    A single review log entry.

    Attributes:
        date: When the review was recorded.
        quality: Rating given by the learner (0-5).
        response_time_ms: How long the learner took before rating.
        was_revealed: Whether the answer was shown before rating.
    """

    date: datetime
    quality: Quality
    response_time_ms: int
    was_revealed: bool


@dataclass(frozen=True)
class ProgressRecord:
    """
    Everything persisted for one card: its scheduling state plus review statistics.
    """

    id: ProgressId
    card_id: CardId
    state: MemoryState
    created_at: datetime
    updated_at: datetime
    total_reviews: int = 0
    correct_reviews: int = 0
    average_quality: float = 0.0
    review_history: tuple[ReviewRecord, ...] = ()


@dataclass
class DueBuckets:
    """Card ids partitioned by scheduling status. Each id lands in exactly one list."""

    overdue: list[CardId] = field(default_factory=list)
    due_today: list[CardId] = field(default_factory=list)
    new: list[CardId] = field(default_factory=list)
    upcoming: list[CardId] = field(default_factory=list)

    def all_ids(self) -> list[CardId]:
        return [*self.overdue, *self.due_today, *self.new, *self.upcoming]


@dataclass(frozen=True)
class StudyStreak:
    """Consecutive calendar days (UTC) with at least one review."""

    days: int = 0
    last_study_date: str | None = None  # ISO date, e.g. "2024-03-01"


@dataclass(frozen=True)
class Card:
    """A catalog entry. Only ``id`` matters to scheduling."""

    id: CardId
    question: str
    answer: str = ""
    category: str | None = None
    difficulty: Difficulty | None = None
    tags: tuple[str, ...] = ()
