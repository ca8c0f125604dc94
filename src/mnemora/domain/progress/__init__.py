# Domain Progress Package
from .models import (
    Card,
    CardId,
    Difficulty,
    DueBuckets,
    MasteryLevel,
    MemoryState,
    ProgressId,
    ProgressRecord,
    Quality,
    ReviewRecord,
    StudyStreak,
)
from .ports import CardCatalog, ProgressRepository

__all__ = [
    "Card",
    "CardId",
    "CardCatalog",
    "Difficulty",
    "DueBuckets",
    "MasteryLevel",
    "MemoryState",
    "ProgressId",
    "ProgressRecord",
    "ProgressRepository",
    "Quality",
    "ReviewRecord",
    "StudyStreak",
]
