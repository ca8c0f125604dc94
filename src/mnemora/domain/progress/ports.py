"""
Ports (interfaces) for progress persistence and the card catalog.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import (
    Card,
    CardId,
    Difficulty,
    MemoryState,
    ProgressRecord,
    ReviewRecord,
    StudyStreak,
)


class ProgressRepository(ABC):
    """
    Port for loading and storing per-card progress.

    Each method is treated as an atomic single-record operation. No atomicity
    is promised across a read -> compute -> write sequence.

    Implementations:
        - InMemoryProgressRepository: Process-local dictionaries.
        - JsonProgressRepository: A single JSON document on disk.
    """

    @abstractmethod
    async def load_all_states(self) -> dict[CardId, MemoryState]:
        """
        Return the scheduling state of every card that has progress.

        Returns:
            Mapping of card id to MemoryState, in insertion order.
        """
        pass

    @abstractmethod
    async def load_state(self, card_id: CardId) -> MemoryState | None:
        pass

    @abstractmethod
    async def ensure_state(self, card_id: CardId, now: datetime) -> ProgressRecord:
        """
        Return the existing progress record, or insert and return a fresh one.

        Args:
            card_id: The card to look up.
            now: Creation time for a new record (also its first due date).
        """
        pass

    @abstractmethod
    async def save_state(self, card_id: CardId, state: MemoryState, now: datetime) -> bool:
        """
        Replace the scheduling state of an existing record.

        Returns:
            False if the card has no progress record.
        """
        pass

    @abstractmethod
    async def append_review(self, card_id: CardId, review: ReviewRecord) -> None:
        """
        Append a review to the card's history and update its statistics.

        Only the most recent reviews are retained.
        """
        pass

    @abstractmethod
    async def get_record(self, card_id: CardId) -> ProgressRecord | None:
        pass

    @abstractmethod
    async def list_records(self) -> list[ProgressRecord]:
        pass

    @abstractmethod
    async def reset(self, card_id: CardId, now: datetime) -> bool:
        """
        Restore a card to the initial state and discard its review history.

        Returns:
            False if the card has no progress record.
        """
        pass

    @abstractmethod
    async def delete_all(self) -> None:
        """Remove every progress record and clear the study streak."""
        pass

    @abstractmethod
    async def get_streak(self) -> StudyStreak:
        pass

    @abstractmethod
    async def record_study_activity(self, now: datetime) -> StudyStreak:
        """Advance the study streak for a review that happened at ``now``."""
        pass


class CardCatalog(ABC):
    """
    Port for the ordered list of known cards.

    Implementations:
        - InMemoryCardCatalog: A list supplied by the caller.
        - YamlCardCatalog: Cards loaded from a YAML file.
    """

    @abstractmethod
    async def list_cards(
        self,
        category: str | None = None,
        difficulty: Difficulty | None = None,
    ) -> list[Card]:
        """
        Return cards in catalog order, optionally filtered.

        Args:
            category: Only cards in this category.
            difficulty: Only cards with this difficulty.
        """
        pass

    @abstractmethod
    async def get_card(self, card_id: CardId) -> Card | None:
        pass
