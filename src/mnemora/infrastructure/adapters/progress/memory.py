"""
In-memory progress repository.

Keeps progress records in a process-local dict. Used by tests, by the
``memory`` backend, and as the base of the JSON document store.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from mnemora.application.records import new_record, reset_record, with_review, with_state
from mnemora.application.streak import advance_streak
from mnemora.domain.constants import REVIEW_HISTORY_LIMIT
from mnemora.domain.progress.models import (
    CardId,
    MemoryState,
    ProgressRecord,
    ReviewRecord,
    StudyStreak,
)
from mnemora.domain.progress.ports import ProgressRepository

logger = logging.getLogger(__name__)


class InMemoryProgressRepository(ProgressRepository):
    """
    ProgressRepository over plain dictionaries.

    Subclasses persist by overriding ``_load`` and ``_commit``. A mutation
    that fails to commit is rolled back, so memory never runs ahead of disk.
    """

    def __init__(
        self,
        records: list[ProgressRecord] | None = None,
        streak: StudyStreak | None = None,
        history_limit: int = REVIEW_HISTORY_LIMIT,
    ):
        self._records: dict[CardId, ProgressRecord] = {r.card_id: r for r in records or []}
        self._streak = streak or StudyStreak()
        self.history_limit = history_limit
        self._loaded = records is not None or streak is not None

    # ------------------------------------------------------------------
    # Persistence hooks
    # ------------------------------------------------------------------
    def _load(self) -> None:
        pass

    def _commit(self) -> None:
        pass

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self._load()
            self._loaded = True

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        records = dict(self._records)
        streak = self._streak
        try:
            yield
            self._commit()
        except Exception:
            self._records = records
            self._streak = streak
            raise

    # ------------------------------------------------------------------
    # ProgressRepository
    # ------------------------------------------------------------------
    async def load_all_states(self) -> dict[CardId, MemoryState]:
        self._ensure_loaded()
        return {card_id: record.state for card_id, record in self._records.items()}

    async def load_state(self, card_id: CardId) -> MemoryState | None:
        self._ensure_loaded()
        record = self._records.get(card_id)
        return record.state if record else None

    async def ensure_state(self, card_id: CardId, now: datetime) -> ProgressRecord:
        self._ensure_loaded()
        existing = self._records.get(card_id)
        if existing is not None:
            return existing

        record = new_record(card_id, now)
        with self._transaction():
            self._records[card_id] = record
        logger.debug(f"Created progress {record.id} for card {card_id}")
        return record

    async def save_state(self, card_id: CardId, state: MemoryState, now: datetime) -> bool:
        self._ensure_loaded()
        record = self._records.get(card_id)
        if record is None:
            return False
        with self._transaction():
            self._records[card_id] = with_state(record, state, now)
        return True

    async def append_review(self, card_id: CardId, review: ReviewRecord) -> None:
        self._ensure_loaded()
        record = self._records.get(card_id)
        if record is None:
            logger.warning(f"Dropping review for card {card_id}: no progress record")
            return
        with self._transaction():
            self._records[card_id] = with_review(record, review, self.history_limit)

    async def get_record(self, card_id: CardId) -> ProgressRecord | None:
        self._ensure_loaded()
        return self._records.get(card_id)

    async def list_records(self) -> list[ProgressRecord]:
        self._ensure_loaded()
        return list(self._records.values())

    async def reset(self, card_id: CardId, now: datetime) -> bool:
        self._ensure_loaded()
        record = self._records.get(card_id)
        if record is None:
            return False
        with self._transaction():
            self._records[card_id] = reset_record(record, now)
        return True

    async def delete_all(self) -> None:
        self._ensure_loaded()
        with self._transaction():
            self._records = {}
            self._streak = StudyStreak()

    async def get_streak(self) -> StudyStreak:
        self._ensure_loaded()
        return self._streak

    async def record_study_activity(self, now: datetime) -> StudyStreak:
        self._ensure_loaded()
        updated = advance_streak(self._streak, now)
        if updated != self._streak:
            with self._transaction():
                self._streak = updated
        return self._streak
