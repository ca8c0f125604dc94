"""
Study Service — Application layer orchestrator.

Coordinates the catalog, the progress repository, the scheduler and the
due-set classifier: pick the next card, record an answer, summarise a session.
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass, field
from datetime import datetime

from mnemora.application.due_set import classify, filter_buckets, select_next
from mnemora.application.scheduler import (
    calculate,
    format_interval,
    initial_state,
    mastery_level,
    preview_intervals,
    validate_quality,
)
from mnemora.application.utils.clock import ensure_utc, utc_now
from mnemora.domain.errors import UnknownCard
from mnemora.domain.progress.models import (
    Card,
    CardId,
    Difficulty,
    DueBuckets,
    MasteryLevel,
    ProgressRecord,
    Quality,
    ReviewRecord,
    StudyStreak,
)
from mnemora.domain.progress.ports import CardCatalog, ProgressRepository

logger = logging.getLogger(__name__)


@dataclass
class StudyCard:
    """The card to present next, with what each rating would schedule."""

    card: Card
    progress: ProgressRecord
    interval_previews: dict[Quality, str]
    is_new: bool


@dataclass
class AnswerResult:
    progress: ProgressRecord
    next_review_in: str
    mastery: MasteryLevel
    interval_change: int
    ease_factor_change: float
    streak: StudyStreak


@dataclass
class SessionStats:
    due: DueBuckets
    total_cards: int
    new_count: int
    review_count: int  # overdue + due today
    upcoming_count: int
    mastery: dict[MasteryLevel, int] = field(default_factory=dict)


class StudyService:
    """
    Application service for running a study session.

    Follows Dependency Inversion: depends on the ProgressRepository and
    CardCatalog abstractions, not concrete adapters.
    """

    def __init__(self, progress_repo: ProgressRepository, catalog: CardCatalog):
        """
        Args:
            progress_repo: The repository (port) holding per-card progress.
            catalog: The catalog (port) listing known cards.
        """
        self._repo = progress_repo
        self._catalog = catalog
        # Entries disappear once no coroutine holds or awaits the lock
        self._locks: weakref.WeakValueDictionary[CardId, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, card_id: CardId) -> asyncio.Lock:
        return self._locks.setdefault(card_id, asyncio.Lock())

    async def due_buckets(
        self,
        category: str | None = None,
        difficulty: Difficulty | None = None,
        now: datetime | None = None,
    ) -> DueBuckets:
        """Classify every catalog card in scope as of ``now``."""
        now = ensure_utc(now) if now else utc_now()
        cards = await self._catalog.list_cards(category, difficulty)
        states = await self._repo.load_all_states()
        return classify(states, now, catalog_ids=[c.id for c in cards])

    async def next_card(
        self,
        category: str | None = None,
        difficulty: Difficulty | None = None,
        excluded_ids: list[CardId] | None = None,
        now: datetime | None = None,
    ) -> StudyCard | None:
        """
        Pick the next card: overdue, then due today, then new.

        Returns:
            None when nothing is left to study in the requested scope.
        """
        now = ensure_utc(now) if now else utc_now()
        cards = await self._catalog.list_cards(category, difficulty)
        if not cards:
            return None

        catalog_ids = [c.id for c in cards]
        states = await self._repo.load_all_states()
        buckets = classify(states, now, catalog_ids=catalog_ids)

        card_id = select_next(catalog_ids, buckets, excluded_ids)
        if card_id is None:
            logger.info("No cards due; session complete")
            return None

        card = next(c for c in cards if c.id == card_id)
        progress = await self._repo.ensure_state(card_id, now)

        return StudyCard(
            card=card,
            progress=progress,
            interval_previews=preview_intervals(progress.state, now),
            is_new=card_id in buckets.new,
        )

    async def answer(
        self,
        card_id: CardId,
        quality: int,
        response_time_ms: int = 0,
        was_revealed: bool = False,
        now: datetime | None = None,
    ) -> AnswerResult:
        """
        Record a review: schedule the card, persist it, log the review, advance the streak.

        Raises:
            InvalidQuality: If ``quality`` is outside [0, 5]. Nothing is written.
            UnknownCard: If the catalog does not contain ``card_id``. Nothing is written.
        """
        q = validate_quality(quality)
        now = ensure_utc(now) if now else utc_now()
        if await self._catalog.get_card(card_id) is None:
            raise UnknownCard(card_id)

        async with self._lock_for(card_id):
            progress = await self._repo.ensure_state(card_id, now)
            result = calculate(progress.state, q, now)

            await self._repo.save_state(card_id, result.new_state, now)
            await self._repo.append_review(
                card_id,
                ReviewRecord(
                    date=now,
                    quality=q,
                    response_time_ms=max(0, int(response_time_ms)),
                    was_revealed=was_revealed,
                ),
            )
            streak = await self._repo.record_study_activity(now)
            updated = await self._repo.get_record(card_id)

        logger.info(
            f"Reviewed {card_id}: quality={int(q)} interval={result.new_state.interval}d "
            f"ease={result.new_state.ease_factor:.2f} reps={result.new_state.repetitions}"
        )

        return AnswerResult(
            progress=updated or progress,
            next_review_in=format_interval(result.new_state.interval),
            mastery=mastery_level(result.new_state),
            interval_change=result.interval_change,
            ease_factor_change=result.ease_factor_change,
            streak=streak,
        )

    async def preview(self, card_id: CardId, now: datetime | None = None) -> dict[Quality, str]:
        """
        Interval previews for a catalog card without creating progress for it.

        Raises:
            UnknownCard: If the catalog does not contain ``card_id``.
        """
        now = ensure_utc(now) if now else utc_now()
        if await self._catalog.get_card(card_id) is None:
            raise UnknownCard(card_id)

        state = await self._repo.load_state(card_id)
        if state is None:
            state = initial_state(now)
        return preview_intervals(state, now)

    async def session_stats(
        self,
        category: str | None = None,
        difficulty: Difficulty | None = None,
        now: datetime | None = None,
    ) -> SessionStats:
        now = ensure_utc(now) if now else utc_now()
        cards = await self._catalog.list_cards(category, difficulty)
        catalog_ids = [c.id for c in cards]
        states = await self._repo.load_all_states()

        buckets = filter_buckets(classify(states, now, catalog_ids=catalog_ids), catalog_ids)

        mastery: dict[MasteryLevel, int] = {level: 0 for level in MasteryLevel}
        for card_id in catalog_ids:
            state = states.get(card_id)
            level = mastery_level(state) if state else MasteryLevel.NEW
            mastery[level] += 1

        return SessionStats(
            due=buckets,
            total_cards=len(cards),
            new_count=len(buckets.new),
            review_count=len(buckets.overdue) + len(buckets.due_today),
            upcoming_count=len(buckets.upcoming),
            mastery=mastery,
        )

    async def reset(self, card_id: CardId, now: datetime | None = None) -> bool:
        """
        Reset a card to the initial state.

        Returns:
            False if the card has no progress to reset.
        """
        now = ensure_utc(now) if now else utc_now()
        async with self._lock_for(card_id):
            ok = await self._repo.reset(card_id, now)
        if ok:
            logger.info(f"Reset progress for {card_id}")
        return ok

    async def delete_all(self) -> None:
        await self._repo.delete_all()
        logger.info("Deleted all progress")

    async def streak(self) -> StudyStreak:
        return await self._repo.get_streak()
