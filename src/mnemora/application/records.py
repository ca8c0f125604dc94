"""
Pure transformations of ProgressRecord.

Shared by every ProgressRepository adapter so that statistics and history
trimming behave the same regardless of storage.
"""

from dataclasses import replace
from datetime import datetime

from mnemora.application.id_service import generate_progress_id
from mnemora.application.scheduler import initial_state
from mnemora.application.utils.clock import ensure_utc
from mnemora.domain.constants import PASSING_QUALITY, REVIEW_HISTORY_LIMIT
from mnemora.domain.progress.models import CardId, MemoryState, ProgressRecord, ReviewRecord


def new_record(card_id: CardId, now: datetime) -> ProgressRecord:
    now = ensure_utc(now)
    return ProgressRecord(
        id=generate_progress_id(),
        card_id=card_id,
        state=initial_state(now),
        created_at=now,
        updated_at=now,
    )


def with_state(record: ProgressRecord, state: MemoryState, now: datetime) -> ProgressRecord:
    return replace(record, state=state, updated_at=ensure_utc(now))


def with_review(
    record: ProgressRecord,
    review: ReviewRecord,
    limit: int = REVIEW_HISTORY_LIMIT,
) -> ProgressRecord:
    """
    Fold one review into the record's counters and keep the last ``limit`` reviews.
    """
    total = record.total_reviews + 1
    correct = record.correct_reviews + (1 if review.quality >= PASSING_QUALITY else 0)
    average = (record.average_quality * record.total_reviews + int(review.quality)) / total
    history = (*record.review_history, review)[-limit:] if limit > 0 else ()

    return replace(
        record,
        total_reviews=total,
        correct_reviews=correct,
        average_quality=average,
        review_history=history,
        updated_at=ensure_utc(review.date),
    )


def reset_record(record: ProgressRecord, now: datetime) -> ProgressRecord:
    """Back to the initial state; history and counters are discarded."""
    now = ensure_utc(now)
    return replace(
        record,
        state=initial_state(now),
        total_reviews=0,
        correct_reviews=0,
        average_quality=0.0,
        review_history=(),
        updated_at=now,
    )
