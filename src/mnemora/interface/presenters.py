"""Plain-dict views of domain objects for JSON output (CLI and HTTP)."""

from datetime import datetime
from typing import Any

from mnemora.application.study.service import AnswerResult, SessionStats, StudyCard
from mnemora.domain.progress.models import (
    Card,
    DueBuckets,
    MemoryState,
    ProgressRecord,
    Quality,
    ReviewRecord,
    StudyStreak,
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat().replace("+00:00", "Z") if value else None


def state_to_dict(state: MemoryState) -> dict[str, Any]:
    return {
        "ease_factor": round(state.ease_factor, 4),
        "interval": state.interval,
        "repetitions": state.repetitions,
        "next_review_date": _iso(state.next_review_date),
        "last_review_date": _iso(state.last_review_date),
    }


def review_to_dict(review: ReviewRecord) -> dict[str, Any]:
    return {
        "date": _iso(review.date),
        "quality": int(review.quality),
        "response_time_ms": review.response_time_ms,
        "was_revealed": review.was_revealed,
    }


def progress_to_dict(record: ProgressRecord, history: bool = False) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": record.id,
        "card_id": record.card_id,
        "state": state_to_dict(record.state),
        "total_reviews": record.total_reviews,
        "correct_reviews": record.correct_reviews,
        "average_quality": round(record.average_quality, 3),
        "created_at": _iso(record.created_at),
        "updated_at": _iso(record.updated_at),
    }
    if history:
        d["review_history"] = [review_to_dict(r) for r in record.review_history]
    return d


def card_to_dict(card: Card) -> dict[str, Any]:
    return {
        "id": card.id,
        "question": card.question,
        "answer": card.answer,
        "category": card.category,
        "difficulty": card.difficulty.value if card.difficulty else None,
        "tags": list(card.tags),
    }


def previews_to_dict(previews: dict[Quality, str]) -> dict[str, str]:
    return {str(int(q)): label for q, label in previews.items()}


def buckets_to_dict(buckets: DueBuckets) -> dict[str, list[str]]:
    return {
        "overdue": list(buckets.overdue),
        "due_today": list(buckets.due_today),
        "new": list(buckets.new),
        "upcoming": list(buckets.upcoming),
    }


def streak_to_dict(streak: StudyStreak) -> dict[str, Any]:
    return {"days": streak.days, "last_study_date": streak.last_study_date}


def study_card_to_dict(study: StudyCard) -> dict[str, Any]:
    return {
        "card": card_to_dict(study.card),
        "progress": progress_to_dict(study.progress),
        "interval_previews": previews_to_dict(study.interval_previews),
        "is_new": study.is_new,
    }


def answer_to_dict(result: AnswerResult) -> dict[str, Any]:
    return {
        "progress": progress_to_dict(result.progress),
        "next_review_in": result.next_review_in,
        "mastery": result.mastery.value,
        "interval_change": result.interval_change,
        "ease_factor_change": round(result.ease_factor_change, 4),
        "streak": streak_to_dict(result.streak),
    }


def stats_to_dict(stats: SessionStats) -> dict[str, Any]:
    return {
        "due": buckets_to_dict(stats.due),
        "total_cards": stats.total_cards,
        "new_count": stats.new_count,
        "review_count": stats.review_count,
        "upcoming_count": stats.upcoming_count,
        "mastery": {level.value: n for level, n in stats.mastery.items()},
    }
