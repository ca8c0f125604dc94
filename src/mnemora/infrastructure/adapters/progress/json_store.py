"""
JSON progress store — Infrastructure adapter for a single JSON document.

Layout on disk:

    {
      "progress": [{"id": ..., "cardId": ..., "sm2": {...}, ...}],
      "metadata": {"version": 1, "studyStreak": 3, "lastStudyDate": "2024-03-01"}
    }

Writes go to a temporary file that then replaces the original.
"""

import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from mnemora.application.utils.clock import ensure_utc, utc_now
from mnemora.domain.constants import DEFAULT_EASE_FACTOR, REVIEW_HISTORY_LIMIT
from mnemora.domain.errors import StorageError
from mnemora.domain.progress.models import (
    CardId,
    MemoryState,
    ProgressId,
    ProgressRecord,
    Quality,
    ReviewRecord,
    StudyStreak,
)

from .memory import InMemoryProgressRepository

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class _Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StateDoc(_Document):
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0
    repetitions: int = 0
    next_review_date: datetime
    last_review_date: datetime | None = None


class ReviewDoc(_Document):
    date: datetime
    quality: int = Field(ge=0, le=5)
    response_time_ms: int = 0
    was_revealed: bool = False


class ProgressDoc(_Document):
    id: str
    card_id: str
    sm2: StateDoc
    total_reviews: int = 0
    correct_reviews: int = 0
    average_quality: float = 0.0
    review_history: list[ReviewDoc] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class MetadataDoc(_Document):
    version: int = SCHEMA_VERSION
    study_streak: int = 0
    last_study_date: str | None = None
    updated_at: datetime | None = None


class DatabaseDoc(_Document):
    progress: list[ProgressDoc] = Field(default_factory=list)
    metadata: MetadataDoc = Field(default_factory=MetadataDoc)


def _to_record(doc: ProgressDoc) -> ProgressRecord:
    return ProgressRecord(
        id=ProgressId(doc.id),
        card_id=CardId(doc.card_id),
        state=MemoryState(
            next_review_date=ensure_utc(doc.sm2.next_review_date),
            ease_factor=doc.sm2.ease_factor,
            interval=doc.sm2.interval,
            repetitions=doc.sm2.repetitions,
            last_review_date=(
                ensure_utc(doc.sm2.last_review_date) if doc.sm2.last_review_date else None
            ),
        ),
        created_at=ensure_utc(doc.created_at),
        updated_at=ensure_utc(doc.updated_at),
        total_reviews=doc.total_reviews,
        correct_reviews=doc.correct_reviews,
        average_quality=doc.average_quality,
        review_history=tuple(
            ReviewRecord(
                date=ensure_utc(r.date),
                quality=Quality(r.quality),
                response_time_ms=r.response_time_ms,
                was_revealed=r.was_revealed,
            )
            for r in doc.review_history
        ),
    )


def _to_doc(record: ProgressRecord) -> ProgressDoc:
    state = record.state
    return ProgressDoc(
        id=record.id,
        card_id=record.card_id,
        sm2=StateDoc(
            ease_factor=state.ease_factor,
            interval=state.interval,
            repetitions=state.repetitions,
            next_review_date=state.next_review_date,
            last_review_date=state.last_review_date,
        ),
        total_reviews=record.total_reviews,
        correct_reviews=record.correct_reviews,
        average_quality=record.average_quality,
        review_history=[
            ReviewDoc(
                date=r.date,
                quality=int(r.quality),
                response_time_ms=r.response_time_ms,
                was_revealed=r.was_revealed,
            )
            for r in record.review_history
        ],
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


class JsonProgressRepository(InMemoryProgressRepository):
    """
    Progress repository backed by one JSON file.

    The file is read on first access and rewritten after every mutation.
    A missing file is an empty store.
    """

    def __init__(self, path: Path, history_limit: int = REVIEW_HISTORY_LIMIT):
        super().__init__(history_limit=history_limit)
        self.path = Path(path)

    def _load(self) -> None:
        if not self.path.exists():
            logger.debug(f"No progress file at {self.path}; starting empty")
            return

        try:
            db = DatabaseDoc.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise StorageError(f"Could not read progress file {self.path}: {e}") from e

        for doc in db.progress:
            record = _to_record(doc)
            self._records[record.card_id] = record

        self._streak = StudyStreak(
            days=db.metadata.study_streak,
            last_study_date=db.metadata.last_study_date,
        )
        logger.debug(f"Loaded {len(self._records)} progress records from {self.path}")

    def _commit(self) -> None:
        db = DatabaseDoc(
            progress=[_to_doc(r) for r in self._records.values()],
            metadata=MetadataDoc(
                study_streak=self._streak.days,
                last_study_date=self._streak.last_study_date,
                updated_at=utc_now(),
            ),
        )
        payload = db.model_dump_json(by_alias=True, indent=2)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
        except OSError as e:
            raise StorageError(f"Could not write progress file {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Could not write progress file {self.path}: {e}") from e
