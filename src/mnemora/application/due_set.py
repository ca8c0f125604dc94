"""
Due-set classification and next-card selection.

Partitions a learner's cards into overdue / due today / new / upcoming using
UTC calendar days, then picks the next card with a fixed priority:
overdue > due today > new. No randomisation and no weighting; the first id
in bucket order wins.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime

from mnemora.application.utils.clock import ONE_DAY, ensure_utc, start_of_day
from mnemora.domain.progress.models import CardId, DueBuckets, MemoryState

logger = logging.getLogger(__name__)


def classify(
    states: Mapping[CardId, MemoryState],
    now: datetime,
    catalog_ids: Iterable[CardId] | None = None,
) -> DueBuckets:
    """
    Partition cards into DueBuckets as of ``now``.

    Args:
        states: Scheduling state per card that has progress.
        now: Reference time; only its UTC calendar day matters for bucketing.
        catalog_ids: Cards to classify, in catalog order. Defaults to the keys
            of ``states``. States for ids outside the catalog are ignored.

    Returns:
        DueBuckets where every classified id appears exactly once.
    """
    today = start_of_day(now)
    tomorrow = today + ONE_DAY
    buckets = DueBuckets()

    card_ids = list(states) if catalog_ids is None else list(dict.fromkeys(catalog_ids))

    for card_id in card_ids:
        state = states.get(card_id)
        if state is None or not state.is_reviewed:
            buckets.new.append(card_id)
            continue

        next_review = ensure_utc(state.next_review_date)
        if next_review < today:
            buckets.overdue.append(card_id)
        elif next_review < tomorrow:
            buckets.due_today.append(card_id)
        else:
            buckets.upcoming.append(card_id)

    logger.debug(
        f"Classified {len(card_ids)} cards: overdue={len(buckets.overdue)} "
        f"due_today={len(buckets.due_today)} new={len(buckets.new)} "
        f"upcoming={len(buckets.upcoming)}"
    )
    return buckets


def filter_buckets(buckets: DueBuckets, catalog_ids: Iterable[CardId]) -> DueBuckets:
    """
    Restrict buckets to the catalog scope. Unknown ids are dropped silently.
    """
    scope = set(catalog_ids)
    return DueBuckets(
        overdue=[c for c in buckets.overdue if c in scope],
        due_today=[c for c in buckets.due_today if c in scope],
        new=[c for c in buckets.new if c in scope],
        upcoming=[c for c in buckets.upcoming if c in scope],
    )


def select_next(
    catalog_ids: Iterable[CardId],
    buckets: DueBuckets,
    excluded_ids: Iterable[CardId] | None = None,
) -> CardId | None:
    """
    Pick the next card to present.

    Priority:
    1. Overdue cards within the catalog scope.
    2. Cards due today.
    3. New cards: catalog ids with no scheduled review, in catalog order.

    Returns:
        The chosen card id, or None when the session is complete.
    """
    ordered = list(dict.fromkeys(catalog_ids))
    scope = set(ordered)
    excluded = set(excluded_ids or ())

    for bucket in (buckets.overdue, buckets.due_today):
        for card_id in bucket:
            if card_id in scope and card_id not in excluded:
                return card_id

    # Catalog ids never seen by classify are new as well
    scheduled = {*buckets.overdue, *buckets.due_today, *buckets.upcoming}
    for card_id in ordered:
        if card_id not in scheduled and card_id not in excluded:
            return card_id

    return None
