from datetime import timedelta

import pytest

from mnemora.application.scheduler import compute_next_state
from mnemora.domain.progress.models import CardId, Quality, ReviewRecord, StudyStreak
from mnemora.infrastructure.adapters.progress import InMemoryProgressRepository

from tests.conftest import NOW


@pytest.mark.asyncio
async def test_ensure_state_is_get_or_create(repo):
    first = await repo.ensure_state(CardId("a"), NOW)
    second = await repo.ensure_state(CardId("a"), NOW + timedelta(days=1))

    assert first is second
    assert await repo.load_state(CardId("a")) == first.state
    assert list(await repo.load_all_states()) == ["a"]


@pytest.mark.asyncio
async def test_save_state_requires_record(repo):
    state = compute_next_state((await repo.ensure_state(CardId("a"), NOW)).state, 5, NOW)

    assert await repo.save_state(CardId("a"), state, NOW) is True
    assert await repo.save_state(CardId("b"), state, NOW) is False
    assert await repo.load_state(CardId("a")) == state
    assert await repo.load_state(CardId("b")) is None


@pytest.mark.asyncio
async def test_append_review_without_record_is_dropped(repo):
    review = ReviewRecord(NOW, Quality.PERFECT, 100, False)

    await repo.append_review(CardId("ghost"), review)

    assert await repo.get_record(CardId("ghost")) is None


@pytest.mark.asyncio
async def test_history_limit_is_applied():
    repo = InMemoryProgressRepository(history_limit=3)
    await repo.ensure_state(CardId("a"), NOW)
    for i in range(5):
        await repo.append_review(
            CardId("a"), ReviewRecord(NOW + timedelta(days=i), Quality.PERFECT, 0, False)
        )

    record = await repo.get_record(CardId("a"))
    assert record.total_reviews == 5
    assert len(record.review_history) == 3


@pytest.mark.asyncio
async def test_record_study_activity(repo):
    assert await repo.record_study_activity(NOW) == StudyStreak(1, "2024-03-10")
    assert await repo.record_study_activity(NOW + timedelta(days=1)) == StudyStreak(
        2, "2024-03-11"
    )
    assert await repo.get_streak() == StudyStreak(2, "2024-03-11")


class _FailingCommitRepository(InMemoryProgressRepository):
    fail = False

    def _commit(self):
        if self.fail:
            raise OSError("disk full")


@pytest.mark.asyncio
async def test_failed_commit_leaves_previous_contents():
    repo = _FailingCommitRepository()
    await repo.ensure_state(CardId("a"), NOW)
    await repo.record_study_activity(NOW)
    repo.fail = True

    with pytest.raises(OSError):
        await repo.delete_all()
    with pytest.raises(OSError):
        await repo.reset(CardId("a"), NOW)

    assert list(await repo.load_all_states()) == ["a"]
    assert await repo.get_streak() == StudyStreak(1, "2024-03-10")
