import json
from datetime import timedelta

import pytest

from mnemora.application.scheduler import compute_next_state
from mnemora.domain.errors import StorageError
from mnemora.domain.progress.models import CardId, Quality, ReviewRecord, StudyStreak
from mnemora.infrastructure.adapters.progress import JsonProgressRepository

from tests.conftest import NOW


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "data" / "progress.json"


async def _review(repo, card_id, quality, now):
    record = await repo.ensure_state(card_id, now)
    await repo.save_state(card_id, compute_next_state(record.state, quality, now), now)
    await repo.append_review(card_id, ReviewRecord(now, Quality(quality), 1200, True))
    await repo.record_study_activity(now)


@pytest.mark.asyncio
async def test_missing_file_is_empty_store(db_path):
    repo = JsonProgressRepository(db_path)

    assert await repo.load_all_states() == {}
    assert await repo.get_streak() == StudyStreak()
    assert not db_path.exists()


@pytest.mark.asyncio
async def test_round_trip_through_disk(db_path):
    repo = JsonProgressRepository(db_path)
    await _review(repo, CardId("closures"), 5, NOW)
    await _review(repo, CardId("closures"), 4, NOW + timedelta(days=1))

    reloaded = JsonProgressRepository(db_path)
    record = await reloaded.get_record(CardId("closures"))
    original = await repo.get_record(CardId("closures"))

    assert record == original
    assert record.state.interval == 6
    assert record.state.next_review_date == NOW + timedelta(days=7)
    assert record.state.next_review_date.tzinfo is not None
    assert [r.quality for r in record.review_history] == [Quality.PERFECT, Quality.CORRECT_HESITATION]
    assert await reloaded.get_streak() == StudyStreak(2, "2024-03-11")


@pytest.mark.asyncio
async def test_document_layout(db_path):
    repo = JsonProgressRepository(db_path)
    await _review(repo, CardId("grid"), 3, NOW)

    data = json.loads(db_path.read_text(encoding="utf-8"))

    assert data["metadata"]["studyStreak"] == 1
    assert data["metadata"]["lastStudyDate"] == "2024-03-10"
    entry = data["progress"][0]
    assert entry["cardId"] == "grid"
    assert entry["sm2"]["repetitions"] == 1
    assert entry["sm2"]["easeFactor"] == pytest.approx(2.36)
    assert entry["reviewHistory"][0]["responseTimeMs"] == 1200
    assert entry["reviewHistory"][0]["wasRevealed"] is True


@pytest.mark.asyncio
async def test_reset_and_delete_all_persist(db_path):
    repo = JsonProgressRepository(db_path)
    await _review(repo, CardId("a"), 5, NOW)
    await _review(repo, CardId("b"), 5, NOW)

    await repo.reset(CardId("a"), NOW)
    reloaded = JsonProgressRepository(db_path)
    assert (await reloaded.get_record(CardId("a"))).total_reviews == 0

    await reloaded.delete_all()
    assert await JsonProgressRepository(db_path).list_records() == []
    assert await JsonProgressRepository(db_path).get_streak() == StudyStreak()


@pytest.mark.asyncio
async def test_corrupt_file_raises_storage_error(db_path):
    db_path.parent.mkdir(parents=True)
    db_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(StorageError):
        await JsonProgressRepository(db_path).load_all_states()


@pytest.mark.asyncio
async def test_no_temp_files_left_behind(db_path):
    repo = JsonProgressRepository(db_path)
    await _review(repo, CardId("a"), 5, NOW)

    assert [p.name for p in db_path.parent.iterdir()] == ["progress.json"]


@pytest.mark.asyncio
async def test_failed_write_rolls_back_and_cleans_up(db_path):
    repo = JsonProgressRepository(db_path)
    await _review(repo, CardId("a"), 5, NOW)

    # A directory in place of the file makes os.replace fail
    db_path.unlink()
    db_path.mkdir()

    with pytest.raises(StorageError):
        await repo.ensure_state(CardId("b"), NOW)
    with pytest.raises(StorageError):
        await repo.record_study_activity(NOW + timedelta(days=1))

    assert [p.name for p in db_path.parent.iterdir()] == ["progress.json"]
    assert await repo.get_record(CardId("b")) is None
    assert (await repo.get_record(CardId("a"))).total_reviews == 1
    assert await repo.get_streak() == StudyStreak(1, "2024-03-10")
