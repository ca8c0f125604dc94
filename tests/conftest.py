from datetime import datetime, timedelta, timezone

import pytest

from mnemora.domain.progress.models import Card, CardId, Difficulty, MemoryState
from mnemora.infrastructure.adapters.catalog import InMemoryCardCatalog
from mnemora.infrastructure.adapters.progress import InMemoryProgressRepository

# Sunday noon, UTC
NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def reviewed_state(
    next_review: datetime,
    interval: int = 1,
    repetitions: int = 1,
    ease_factor: float = 2.5,
) -> MemoryState:
    """A MemoryState that has been reviewed ``interval`` days before ``next_review``."""
    return MemoryState(
        next_review_date=next_review,
        ease_factor=ease_factor,
        interval=interval,
        repetitions=repetitions,
        last_review_date=next_review - timedelta(days=interval),
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def cards():
    return [
        Card(CardId("closures"), "What is a closure?", "A function plus its scope.",
             category="javascript", difficulty=Difficulty.MEDIUM),
        Card(CardId("event-loop"), "Explain the event loop.", "Macrotasks and microtasks.",
             category="javascript", difficulty=Difficulty.HARD),
        Card(CardId("bfc"), "What is a block formatting context?", "A layout region.",
             category="css", difficulty=Difficulty.MEDIUM),
        Card(CardId("grid"), "Grid or flexbox?", "Two dimensions vs one.",
             category="css", difficulty=Difficulty.EASY),
    ]


@pytest.fixture
def catalog(cards):
    return InMemoryCardCatalog(cards)


@pytest.fixture
def repo():
    return InMemoryProgressRepository()


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and data
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "MNEMORA_DATA_FILE",
        "MNEMORA_CATALOG_FILE",
        "MNEMORA_BACKEND",
        "MNEMORA_VERBOSE",
    ):
        monkeypatch.delenv(var, raising=False)
    return home
