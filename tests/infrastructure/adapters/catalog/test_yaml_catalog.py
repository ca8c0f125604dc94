import pytest

from mnemora.domain.errors import StorageError
from mnemora.domain.progress.models import CardId, Difficulty
from mnemora.infrastructure.adapters.catalog import YamlCardCatalog

CATALOG = """
cards:
  - id: closures
    category: javascript
    difficulty: medium
    question: What is a closure?
    answer: A function bundled with its lexical environment.
    tags: [scope, functions]
  - id: bfc
    category: css
    difficulty: Hard
    question: What creates a block formatting context?
  - id: broken
    answer: no question here
  - id: weird
    difficulty: impossible
    question: Unknown difficulty is dropped
  - just a string
  - id: closures
    question: Duplicate ids keep the first entry
"""


@pytest.fixture
def catalog_file(tmp_path):
    p = tmp_path / "cards.yaml"
    p.write_text(CATALOG, encoding="utf-8")
    return p


@pytest.mark.asyncio
async def test_loads_cards_in_order(catalog_file):
    catalog = YamlCardCatalog(catalog_file)

    cards = await catalog.list_cards()

    assert [c.id for c in cards] == ["closures", "bfc", "weird"]
    assert cards[0].tags == ("scope", "functions")
    assert cards[0].question == "What is a closure?"
    assert cards[1].difficulty == Difficulty.HARD
    assert cards[2].difficulty is None


@pytest.mark.asyncio
async def test_filters(catalog_file):
    catalog = YamlCardCatalog(catalog_file)

    assert [c.id for c in await catalog.list_cards(category="css")] == ["bfc"]
    assert [c.id for c in await catalog.list_cards(difficulty=Difficulty.MEDIUM)] == ["closures"]
    assert await catalog.list_cards(category="css", difficulty=Difficulty.EASY) == []


@pytest.mark.asyncio
async def test_get_card(catalog_file):
    catalog = YamlCardCatalog(catalog_file)

    assert (await catalog.get_card(CardId("bfc"))).category == "css"
    assert await catalog.get_card(CardId("missing")) is None


def test_top_level_list(tmp_path):
    p = tmp_path / "cards.yml"
    p.write_text("- id: a\n  question: Q\n", encoding="utf-8")

    catalog = YamlCardCatalog(p)

    assert list(catalog._cards) == ["a"]


def test_invalid_yaml(tmp_path):
    p = tmp_path / "cards.yaml"
    p.write_text("cards: [unclosed", encoding="utf-8")

    with pytest.raises(StorageError):
        YamlCardCatalog(p)


def test_missing_file(tmp_path):
    with pytest.raises(StorageError):
        YamlCardCatalog(tmp_path / "nope.yaml")


def test_wrong_shape(tmp_path):
    p = tmp_path / "cards.yaml"
    p.write_text("cards: 3\n", encoding="utf-8")

    with pytest.raises(StorageError):
        YamlCardCatalog(p)
