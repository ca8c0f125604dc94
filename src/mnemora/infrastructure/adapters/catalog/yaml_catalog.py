"""
YAML card catalog — Infrastructure adapter for a catalog file.

Accepted layouts: a top-level list of cards, or a mapping with a ``cards`` list.

    cards:
      - id: closures-1
        category: javascript
        difficulty: medium
        question: What is a closure?
        answer: A function bundled with its lexical environment.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from mnemora.domain.errors import StorageError
from mnemora.domain.progress.models import Card, CardId, Difficulty

from .memory import InMemoryCardCatalog

logger = logging.getLogger(__name__)


def _parse_card(raw: dict[str, Any]) -> Card | None:
    card_id = raw.get("id")
    question = raw.get("question") or raw.get("front")
    if not card_id or not question:
        return None

    difficulty = raw.get("difficulty")
    try:
        parsed_difficulty = Difficulty(str(difficulty).lower()) if difficulty else None
    except ValueError:
        logger.warning(f"Card {card_id}: unknown difficulty {difficulty!r}, ignoring")
        parsed_difficulty = None

    tags = raw.get("tags") or []
    return Card(
        id=CardId(str(card_id)),
        question=str(question),
        answer=str(raw.get("answer") or raw.get("back") or ""),
        category=str(raw["category"]) if raw.get("category") else None,
        difficulty=parsed_difficulty,
        tags=tuple(str(t) for t in tags) if isinstance(tags, list) else (),
    )


def load_cards(path: Path) -> list[Card]:
    """
    Parse a YAML catalog file.

    Raises:
        StorageError: If the file cannot be read or is not valid YAML.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise StorageError(f"Could not read catalog {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("cards", [])
    if not isinstance(data, list):
        raise StorageError(f"Catalog {path} must contain a list of cards")

    cards: list[Card] = []
    for i, raw in enumerate(data):
        if not isinstance(raw, dict):
            logger.warning(f"{path.name}[{i}]: expected a mapping, skipping")
            continue
        card = _parse_card(raw)
        if card is None:
            logger.warning(f"{path.name}[{i}]: missing id or question, skipping")
            continue
        cards.append(card)

    logger.debug(f"Loaded {len(cards)} cards from {path}")
    return cards


class YamlCardCatalog(InMemoryCardCatalog):
    """Catalog loaded once from a YAML file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(load_cards(self.path))
