"""In-memory card catalog."""

from collections.abc import Iterable

from mnemora.domain.progress.models import Card, CardId, Difficulty
from mnemora.domain.progress.ports import CardCatalog


class InMemoryCardCatalog(CardCatalog):
    """Catalog over a caller-supplied list. Order is preserved; later duplicates are dropped."""

    def __init__(self, cards: Iterable[Card] = ()):
        self._cards: dict[CardId, Card] = {}
        for card in cards:
            self._cards.setdefault(card.id, card)

    async def list_cards(
        self,
        category: str | None = None,
        difficulty: Difficulty | None = None,
    ) -> list[Card]:
        return [
            card
            for card in self._cards.values()
            if (category is None or card.category == category)
            and (difficulty is None or card.difficulty == difficulty)
        ]

    async def get_card(self, card_id: CardId) -> Card | None:
        return self._cards.get(card_id)
