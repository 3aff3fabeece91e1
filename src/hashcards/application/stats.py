"""
Collection statistics: card counts per deck, review state and recall.

This is a pure computation module with no I/O. It reads the performance
store but never writes to it, so unseen cards are counted as new without
being registered.
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any

from hashcards.application.collection import Collection
from hashcards.application.queue_builder import due_hashes
from hashcards.domain.fsrs import retrievability
from hashcards.domain.models import ReviewedPerformance
from hashcards.domain.ports import PerformanceStore


@dataclass
class DeckStats:
    deck_name: str
    cards: int = 0
    new: int = 0
    due: int = 0


@dataclass
class CollectionStats:
    """
    Summary of a collection on a given day.

    `due` counts new cards too, matching what a drill session would serve.
    """

    today: date
    cards: int = 0
    new: int = 0
    reviewed: int = 0
    due: int = 0
    reviews: int = 0  # Sum of review counts
    mean_retrievability: float | None = None
    decks: list[DeckStats] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["today"] = self.today.isoformat()
        return d


def collection_stats(collection: Collection, store: PerformanceStore, today: date) -> CollectionStats:
    due = due_hashes(collection.cards, store, today)
    stats = CollectionStats(today=today)
    per_deck: dict[str, DeckStats] = {}
    recall: list[float] = []

    for card in collection.cards:
        deck = per_deck.setdefault(card.deck_name, DeckStats(deck_name=card.deck_name))
        deck.cards += 1
        stats.cards += 1

        perf = store.get(card.hash)
        if isinstance(perf, ReviewedPerformance):
            stats.reviewed += 1
            stats.reviews += perf.review_count
            elapsed = max((today - perf.last_reviewed_at.date()).days, 0)
            recall.append(retrievability(elapsed, perf.stability))
        else:
            deck.new += 1
            stats.new += 1

        if card.hash in due:
            deck.due += 1
            stats.due += 1

    if recall:
        stats.mean_retrievability = sum(recall) / len(recall)
    stats.decks = [per_deck[name] for name in sorted(per_deck)]
    return stats
