"""Collection export: every card with its content, provenance and performance."""

from typing import Any

from hashcards.application.collection import Collection
from hashcards.domain.models import BasicContent, Card, ClozeContent
from hashcards.domain.ports import PerformanceStore
from hashcards.infrastructure.store import performance_to_record


def card_to_dict(card: Card, store: PerformanceStore) -> dict[str, Any]:
    content = card.content
    d: dict[str, Any] = {
        "hash": card.hash.to_hex(),
        "deck_name": card.deck_name,
        "source_path": card.source_path,
        # 1-based, inclusive
        "lines": [card.span[0] + 1, card.span[1] + 1],
        "kind": card.kind,
    }
    if isinstance(content, BasicContent):
        d["question"] = content.question
        d["answer"] = content.answer
    elif isinstance(content, ClozeContent):
        d["text"] = content.text
        d["start"] = content.start
        d["end"] = content.end
        d["deleted"] = content.deleted()
        d["family_hash"] = card.family_hash.to_hex() if card.family_hash else None
    d["performance"] = performance_to_record(store.get(card.hash))
    return d


def export_collection(collection: Collection, store: PerformanceStore) -> list[dict[str, Any]]:
    return [card_to_dict(card, store) for card in collection.cards]
