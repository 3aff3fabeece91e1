"""
Queue builder for drill sessions.

Builds the ordered review queue by:
1. Keeping the cards that are due today
2. Applying the deck filter and the new/total card caps
3. Burying cloze siblings
4. Shuffling
"""

import logging
from collections.abc import Iterable
from datetime import date

from hashcards.application.rng import TinyRng, shuffle as shuffle_cards
from hashcards.domain.card_hash import CardHash
from hashcards.domain.models import Card, ReviewedPerformance
from hashcards.domain.ports import PerformanceStore

logger = logging.getLogger(__name__)


def due_hashes(cards: Iterable[Card], store: PerformanceStore, today: date) -> set[CardHash]:
    """Hashes of cards that are new or whose due date is on or before today."""
    due: set[CardHash] = set()
    for card in cards:
        perf = store.get(card.hash)
        if not isinstance(perf, ReviewedPerformance) or perf.due_date <= today:
            due.add(card.hash)
    return due


def build_queue(
    cards: list[Card],
    due: set[CardHash],
    store: PerformanceStore,
    *,
    deck_filter: str | None = None,
    card_limit: int | None = None,
    new_card_limit: int | None = None,
    bury_siblings: bool = False,
    shuffle: bool = False,
    rng: TinyRng | None = None,
) -> list[Card]:
    """
    Build the review queue for a session.

    Args:
        cards: All parsed cards, in collection order.
        due: Hashes due today (see due_hashes).
        store: Used to tell new cards from reviewed ones for the new-card cap.
        deck_filter: Keep only cards whose deck name matches exactly.
        card_limit: Truncate the queue to this many cards.
        new_card_limit: Admit at most this many never-reviewed cards.
        bury_siblings: Keep only the first card of each cloze family.
        shuffle: Permute the final queue.
        rng: Generator for the shuffle; seeded from the clock if not given.

    Returns:
        The queue; index 0 is the first card shown.
    """
    queue = [card for card in cards if card.hash in due]
    logger.debug(f"[queue] {len(queue)} of {len(cards)} cards due")

    if deck_filter is not None:
        queue = filter_deck(queue, deck_filter)

    if new_card_limit is not None:
        queue = limit_new_cards(queue, store, new_card_limit)

    if card_limit is not None:
        queue = queue[:card_limit]

    if bury_siblings:
        queue = bury_cloze_siblings(queue)

    if shuffle:
        queue = shuffle_cards(queue, rng or TinyRng.from_clock())

    logger.info(f"[queue] Built queue with {len(queue)} cards")
    return queue


def filter_deck(cards: list[Card], deck_name: str) -> list[Card]:
    return [card for card in cards if card.deck_name == deck_name]


def limit_new_cards(cards: list[Card], store: PerformanceStore, limit: int) -> list[Card]:
    """Drop new cards past the first `limit`; reviewed cards are always kept."""
    result: list[Card] = []
    new_count = 0
    for card in cards:
        if store.get(card.hash).is_new:
            if new_count >= limit:
                continue
            new_count += 1
        result.append(card)
    return result


def bury_cloze_siblings(cards: list[Card]) -> list[Card]:
    """Keep the first card seen per family hash. Cards without a family are kept."""
    seen_families: set[CardHash] = set()
    result: list[Card] = []
    for card in cards:
        family = card.family_hash
        if family is not None:
            if family in seen_families:
                continue
            seen_families.add(family)
        result.append(card)
    buried = len(cards) - len(result)
    if buried:
        logger.debug(f"[queue] Buried {buried} sibling cards")
    return result
