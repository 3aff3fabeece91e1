"""
Collection loading: find the deck files under a directory, parse them and
make sure every card has a record in the performance store.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from hashcards.application.parser import parse_decks
from hashcards.consts import DECK_SUFFIX
from hashcards.domain.card_hash import CardHash
from hashcards.domain.errors import ParserError
from hashcards.domain.models import Card
from hashcards.domain.ports import PerformanceStore

logger = logging.getLogger(__name__)


def iter_markdown_files(root: Path) -> Iterator[Path]:
    """Deck files under root in sorted order, skipping hidden files and directories."""
    for path in sorted(root.rglob(f"*{DECK_SUFFIX}")):
        rel = path.relative_to(root)
        if any(part.startswith(".") for part in rel.parts):
            continue
        if path.is_file():
            yield path


def read_deck_files(root: Path) -> list[tuple[str, str]]:
    """(label, text) pairs, where label is the path relative to root."""
    files: list[tuple[str, str]] = []
    for path in iter_markdown_files(root):
        label = path.relative_to(root).as_posix()
        try:
            text = path.read_bytes().decode("utf-8")
        except UnicodeDecodeError:
            raise ParserError("File is not valid UTF-8.", label, 0) from None
        files.append((label, text))
    return files


@dataclass
class Collection:
    directory: Path
    cards: list[Card]

    @property
    def hashes(self) -> set[CardHash]:
        return {card.hash for card in self.cards}

    @property
    def deck_names(self) -> list[str]:
        return sorted({card.deck_name for card in self.cards})


def load_collection(directory: Path) -> Collection:
    """
    Parse every deck file under directory.

    Raises:
        ParserError: On the first malformed file.
    """
    files = read_deck_files(directory)
    cards = parse_decks(files)
    logger.info(f"[collection] Parsed {len(cards)} cards from {len(files)} files in {directory}")
    return Collection(directory=directory, cards=cards)


def register_new_cards(collection: Collection, store: PerformanceStore) -> int:
    """Add a New record for every card the store has not seen."""
    added = store.insert_many([card.hash for card in collection.cards])
    if added:
        logger.info(f"[collection] Registered {added} new cards")
    return added


def find_orphans(collection: Collection, store: PerformanceStore) -> list[CardHash]:
    """Store hashes that no card in the collection has, sorted."""
    return sorted(store.card_hashes() - collection.hashes)
