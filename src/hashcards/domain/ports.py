"""
Ports (interfaces) for performance persistence.

These define the contract that infrastructure adapters must implement.
The drill session and queue builder depend on these abstractions, not on
concrete storage.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .card_hash import CardHash
from .models import NEW, Performance


class PerformanceStore(ABC):
    """
    Port for reading and writing card performance, keyed by content hash.

    Implementations:
        - MemoryPerformanceStore: Process-local dictionary.
        - JsonPerformanceStore: JSON file keyed by the hash's hex encoding.
    """

    @abstractmethod
    def get(self, card_hash: CardHash) -> Performance:
        """
        Fetch the performance of a card.

        Returns:
            The stored record, or NEW for hashes the store has never seen.
        """
        pass

    @abstractmethod
    def set(self, card_hash: CardHash, performance: Performance) -> None:
        """
        Persist a performance record.

        Raises:
            StoreError: If the record could not be written. Callers rely on
                this being raised before any of their own state changes.
        """
        pass

    @abstractmethod
    def card_hashes(self) -> set[CardHash]:
        """All hashes with a record in the store."""
        pass

    @abstractmethod
    def delete(self, card_hash: CardHash) -> None:
        """Remove a record. Unknown hashes are ignored."""
        pass

    def insert_new(self, card_hash: CardHash) -> None:
        """Register a card that has never been reviewed."""
        self.set(card_hash, NEW)

    def insert_many(self, card_hashes: list[CardHash]) -> int:
        """Register every unseen hash as New. Returns how many were added."""
        known = self.card_hashes()
        added = 0
        for card_hash in card_hashes:
            if card_hash not in known:
                self.insert_new(card_hash)
                known.add(card_hash)
                added += 1
        return added
