"""
Performance store adapters.

Implements PerformanceStore in memory and as a JSON file keyed by card hash:

    {
      "<64 hex digits>": "New",
      "<64 hex digits>": {"Reviewed": {"last_reviewed_at": "...", ...}}
    }
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from hashcards.domain.card_hash import CardHash
from hashcards.domain.errors import DecodeError, StoreError
from hashcards.domain.models import (
    NEW,
    Performance,
    ReviewedPerformance,
    format_date,
    format_timestamp,
    parse_date,
    parse_timestamp,
)
from hashcards.domain.ports import PerformanceStore

logger = logging.getLogger(__name__)


class MemoryPerformanceStore(PerformanceStore):
    """Process-local store. Used by tests and by sessions that should not persist."""

    def __init__(self, records: dict[CardHash, Performance] | None = None):
        self.records: dict[CardHash, Performance] = dict(records or {})

    def get(self, card_hash: CardHash) -> Performance:
        return self.records.get(card_hash, NEW)

    def set(self, card_hash: CardHash, performance: Performance) -> None:
        self.records[card_hash] = performance

    def card_hashes(self) -> set[CardHash]:
        return set(self.records)

    def delete(self, card_hash: CardHash) -> None:
        self.records.pop(card_hash, None)


# ---------- JSON records ----------


class ReviewedRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    last_reviewed_at: str
    stability: float
    difficulty: float
    interval_raw: float
    interval_days: int
    due_date: str
    review_count: int


class ReviewedEnvelope(BaseModel):
    model_config = ConfigDict(extra="forbid")

    Reviewed: ReviewedRecord


StoreFile = TypeAdapter(dict[str, Literal["New"] | ReviewedEnvelope])


def performance_to_record(perf: Performance) -> str | dict:
    if isinstance(perf, ReviewedPerformance):
        record = ReviewedRecord(
            last_reviewed_at=format_timestamp(perf.last_reviewed_at),
            stability=perf.stability,
            difficulty=perf.difficulty,
            interval_raw=perf.interval_raw,
            interval_days=perf.interval_days,
            due_date=format_date(perf.due_date),
            review_count=perf.review_count,
        )
        return {"Reviewed": record.model_dump()}
    return "New"


def performance_from_record(record: str | ReviewedEnvelope) -> Performance:
    """Raises DecodeError if a date or timestamp is malformed."""
    if isinstance(record, ReviewedEnvelope):
        r = record.Reviewed
        return ReviewedPerformance(
            last_reviewed_at=parse_timestamp(r.last_reviewed_at),
            stability=r.stability,
            difficulty=r.difficulty,
            interval_raw=r.interval_raw,
            interval_days=r.interval_days,
            due_date=parse_date(r.due_date),
            review_count=r.review_count,
        )
    return NEW


class JsonPerformanceStore(PerformanceStore):
    """
    JSON file store. The whole file is loaded on open and rewritten on every
    change, via a temporary file and os.replace so a crash never leaves a
    half-written file behind.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.records: dict[CardHash, Performance] = self._load()
        logger.debug(f"[store] Loaded {len(self.records)} records from {self.path}")

    def _load(self) -> dict[CardHash, Performance]:
        if not self.path.exists():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
            data = StoreFile.validate_json(raw) if raw.strip() else {}
            return {
                CardHash.from_hex(key): performance_from_record(value)
                for key, value in data.items()
            }
        except OSError as e:
            raise StoreError(f"Failed to read {self.path}: {e}") from e
        except (ValidationError, DecodeError) as e:
            raise StoreError(f"Invalid performance data in {self.path}: {e}") from e

    def _save(self, records: dict[CardHash, Performance]) -> None:
        data = {
            card_hash.to_hex(): performance_to_record(perf)
            for card_hash, perf in sorted(records.items())
        }
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreError(f"Failed to write {self.path}: {e}") from e

    def get(self, card_hash: CardHash) -> Performance:
        return self.records.get(card_hash, NEW)

    def set(self, card_hash: CardHash, performance: Performance) -> None:
        updated = dict(self.records)
        updated[card_hash] = performance
        self._save(updated)
        self.records = updated

    def card_hashes(self) -> set[CardHash]:
        return set(self.records)

    def delete(self, card_hash: CardHash) -> None:
        if card_hash not in self.records:
            return
        updated = dict(self.records)
        del updated[card_hash]
        self._save(updated)
        self.records = updated

    def insert_many(self, card_hashes: list[CardHash]) -> int:
        """Register unseen hashes as New with a single write. Returns how many were added."""
        added = [h for h in dict.fromkeys(card_hashes) if h not in self.records]
        if not added:
            return 0
        updated = dict(self.records)
        for card_hash in added:
            updated[card_hash] = NEW
        self._save(updated)
        self.records = updated
        return len(added)
