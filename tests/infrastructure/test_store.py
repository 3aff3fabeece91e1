"""Tests for hashcards.infrastructure.store."""

import json
import typing
from datetime import date, datetime

import pytest

from hashcards.domain.card_hash import CardHash
from hashcards.domain.errors import StoreError
from hashcards.domain.fsrs import Grade
from hashcards.domain.models import NEW, ReviewedPerformance
from hashcards.domain.performance import update_performance
from hashcards.infrastructure.store import (
    JsonPerformanceStore,
    MemoryPerformanceStore,
    performance_to_record,
)

H1 = CardHash.hash_bytes(b"one")
H2 = CardHash.hash_bytes(b"two")

REVIEWED = ReviewedPerformance(
    last_reviewed_at=datetime(2024, 1, 1, 12, 0, 0, 500000),
    stability=3.17,
    difficulty=5.28,
    interval_raw=3.17,
    interval_days=3,
    due_date=date(2024, 1, 4),
    review_count=1,
)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "hashcards.json"


@pytest.fixture(params=["memory", "json"])
def any_store(request, db_path):
    if request.param == "memory":
        return MemoryPerformanceStore()
    return JsonPerformanceStore(db_path)


class TestStoreContract:
    """Behaviour shared by every PerformanceStore."""

    def test_unknown_hash_is_new(self, any_store):
        assert any_store.get(H1) == NEW

    def test_set_and_get(self, any_store):
        any_store.set(H1, REVIEWED)
        assert any_store.get(H1) == REVIEWED
        assert any_store.card_hashes() == {H1}

    def test_insert_new(self, any_store):
        any_store.insert_new(H1)
        assert any_store.card_hashes() == {H1}
        assert any_store.get(H1) == NEW

    def test_insert_many_skips_known(self, any_store):
        any_store.set(H1, REVIEWED)
        assert any_store.insert_many([H1, H2, H2]) == 1
        assert any_store.get(H1) == REVIEWED

    def test_delete(self, any_store):
        any_store.insert_new(H1)
        any_store.delete(H1)
        any_store.delete(H2)
        assert any_store.card_hashes() == set()

    def test_card_hashes_annotation_is_builtin_set(self, any_store):
        hints = typing.get_type_hints(type(any_store).card_hashes)
        assert hints["return"] == set[CardHash]
        assert isinstance(any_store.card_hashes(), set)


def test_record_format():
    assert performance_to_record(NEW) == "New"
    assert performance_to_record(REVIEWED) == {
        "Reviewed": {
            "last_reviewed_at": "2024-01-01T12:00:00.500",
            "stability": 3.17,
            "difficulty": 5.28,
            "interval_raw": 3.17,
            "interval_days": 3,
            "due_date": "2024-01-04",
            "review_count": 1,
        }
    }


def test_json_store_persists(db_path):
    store = JsonPerformanceStore(db_path)
    store.set(H1, REVIEWED)
    store.insert_new(H2)

    reopened = JsonPerformanceStore(db_path)
    assert reopened.get(H1) == REVIEWED
    assert reopened.get(H2) == NEW
    data = json.loads(db_path.read_text())
    assert data[H2.to_hex()] == "New"
    assert not db_path.with_name(db_path.name + ".tmp").exists()


def test_json_store_round_trips_update_output(db_path):
    perf = update_performance(NEW, Grade.GOOD, datetime(2024, 3, 1, 8, 15, 30, 123000))
    JsonPerformanceStore(db_path).set(H1, perf)
    assert JsonPerformanceStore(db_path).get(H1) == perf


def test_missing_file_is_empty(db_path):
    assert JsonPerformanceStore(db_path).card_hashes() == set()
    assert not db_path.exists()


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        '["New"]',
        '{"abc": "New"}',
        json.dumps({H1.to_hex(): "Old"}),
        json.dumps({H1.to_hex(): {"Reviewed": {"stability": 1.0}}}),
        json.dumps(
            {
                H1.to_hex(): {
                    "Reviewed": {
                        **performance_to_record(REVIEWED)["Reviewed"],
                        "due_date": "2024-13-40",
                    }
                }
            }
        ),
    ],
    ids=["not-json", "not-object", "bad-hash", "bad-variant", "missing-fields", "bad-date"],
)
def test_invalid_file_raises_store_error(db_path, content):
    db_path.write_text(content)
    with pytest.raises(StoreError):
        JsonPerformanceStore(db_path)


def test_failed_write_keeps_memory_state(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    store = JsonPerformanceStore(blocker / "hashcards.json")
    with pytest.raises(StoreError):
        store.set(H1, REVIEWED)
    assert store.get(H1) == NEW
