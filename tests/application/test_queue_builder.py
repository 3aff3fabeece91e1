"""Tests for hashcards.application.queue_builder."""

from datetime import date, datetime

import pytest

from hashcards.application.queue_builder import (
    bury_cloze_siblings,
    build_queue,
    due_hashes,
    limit_new_cards,
)
from hashcards.application.rng import TinyRng
from hashcards.domain.fsrs import Grade
from hashcards.domain.models import NEW
from hashcards.domain.performance import update_performance

TODAY = date(2025, 1, 10)


@pytest.fixture
def reviewed(store):
    """Mark a card as reviewed on a given day with a given grade."""

    def _reviewed(card, day: date, grade: Grade = Grade.GOOD):
        perf = update_performance(NEW, grade, datetime(day.year, day.month, day.day, 9))
        store.set(card.hash, perf)
        return perf

    return _reviewed


def all_due(cards):
    return {c.hash for c in cards}


class TestDueHashes:
    def test_new_cards_are_due(self, store, make_basic):
        card = make_basic("Q", "A")
        assert due_hashes([card], store, TODAY) == {card.hash}

    def test_due_date_today_or_earlier(self, store, make_basic, reviewed):
        # Good on a new card schedules 3 days out.
        on_time = make_basic("on", "time")
        overdue = make_basic("over", "due")
        future = make_basic("not", "yet")
        reviewed(on_time, date(2025, 1, 7))
        reviewed(overdue, date(2025, 1, 1))
        reviewed(future, date(2025, 1, 9))
        due = due_hashes([on_time, overdue, future], store, TODAY)
        assert due == {on_time.hash, overdue.hash}


class TestBuildQueue:
    def test_keeps_only_due_cards_in_order(self, store, make_basic):
        cards = [make_basic(str(i), "a") for i in range(4)]
        due = {cards[0].hash, cards[2].hash}
        assert build_queue(cards, due, store) == [cards[0], cards[2]]

    def test_deck_filter(self, store, make_basic):
        a = make_basic("1", "a", deck="Spanish")
        b = make_basic("2", "a", deck="French")
        assert build_queue([a, b], all_due([a, b]), store, deck_filter="French") == [b]

    def test_new_card_limit_admits_all_reviewed(self, store, make_basic, reviewed):
        new_cards = [make_basic(f"new {i}", "a") for i in range(3)]
        old_cards = [make_basic(f"old {i}", "a") for i in range(2)]
        for card in old_cards:
            reviewed(card, date(2025, 1, 1))
        cards = new_cards[:1] + old_cards[:1] + new_cards[1:] + old_cards[1:]
        queue = build_queue(cards, all_due(cards), store, new_card_limit=1)
        assert queue == [new_cards[0], old_cards[0], old_cards[1]]

    def test_card_limit_truncates(self, store, make_basic):
        cards = [make_basic(str(i), "a") for i in range(5)]
        assert build_queue(cards, all_due(cards), store, card_limit=2) == cards[:2]

    def test_new_card_cap_applies_before_total_cap(self, store, make_basic, reviewed):
        new_cards = [make_basic(f"new {i}", "a") for i in range(3)]
        old = make_basic("old", "a")
        reviewed(old, date(2025, 1, 1))
        cards = new_cards + [old]
        queue = build_queue(cards, all_due(cards), store, new_card_limit=1, card_limit=2)
        assert queue == [new_cards[0], old]

    def test_zero_limits(self, store, make_basic):
        cards = [make_basic("1", "a")]
        assert build_queue(cards, all_due(cards), store, card_limit=0) == []
        assert build_queue(cards, all_due(cards), store, new_card_limit=0) == []

    def test_bury_siblings(self, store, make_basic, make_cloze):
        first = make_cloze("Foo bar", 0, 2)
        second = make_cloze("Foo bar", 4, 6)
        other = make_cloze("Baz", 0, 2)
        plain = make_basic("Q", "A")
        cards = [first, plain, second, other]
        queue = build_queue(cards, all_due(cards), store, bury_siblings=True)
        assert queue == [first, plain, other]

    def test_no_burying_by_default(self, store, make_cloze):
        cards = [make_cloze("Foo bar", 0, 2), make_cloze("Foo bar", 4, 6)]
        assert build_queue(cards, all_due(cards), store) == cards

    def test_shuffle_with_seed(self, store, make_basic):
        cards = [make_basic(str(i), "a") for i in range(10)]
        a = build_queue(cards, all_due(cards), store, shuffle=True, rng=TinyRng(5))
        b = build_queue(cards, all_due(cards), store, shuffle=True, rng=TinyRng(5))
        assert a == b
        assert sorted(a, key=lambda c: c.hash) == sorted(cards, key=lambda c: c.hash)


def test_limit_new_cards_counts_only_new(store, make_basic, reviewed):
    old = make_basic("old", "a")
    reviewed(old, date(2025, 1, 1))
    cards = [old, make_basic("n1", "a"), make_basic("n2", "a")]
    assert limit_new_cards(cards, store, 1) == cards[:2]


def test_bury_keeps_first_sibling(make_cloze):
    cards = [make_cloze("a b c", 2, 2), make_cloze("a b c", 0, 0), make_cloze("a b c", 4, 4)]
    assert bury_cloze_siblings(cards) == cards[:1]
