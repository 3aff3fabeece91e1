"""Tests for the drill server in hashcards.server."""

import logging

import pytest
from fastapi.testclient import TestClient

from hashcards.application.session import DrillSession
from hashcards.consts import VERSION
from hashcards.domain.errors import StoreError
from hashcards.infrastructure.store import MemoryPerformanceStore
from hashcards.server import create_app


class BrokenStore(MemoryPerformanceStore):
    def set(self, card_hash, performance):
        raise StoreError("disk full")


@pytest.fixture
def cards(make_basic, make_cloze):
    return [make_basic("Capital of France?", "Paris"), make_cloze("Rome is in Italy.", 0, 3)]


@pytest.fixture
def session(cards, store, now):
    return DrillSession(cards, store, clock=lambda: now)


@pytest.fixture
def client(session):
    with TestClient(create_app(session)) as c:
        yield c


def act(client, action):
    return client.post("/session", json={"action": action})


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version(client):
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_initial_view_hides_answer(client):
    data = client.get("/session").json()
    assert data["prompt"] == "Capital of France?"
    assert data["answer"] is None
    assert data["card_kind"] == "basic"
    assert data["deck_name"] == "Deck"
    assert data["grades"] == ["Forgot", "Hard", "Good", "Easy"]
    assert (data["reviewed"], data["total"], data["remaining"]) == (0, 2, 2)
    assert data["finished"] is False


def test_reveal_then_grade(client, store, cards):
    data = act(client, "Reveal").json()
    assert data["revealed"] is True
    assert data["answer"] == "Paris"

    data = act(client, "Good").json()
    assert data["revealed"] is False
    assert data["card_kind"] == "cloze"
    assert data["prompt"] == "[...] is in Italy."
    assert data["reviewed"] == 1
    assert store.get(cards[0].hash).review_count == 1

    data = act(client, "Reveal").json()
    assert data["answer"] == "Rome is in Italy."


def test_grade_before_reveal_is_conflict(client):
    response = act(client, "Good")
    assert response.status_code == 409
    assert "Reveal" in response.json()["detail"]


def test_unknown_action_is_unprocessable(client):
    assert act(client, "Skip").status_code == 422


def test_undo(client):
    act(client, "Reveal")
    act(client, "Forgot")
    data = act(client, "Undo").json()
    assert data["revealed"] is False
    assert data["answer"] is None
    assert data["prompt"] == "Capital of France?"
    assert data["remaining"] == 2


def test_finish_and_actions_after_end(client):
    for action in ("Reveal", "Easy", "Reveal", "Easy"):
        assert act(client, action).status_code == 200
    data = client.get("/session").json()
    assert data["finished"] is True
    assert data["prompt"] is None

    response = act(client, "Reveal")
    assert response.status_code == 409


def test_end(client):
    data = act(client, "End").json()
    assert data["finished"] is True
    assert act(client, "Undo").status_code == 409


def test_binary_answer_controls(session):
    with TestClient(create_app(session, answer_controls="binary")) as client:
        assert client.get("/session").json()["grades"] == ["Forgot", "Good"]
        act(client, "Reveal")
        assert act(client, "Hard").status_code == 409
        assert act(client, "Good").status_code == 200


def test_store_failure_is_server_error(cards, now):
    session = DrillSession(cards, BrokenStore(), clock=lambda: now)
    with TestClient(create_app(session)) as client:
        act(client, "Reveal")
        response = act(client, "Good")
        assert response.status_code == 500
        assert "disk full" in response.json()["detail"]
        assert client.get("/session").json()["reviewed"] == 0


def test_lifespan_logs_under_module_logger(session, caplog):
    caplog.set_level(logging.INFO, logger="hashcards.server")
    with TestClient(create_app(session)):
        pass
    records = [r for r in caplog.records if r.name == "hashcards.server"]
    assert any("starting with 2 cards" in r.getMessage() for r in records)
