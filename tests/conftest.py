from datetime import datetime

import pytest

from hashcards.domain.models import BasicContent, Card, ClozeContent
from hashcards.infrastructure.store import MemoryPerformanceStore


@pytest.fixture(autouse=True)
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    for var in ("COLLECTION_DIR", "DB_PATH", "CARD_LIMIT", "NEW_CARD_LIMIT", "DECK_FILTER"):
        monkeypatch.delenv(f"HASHCARDS_{var}", raising=False)
    return home


@pytest.fixture
def collection_dir(tmp_path):
    """Creates a temporary directory for deck files."""
    d = tmp_path / "cards"
    d.mkdir()
    return d


@pytest.fixture
def store():
    return MemoryPerformanceStore()


@pytest.fixture
def now():
    return datetime(2025, 1, 1, 12, 0, 0)


def _basic(question: str, answer: str, deck: str = "Deck") -> Card:
    return Card(
        deck_name=deck,
        source_path=f"{deck}.md",
        span=(0, 1),
        content=BasicContent(question=question, answer=answer),
    )


def _cloze(text: str, start: int, end: int, deck: str = "Deck") -> Card:
    return Card(
        deck_name=deck,
        source_path=f"{deck}.md",
        span=(0, 0),
        content=ClozeContent(text=text, start=start, end=end),
    )


@pytest.fixture
def make_basic():
    """Factory for basic cards: make_basic(question, answer, deck="Deck")."""
    return _basic


@pytest.fixture
def make_cloze():
    """Factory for cloze cards: make_cloze(text, start, end, deck="Deck")."""
    return _cloze
