"""
Domain models for cards and their review performance.

These are pure data structures with no I/O or external dependencies.
"""

import struct
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import cached_property

from hashcards.domain.card_hash import CardHash, Hasher
from hashcards.domain.constants import DATE_FORMAT, TIMESTAMP_FORMAT
from hashcards.domain.errors import DecodeError

# ---------- Card content ----------


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _update_field(hasher: Hasher, data: bytes) -> None:
    # Length prefix keeps ("ab", "c") and ("a", "bc") distinct.
    hasher.update(struct.pack("<Q", len(data)))
    hasher.update(data)


@dataclass(frozen=True)
class BasicContent:
    """A question/answer pair. Both sides may span several lines."""

    question: str
    answer: str


@dataclass(frozen=True)
class ClozeContent:
    """
    A cloze deletion over a clean sentence.

    Attributes:
        text: The source text with cloze brackets removed.
        start: Byte offset (into the UTF-8 encoding of text) of the first deleted byte.
        end: Byte offset of the last deleted byte (inclusive).
    """

    text: str
    start: int
    end: int

    def deleted(self) -> str:
        """The hidden span, as text."""
        raw = _encode(self.text)
        return raw[self.start : self.end + 1].decode("utf-8", "surrogateescape")

    def with_blank(self, blank: str = "[...]") -> str:
        """The clean text with the deleted span replaced by ``blank``."""
        raw = _encode(self.text)
        before = raw[: self.start].decode("utf-8", "surrogateescape")
        after = raw[self.end + 1 :].decode("utf-8", "surrogateescape")
        return before + blank + after


CardContent = BasicContent | ClozeContent


def content_hash(content: CardContent) -> CardHash:
    """Hash the canonical encoding of a card's content."""
    hasher = Hasher()
    if isinstance(content, BasicContent):
        hasher.update(b"Basic")
        _update_field(hasher, _encode(content.question))
        _update_field(hasher, _encode(content.answer))
    elif isinstance(content, ClozeContent):
        hasher.update(b"Cloze")
        _update_field(hasher, _encode(content.text))
        hasher.update(struct.pack("<QQ", content.start, content.end))
    else:
        raise TypeError(f"unknown card content: {content!r}")
    return hasher.finalize()


def content_family_hash(content: CardContent) -> CardHash | None:
    """Siblings of a cloze sentence share the hash of the clean text."""
    if isinstance(content, BasicContent):
        return None
    if isinstance(content, ClozeContent):
        return CardHash.hash_bytes(_encode(content.text))
    raise TypeError(f"unknown card content: {content!r}")


@dataclass(frozen=True)
class Card:
    """
    An immutable unit of study material.

    Identity is the content hash only; deck name, source path and span are
    provenance and do not take part in equality.
    """

    deck_name: str = field(compare=False)
    source_path: str = field(compare=False)
    span: tuple[int, int] = field(compare=False)
    content: CardContent

    @cached_property
    def hash(self) -> CardHash:
        return content_hash(self.content)

    @cached_property
    def family_hash(self) -> CardHash | None:
        return content_family_hash(self.content)

    @property
    def kind(self) -> str:
        if isinstance(self.content, BasicContent):
            return "basic"
        if isinstance(self.content, ClozeContent):
            return "cloze"
        raise TypeError(f"unknown card content: {self.content!r}")


# ---------- Dates and timestamps ----------


def truncate_timestamp(ts: datetime) -> datetime:
    """Drop timezone and keep millisecond precision."""
    return ts.replace(tzinfo=None, microsecond=(ts.microsecond // 1000) * 1000)


def format_timestamp(ts: datetime) -> str:
    return truncate_timestamp(ts).strftime(TIMESTAMP_FORMAT)[:-3]


def parse_timestamp(text: str) -> datetime:
    try:
        ts = datetime.strptime(text, TIMESTAMP_FORMAT)
    except (TypeError, ValueError):
        raise DecodeError(f"Failed to parse timestamp: '{text}'.") from None
    if len(text.rsplit(".", 1)[-1]) != 3:
        raise DecodeError(f"Failed to parse timestamp: '{text}'.")
    return ts


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def parse_date(text: str) -> date:
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except (TypeError, ValueError):
        raise DecodeError(f"invalid date: {text}") from None


# ---------- Performance ----------


@dataclass(frozen=True)
class NewPerformance:
    """The card has never been reviewed."""

    @property
    def is_new(self) -> bool:
        return True


NEW = NewPerformance()


@dataclass(frozen=True)
class ReviewedPerformance:
    """
    Scheduling state of a card that has been reviewed at least once.

    Attributes:
        last_reviewed_at: Timestamp of the last review (naive, millisecond precision).
        stability: FSRS stability, in days.
        difficulty: FSRS difficulty, in [1, 10].
        interval_raw: FSRS interval before rounding and clamping.
        interval_days: interval_raw rounded and clamped to [1, 256].
        due_date: last_reviewed_at.date() + interval_days.
        review_count: Number of times the card has been graded.
    """

    last_reviewed_at: datetime
    stability: float
    difficulty: float
    interval_raw: float
    interval_days: int
    due_date: date
    review_count: int

    @property
    def is_new(self) -> bool:
        return False


Performance = NewPerformance | ReviewedPerformance
