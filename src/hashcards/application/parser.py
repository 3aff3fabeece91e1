"""
Deck parser.

Turns the text of a deck file into cards with a line-oriented state machine:

    Q: question        (may continue on following lines)
    A: answer          (may continue on following lines)

    C: A cloze sentence with [one] or [more] deletions.

    ---                (optional separator between cards)

Cloze offsets are byte positions into the UTF-8 encoding of the clean text,
so cloze extraction scans bytes, never characters.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import PurePath

from hashcards.application.utils.text import extract_frontmatter, split_lines
from hashcards.domain.constants import ANSWER_TAG, CLOZE_TAG, QUESTION_TAG, SEPARATOR
from hashcards.domain.errors import ParserError
from hashcards.domain.models import BasicContent, Card, ClozeContent

logger = logging.getLogger(__name__)


# ---------- Public entry points ----------


def parse_deck_content(deck_name: str, source_path: str, text: str) -> list[Card]:
    """
    Parse the body of a single deck file (header already stripped).

    Raises:
        ParserError: On the first structural error; the file yields no cards.
    """
    return Parser(deck_name, source_path).parse(text)


def parse_decks(files: Iterable[tuple[str, str]]) -> list[Card]:
    """
    Parse several deck files into one list of cards.

    Each file's deck name is the filename stem unless its header sets `name`.
    The combined list is sorted by hash and deduplicated, so identical cards
    in different files collapse to one.

    Args:
        files: (filename, text) pairs.
    """
    all_cards: list[Card] = []
    for filename, text in files:
        metadata, body, line_offset = extract_frontmatter(text, filename)
        deck_name = metadata.name or default_deck_name(filename)
        parser = Parser(deck_name, filename, line_offset=line_offset)
        cards = parser.parse(body)
        logger.debug(f"[parser] {filename}: {len(cards)} cards in deck '{deck_name}'")
        all_cards.extend(cards)

    all_cards.sort(key=lambda c: c.hash)
    unique: list[Card] = []
    for card in all_cards:
        if not unique or unique[-1].hash != card.hash:
            unique.append(card)
    return unique


def default_deck_name(filename: str) -> str:
    return PurePath(filename).stem


# ---------- Line classification ----------


class LineKind(Enum):
    START_QUESTION = auto()
    START_ANSWER = auto()
    START_CLOZE = auto()
    SEPARATOR = auto()
    TEXT = auto()


def read_line(line: str) -> tuple[LineKind, str]:
    """Classify a line; tag lines carry their text with the tag removed."""
    if line.startswith(QUESTION_TAG):
        return LineKind.START_QUESTION, line[2:].strip()
    if line.startswith(ANSWER_TAG):
        return LineKind.START_ANSWER, line[2:].strip()
    if line.startswith(CLOZE_TAG):
        return LineKind.START_CLOZE, line[2:].strip()
    if line.strip() == SEPARATOR:
        return LineKind.SEPARATOR, ""
    return LineKind.TEXT, line


# ---------- Parser states ----------


@dataclass(frozen=True)
class Initial:
    pass


@dataclass(frozen=True)
class ReadingQuestion:
    question: str
    start_line: int


@dataclass(frozen=True)
class ReadingAnswer:
    question: str
    answer: str
    start_line: int


@dataclass(frozen=True)
class ReadingCloze:
    text: str
    start_line: int


State = Initial | ReadingQuestion | ReadingAnswer | ReadingCloze


class Parser:
    def __init__(self, deck_name: str, source_path: str, line_offset: int = 0):
        """
        Args:
            deck_name: Deck assigned to every card produced.
            source_path: Label used in error messages and card provenance.
            line_offset: Added to every line number, for bodies that follow a header.
        """
        self.deck_name = deck_name
        self.source_path = source_path
        self.line_offset = line_offset

    def parse(self, text: str) -> list[Card]:
        """Parse all the cards in the given text, deduplicated by hash in parse order."""
        cards: list[Card] = []
        state: State = Initial()
        lines = split_lines(text)
        for line_num, line in enumerate(lines):
            state = self._parse_line(state, read_line(line), line_num, cards)
        last_line = len(lines) - 1 if lines else 0
        self._finalize(state, last_line, cards)

        seen = set()
        unique_cards = []
        for card in cards:
            if card.hash not in seen:
                seen.add(card.hash)
                unique_cards.append(card)
        return unique_cards

    def _error(self, message: str, line_num: int) -> ParserError:
        return ParserError(message, self.source_path, line_num + self.line_offset)

    def _basic(self, question: str, answer: str, start_line: int, end_line: int) -> Card:
        return Card(
            deck_name=self.deck_name,
            source_path=self.source_path,
            span=(start_line + self.line_offset, end_line + self.line_offset),
            content=BasicContent(question=question.strip(), answer=answer.strip()),
        )

    def _parse_line(
        self,
        state: State,
        line: tuple[LineKind, str],
        line_num: int,
        cards: list[Card],
    ) -> State:
        kind, text = line

        if isinstance(state, Initial):
            if kind is LineKind.START_QUESTION:
                return ReadingQuestion(text, line_num)
            if kind is LineKind.START_ANSWER:
                raise self._error("Found answer tag without a question.", line_num)
            if kind is LineKind.START_CLOZE:
                return ReadingCloze(text, line_num)
            return state

        if isinstance(state, ReadingQuestion):
            if kind is LineKind.START_QUESTION:
                raise self._error("New question without answer.", line_num)
            if kind is LineKind.START_ANSWER:
                return ReadingAnswer(state.question, text, state.start_line)
            if kind is LineKind.START_CLOZE:
                raise self._error("Found cloze tag while reading a question.", line_num)
            if kind is LineKind.SEPARATOR:
                raise self._error(
                    "Found flashcard separator while reading a question.", line_num
                )
            return ReadingQuestion(f"{state.question}\n{text}", state.start_line)

        if isinstance(state, ReadingAnswer):
            if kind is LineKind.START_ANSWER:
                raise self._error("Found answer tag while reading an answer.", line_num)
            if kind is LineKind.TEXT:
                return ReadingAnswer(
                    state.question, f"{state.answer}\n{text}", state.start_line
                )
            cards.append(self._basic(state.question, state.answer, state.start_line, line_num))
            return self._open(kind, text, line_num)

        if isinstance(state, ReadingCloze):
            if kind is LineKind.START_ANSWER:
                raise self._error("Found answer tag while reading a cloze card.", line_num)
            if kind is LineKind.TEXT:
                return ReadingCloze(f"{state.text}\n{text}", state.start_line)
            cards.extend(self.parse_cloze_cards(state.text, state.start_line, line_num))
            return self._open(kind, text, line_num)

        raise TypeError(f"unknown parser state: {state!r}")

    def _open(self, kind: LineKind, text: str, line_num: int) -> State:
        """State after a card has been finalized by a start tag or separator."""
        if kind is LineKind.START_QUESTION:
            return ReadingQuestion(text, line_num)
        if kind is LineKind.START_CLOZE:
            return ReadingCloze(text, line_num)
        return Initial()

    def _finalize(self, state: State, last_line: int, cards: list[Card]) -> None:
        if isinstance(state, Initial):
            return
        if isinstance(state, ReadingQuestion):
            raise self._error(
                "File ended while reading a question without answer.", last_line
            )
        if isinstance(state, ReadingAnswer):
            cards.append(self._basic(state.question, state.answer, state.start_line, last_line))
            return
        if isinstance(state, ReadingCloze):
            cards.extend(self.parse_cloze_cards(state.text, state.start_line, last_line))
            return
        raise TypeError(f"unknown parser state: {state!r}")

    def parse_cloze_cards(self, text: str, start_line: int, end_line: int) -> list[Card]:
        """
        Expand one cloze source into one card per bracketed deletion.

        Two flags change how a bracket is read:
        - image mode: set by '!' directly before '[' (Markdown image), cleared by ']'.
        - escape mode: set by '\\' directly before '[' or ']', cleared by that bracket.
        Brackets read in neither mode delimit deletions and are dropped from
        the clean text, as are the backslashes that start escape mode.
        """
        raw = text.strip().encode("utf-8", "surrogateescape")
        clean = bytearray()
        spans: list[tuple[int, int]] = []
        start: int | None = None
        image_mode = False
        escape_mode = False

        for pos, c in enumerate(raw):
            nxt = raw[pos + 1] if pos + 1 < len(raw) else None
            if c == ord("["):
                if escape_mode:
                    escape_mode = False
                    clean.append(c)
                elif image_mode:
                    clean.append(c)
                elif start is None:
                    start = len(clean)
            elif c == ord("]"):
                if escape_mode:
                    escape_mode = False
                    clean.append(c)
                elif image_mode:
                    image_mode = False
                    clean.append(c)
                elif start is not None:
                    if len(clean) == start:
                        raise self._error("Cloze deletion must not be empty.", start_line)
                    spans.append((start, len(clean) - 1))
                    start = None
            elif c == ord("!"):
                if not image_mode and nxt == ord("["):
                    image_mode = True
                clean.append(c)
            elif c == ord("\\"):
                if not escape_mode and nxt in (ord("["), ord("]")):
                    escape_mode = True
                else:
                    clean.append(c)
            else:
                clean.append(c)

        try:
            clean_text = clean.decode("utf-8")
        except UnicodeDecodeError:
            raise self._error("Cloze card contains invalid UTF-8.", start_line) from None

        if not spans:
            raise self._error(
                "Cloze card must contain at least one cloze deletion.", start_line
            )

        return [
            Card(
                deck_name=self.deck_name,
                source_path=self.source_path,
                span=(start_line + self.line_offset, end_line + self.line_offset),
                content=ClozeContent(text=clean_text, start=s, end=e),
            )
            for s, e in spans
        ]
