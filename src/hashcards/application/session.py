"""
Drill session engine.

A session owns the review queue built for one sitting and moves through it
with four actions: reveal the answer, grade the card, undo the last grade and
end the session. Index 0 of the queue is the card currently shown.

Every grade and undo writes to the performance store before touching the
session's own state, so a failed write leaves the session as it was.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from hashcards.domain.errors import SessionError
from hashcards.domain.fsrs import Grade
from hashcards.domain.models import Card, Performance, truncate_timestamp
from hashcards.domain.performance import update_performance
from hashcards.domain.ports import PerformanceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewRecord:
    """One graded card, with what is needed to take the grade back."""

    card: Card
    prior_performance: Performance
    grade: Grade
    requeued: bool
    reviewed_at: datetime


class DrillSession:
    def __init__(
        self,
        cards: list[Card],
        store: PerformanceStore,
        started_at: datetime | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.clock = clock
        self.queue: list[Card] = list(cards)
        self.total_cards = len(self.queue)
        self.revealed = False
        self.history: list[ReviewRecord] = []
        self.started_at = truncate_timestamp(started_at or clock())
        self.finished_at: datetime | None = None
        logger.info(f"[session] Started with {self.total_cards} cards")

    # ---------- Accessors ----------

    @property
    def current_card(self) -> Card | None:
        if self.finished_at is not None or not self.queue:
            return None
        return self.queue[0]

    @property
    def remaining(self) -> int:
        return len(self.queue)

    @property
    def progress(self) -> tuple[int, int]:
        """(cards done, cards in the session)."""
        return self.total_cards - len(self.queue), self.total_cards

    @property
    def is_finished(self) -> bool:
        return self.finished_at is not None

    @property
    def reviews_done(self) -> int:
        return len(self.history)

    # ---------- Actions ----------

    def _ensure_active(self, action: str) -> None:
        if self.finished_at is not None:
            raise SessionError(f"Cannot {action}: the session has finished.")

    def reveal(self) -> None:
        self._ensure_active("reveal")
        if self.queue:
            self.revealed = True

    def grade(self, grade: Grade, reviewed_at: datetime | None = None) -> Performance:
        """
        Grade the current card and schedule its next review.

        Forgot and Hard put the card back at the front of the queue; Good and
        Easy remove it. The session finishes when the queue empties.

        Returns:
            The card's new performance.

        Raises:
            SessionError: If the session has finished or the queue is empty.
            StoreError: If the new performance could not be saved.
        """
        self._ensure_active("grade")
        if not self.queue:
            raise SessionError("Cannot grade: there is no card to grade.")

        reviewed_at = truncate_timestamp(reviewed_at or self.clock())
        card = self.queue[0]
        prior = self.store.get(card.hash)
        updated = update_performance(prior, grade, reviewed_at)
        self.store.set(card.hash, updated)

        requeued = grade in (Grade.FORGOT, Grade.HARD)
        self.queue.pop(0)
        if requeued:
            self.queue.insert(0, card)
        self.history.append(
            ReviewRecord(
                card=card,
                prior_performance=prior,
                grade=grade,
                requeued=requeued,
                reviewed_at=reviewed_at,
            )
        )
        self.revealed = False
        logger.debug(
            f"[session] {card.hash} graded {grade.as_str()}, next due {updated.due_date}"
        )

        if not self.queue:
            self.finished_at = reviewed_at
            logger.info(f"[session] Finished after {self.reviews_done} reviews")
        return updated

    def undo(self) -> None:
        """Take back the last grade. Does nothing when nothing has been graded."""
        self._ensure_active("undo")
        if not self.history:
            return

        record = self.history[-1]
        self.store.set(record.card.hash, record.prior_performance)

        self.history.pop()
        if record.requeued:
            self.queue.pop(0)
        self.queue.insert(0, record.card)
        self.revealed = False
        logger.debug(f"[session] Undid {record.grade.as_str()} on {record.card.hash}")

    def end(self) -> None:
        self._ensure_active("end")
        self.finished_at = truncate_timestamp(self.clock())
        logger.info(f"[session] Ended with {self.remaining} cards left")

    def apply(self, action: str) -> None:
        """Dispatch an action by name (Reveal, Forgot, Hard, Good, Easy, Undo, End)."""
        if action == "Reveal":
            self.reveal()
        elif action == "Undo":
            self.undo()
        elif action == "End":
            self.end()
        elif action in ("Forgot", "Hard", "Good", "Easy"):
            self.grade(Grade.parse(action.lower()))
        else:
            raise SessionError(f"Unknown action: {action}")
