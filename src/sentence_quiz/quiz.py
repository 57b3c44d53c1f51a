"""Quiz session state machine over one category's sentences."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable

from sentence_quiz.exceptions import NoContentError, QuizStateError
from sentence_quiz.models import Progress, QuizMode, QuizState, Sentence

logger = logging.getLogger(__name__)

SnapshotSource = Callable[[int], "tuple[Sentence, ...]"]


class QuizSession:
    """Steps through a snapshot: question, reveal, next, until completed.

    ``snapshot`` is called once per :meth:`start` with the category id
    and must return that category's sentences in rank order (for example
    :meth:`SyncEngine.snapshot`). Later edits to the category do not
    affect a running session.
    """

    def __init__(
        self,
        snapshot: SnapshotSource,
        rng: random.Random | None = None,
    ) -> None:
        self._snapshot = snapshot
        self._rng = rng or random.Random()
        self._items: tuple[Sentence, ...] = ()
        self._state = QuizState.NOT_STARTED
        self._index = 0
        self._category_id: int | None = None
        self._mode: QuizMode | None = None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, category_id: int, mode: QuizMode | str = QuizMode.SEQUENTIAL) -> None:
        mode = QuizMode(mode)
        sentences = list(self._snapshot(category_id))
        if not sentences:
            raise NoContentError(f"Category {category_id!r} has no sentences")

        if mode is QuizMode.RANDOM:
            self._rng.shuffle(sentences)

        self._items = tuple(sentences)
        self._category_id = category_id
        self._mode = mode
        self._index = 0
        self._state = QuizState.AWAITING_REVEAL
        logger.debug(
            "Quiz started for category %r (%s, %d items)",
            category_id, mode.value, len(self._items),
        )

    def reveal(self) -> Sentence:
        self._expect(QuizState.AWAITING_REVEAL, "reveal")
        self._state = QuizState.REVEALED
        return self._items[self._index]

    def advance(self) -> Sentence | None:
        """Move past a revealed item; ``None`` once the quiz is completed."""
        self._expect(QuizState.REVEALED, "advance")
        if self._index == len(self._items) - 1:
            self._state = QuizState.COMPLETED
            logger.debug("Quiz for category %r completed", self._category_id)
            return None
        self._index += 1
        self._state = QuizState.AWAITING_REVEAL
        return self._items[self._index]

    def exit(self) -> None:
        self._items = ()
        self._category_id = None
        self._mode = None
        self._index = 0
        self._state = QuizState.NOT_STARTED

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> QuizState:
        return self._state

    @property
    def index(self) -> int | None:
        if self._state in (QuizState.AWAITING_REVEAL, QuizState.REVEALED):
            return self._index
        return None

    @property
    def category_id(self) -> int | None:
        return self._category_id

    @property
    def mode(self) -> QuizMode | None:
        return self._mode

    @property
    def items(self) -> tuple[Sentence, ...]:
        return self._items

    @property
    def current(self) -> Sentence | None:
        if self.index is None:
            return None
        return self._items[self._index]

    @property
    def prompt(self) -> str | None:
        current = self.current
        return current.source if current else None

    @property
    def answer(self) -> str | None:
        """Target text, only available once revealed."""
        if self._state is not QuizState.REVEALED:
            return None
        return self._items[self._index].target

    @property
    def progress(self) -> Progress:
        total = len(self._items)
        if self._state is QuizState.COMPLETED:
            return Progress(total, total)
        if self.index is None:
            return Progress(0, total)
        return Progress(self._index + 1, total)

    def _expect(self, state: QuizState, action: str) -> None:
        if self._state is not state:
            raise QuizStateError(
                f"Cannot {action} while {self._state.value}"
            )
