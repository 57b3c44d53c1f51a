"""Domain model dataclasses and enums for sentence-quiz."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class QuizMode(str, Enum):
    """Order in which a quiz walks through a category."""

    SEQUENTIAL = "sequential"
    RANDOM = "random"


class QuizState(str, Enum):
    """States of a quiz session."""

    NOT_STARTED = "not_started"
    AWAITING_REVEAL = "awaiting_reveal"
    REVEALED = "revealed"
    COMPLETED = "completed"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Category:
    """A named, colored group of sentences owned by one user."""

    id: int
    name: str
    color: str
    rank: int | None
    owner: str


@dataclass(frozen=True, slots=True)
class Sentence:
    """A source/target sentence pair inside a category."""

    id: int
    category_id: int
    source: str
    target: str
    rank: int | None
    owner: str


@dataclass(frozen=True, slots=True)
class Account:
    """A login account; ``id`` doubles as the owner key of its rows."""

    id: str
    password: str
    name: str

    def __repr__(self) -> str:
        return f"Account(id={self.id!r}, name={self.name!r})"


@dataclass(frozen=True, slots=True)
class ReorderResult:
    """Outcome of persisting a reorder, one rank update per row.

    ``order`` is the new local order. ``persisted`` lists the ids whose
    rank update succeeded, in call order. When ``ok`` is false,
    ``failed_id`` is the row whose update failed and every row after it
    still carries its previous rank in the store.
    """

    order: tuple[int, ...]
    persisted: tuple[int, ...] = ()
    failed_id: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.failed_id is None


@dataclass(frozen=True, slots=True)
class Progress:
    """Position of a running quiz (1-based) out of its total."""

    position: int
    total: int


def order_key(entity: Category | Sentence) -> tuple[bool, int, int]:
    """Sort key: rank ascending with unranked rows last, then id."""
    return (entity.rank is None, entity.rank or 0, entity.id)
