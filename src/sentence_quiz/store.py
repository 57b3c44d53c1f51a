"""Remote store contract used by the synchronization engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from sentence_quiz.models import Category, Sentence

CATEGORY_FIELDS = frozenset({"name", "color", "rank"})
SENTENCE_FIELDS = frozenset({"source", "target", "rank"})


class RemoteStore(ABC):
    """Row-level CRUD over the ``categories`` and ``sentences`` tables.

    Reads are scoped by owner and ordered by rank ascending (unranked rows
    last), then id ascending. Every failing call raises
    :class:`~sentence_quiz.exceptions.StoreError`. Deleting a category
    also deletes its sentences.
    """

    @abstractmethod
    def list_categories(self, owner: str) -> list[Category]:
        ...

    @abstractmethod
    def list_sentences(self, owner: str) -> list[Sentence]:
        ...

    @abstractmethod
    def insert_category(self, category: Category) -> None:
        ...

    @abstractmethod
    def insert_sentence(self, sentence: Sentence) -> None:
        ...

    @abstractmethod
    def update_category(self, category_id: int, **fields: Any) -> None:
        """Update a subset of :data:`CATEGORY_FIELDS` on one row."""

    @abstractmethod
    def update_sentence(self, sentence_id: int, **fields: Any) -> None:
        """Update a subset of :data:`SENTENCE_FIELDS` on one row."""

    @abstractmethod
    def delete_category(self, category_id: int) -> None:
        ...

    @abstractmethod
    def delete_sentence(self, sentence_id: int) -> None:
        ...

    def close(self) -> None:
        """Release any held resources."""
