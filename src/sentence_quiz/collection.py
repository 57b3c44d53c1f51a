"""In-memory ordered collections of categories and sentences."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence
from typing import Any

from sentence_quiz.exceptions import EntityNotFoundError, ValidationError
from sentence_quiz.models import Category, Sentence, order_key

# Collection key for the category list; any other key is a category id
CATEGORIES: Any = type("CATEGORIES", (), {"__repr__": lambda self: "CATEGORIES"})()


class OrderedCollection:
    """Owner-scoped categories and per-category sentences with ranks.

    Read views are sorted by rank (unranked last) and then id. The model
    only mutates its own state; persistence is the engine's job.
    """

    def __init__(self) -> None:
        self._categories: dict[int, Category] = {}
        self._sentences: dict[int, Sentence] = {}

    def load(
        self,
        categories: Iterable[Category],
        sentences: Iterable[Sentence],
    ) -> None:
        """Replace the entire state."""
        self._categories = {c.id: c for c in categories}
        self._sentences = {s.id: s for s in sentences}

    def clear(self) -> None:
        self._categories = {}
        self._sentences = {}

    @property
    def is_empty(self) -> bool:
        return not self._categories and not self._sentences

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def upsert(self, entity: Category | Sentence) -> Category | Sentence:
        """Insert or replace by id, keeping the current rank if none given."""
        if isinstance(entity, Category):
            table: dict[int, Any] = self._categories
        elif isinstance(entity, Sentence):
            table = self._sentences
        else:
            raise TypeError(f"Cannot store {type(entity).__name__}")

        current = table.get(entity.id)
        if current is not None and entity.rank is None:
            entity = dataclasses.replace(entity, rank=current.rank)
        table[entity.id] = entity
        return entity

    def remove(self, entity_id: int) -> None:
        """Delete a sentence, or a category together with its sentences."""
        if entity_id in self._categories:
            del self._categories[entity_id]
            self._sentences = {
                sid: s for sid, s in self._sentences.items()
                if s.category_id != entity_id
            }
        elif entity_id in self._sentences:
            del self._sentences[entity_id]
        else:
            raise EntityNotFoundError(f"No category or sentence: {entity_id!r}")

    def reorder(self, collection_key: Any, ordered_ids: Sequence[int]) -> None:
        """Assign ranks 0..n-1 to exactly the members of one collection.

        ``collection_key`` is :data:`CATEGORIES` or a category id. The ids
        must be a permutation of the collection's current members;
        anything else raises :class:`ValidationError` and changes nothing.
        """
        if collection_key is CATEGORIES:
            table: dict[int, Any] = self._categories
            members = set(self._categories)
        else:
            if collection_key not in self._categories:
                raise EntityNotFoundError(
                    f"Category not found: {collection_key!r}"
                )
            table = self._sentences
            members = {
                s.id for s in self._sentences.values()
                if s.category_id == collection_key
            }

        if len(ordered_ids) != len(members) or set(ordered_ids) != members:
            raise ValidationError(
                "ordered_ids must contain exactly the collection's ids"
            )

        for rank, entity_id in enumerate(ordered_ids):
            table[entity_id] = dataclasses.replace(table[entity_id], rank=rank)

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------

    def categories(self) -> tuple[Category, ...]:
        return tuple(sorted(self._categories.values(), key=order_key))

    def sentences(self, category_id: int) -> tuple[Sentence, ...]:
        return tuple(sorted(
            (s for s in self._sentences.values() if s.category_id == category_id),
            key=order_key,
        ))

    def all_sentences(self) -> tuple[Sentence, ...]:
        return tuple(sorted(self._sentences.values(), key=order_key))

    def get_category(self, category_id: int) -> Category:
        try:
            return self._categories[category_id]
        except KeyError:
            raise EntityNotFoundError(
                f"Category not found: {category_id!r}"
            ) from None

    def get_sentence(self, sentence_id: int) -> Sentence:
        try:
            return self._sentences[sentence_id]
        except KeyError:
            raise EntityNotFoundError(
                f"Sentence not found: {sentence_id!r}"
            ) from None

    def find_category_by_name(self, name: str) -> Category | None:
        """First category (in display order) whose name matches."""
        name = name.strip()
        for category in self.categories():
            if category.name == name:
                return category
        return None

    def has_id(self, entity_id: int) -> bool:
        return entity_id in self._categories or entity_id in self._sentences

    def category_count(self) -> int:
        return len(self._categories)

    def sentence_count(self, category_id: int) -> int:
        return sum(
            1 for s in self._sentences.values() if s.category_id == category_id
        )
