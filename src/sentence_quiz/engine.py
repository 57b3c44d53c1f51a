"""Synchronization engine keeping the in-memory collections and the store in step."""

from __future__ import annotations

import dataclasses
import functools
import logging
import random
import time
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from sentence_quiz.collection import CATEGORIES, OrderedCollection
from sentence_quiz.exceptions import (
    EntityNotFoundError,
    RemoteReadError,
    RemoteWriteError,
    StoreError,
    ValidationError,
)
from sentence_quiz.identity import IdentityContext
from sentence_quiz.models import Category, ReorderResult, Sentence
from sentence_quiz.store import RemoteStore

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., Any])


def _remote_first(action: str) -> Callable[[_F], _F]:
    """Decorator: report store failures of a remote-first write.

    The wrapped method writes to the store before touching the model, so
    a :class:`StoreError` leaves the model unchanged.
    """

    def decorator(method: _F) -> _F:
        @functools.wraps(method)
        def wrapper(self: SyncEngine, *args: Any, **kwargs: Any) -> Any:
            try:
                return method(self, *args, **kwargs)
            except StoreError as e:
                logger.error("Failed to %s: %s", action, e)
                raise RemoteWriteError(f"Failed to {action}: {e}") from e

        return wrapper  # type: ignore[return-value]

    return decorator


def random_color() -> str:
    """A random hue at fixed saturation and lightness."""
    return f"hsl({random.uniform(0, 360):.0f}, 70%, 60%)"


class TimestampIds:
    """Strictly increasing integer ids derived from the wall clock (µs)."""

    def __init__(self, clock: Callable[[], int] = time.time_ns) -> None:
        self._clock = clock
        self._last = 0

    def __call__(self) -> int:
        value = self._clock() // 1000
        if value <= self._last:
            value = self._last + 1
        self._last = value
        return value


def _require_text(value: str | None, label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label} must not be blank")
    return text


def _move(order: list[int], dragged_id: int, target_id: int, label: str) -> list[int]:
    """Take ``dragged_id`` out and reinsert it at ``target_id``'s position."""
    for entity_id in (dragged_id, target_id):
        if entity_id not in order:
            raise EntityNotFoundError(f"{label} not found: {entity_id!r}")
    new_order = list(order)
    to_index = new_order.index(target_id)
    new_order.remove(dragged_id)
    new_order.insert(to_index, dragged_id)
    return new_order


class SyncEngine:
    """Applies user intents to an :class:`OrderedCollection` and a store.

    Create, rename, edit and delete are remote-first: the store is
    written first and the model only changes once the write succeeded.
    Moves and reorders are local-first: the model takes the new order
    immediately and each row's rank is then saved one call at a time,
    stopping at the first failure without rolling anything back.
    """

    def __init__(
        self,
        store: RemoteStore,
        model: OrderedCollection | None = None,
        *,
        id_factory: Callable[[], int] | None = None,
        color_factory: Callable[[], str] = random_color,
    ) -> None:
        self._store = store
        self._model = model if model is not None else OrderedCollection()
        self._new_id = id_factory or TimestampIds()
        self._color_factory = color_factory
        self._owner: str | None = None

    @property
    def model(self) -> OrderedCollection:
        return self._model

    @property
    def owner(self) -> str | None:
        return self._owner

    def attach(self, identity: IdentityContext) -> None:
        """Reload whenever the identity changes, starting with the current one."""
        identity.subscribe(self.load_for_owner)
        self.load_for_owner(identity.owner)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_for_owner(self, owner: str | None) -> None:
        if not owner:
            self._model.clear()
            self._owner = None
            logger.debug("No owner, collections cleared")
            return

        try:
            categories = self._store.list_categories(owner)
            sentences = self._store.list_sentences(owner)
        except StoreError as e:
            self._model.clear()
            self._owner = None
            logger.error("Failed to load rows for owner %r: %s", owner, e)
            raise RemoteReadError(
                f"Failed to load rows for owner {owner!r}: {e}"
            ) from e

        self._model.load(categories, sentences)
        self._owner = owner
        logger.debug(
            "Loaded %d categories and %d sentences for %r",
            len(categories), len(sentences), owner,
        )

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    @_remote_first("add category")
    def add_category(
        self,
        name: str,
        owner: str | None,
        color: str | None = None,
    ) -> Category:
        self._require_owner(owner)
        category = Category(
            id=self._fresh_id(),
            name=_require_text(name, "Category name"),
            color=color or self._color_factory(),
            rank=self._model.category_count(),
            owner=owner,
        )
        self._store.insert_category(category)
        self._model.upsert(category)
        return category

    @_remote_first("rename category")
    def rename_category(
        self,
        category_id: int,
        new_name: str,
        color: str | None = None,
    ) -> Category:
        current = self._model.get_category(category_id)
        fields: dict[str, Any] = {"name": _require_text(new_name, "Category name")}
        if color is not None:
            fields["color"] = color
        self._store.update_category(category_id, **fields)
        return self._model.upsert(dataclasses.replace(current, **fields))

    @_remote_first("delete category")
    def delete_category(self, category_id: int) -> None:
        self._model.get_category(category_id)
        self._store.delete_category(category_id)
        self._model.remove(category_id)

    def move_category(self, dragged_id: int, target_id: int) -> ReorderResult:
        order = [c.id for c in self._model.categories()]
        new_order = _move(order, dragged_id, target_id, "Category")
        if dragged_id == target_id:
            return ReorderResult(order=tuple(order))
        return self._apply_order(
            CATEGORIES, new_order, self._store.update_category, "category",
        )

    def reorder_categories(self, ordered_ids: Iterable[int]) -> ReorderResult:
        return self._apply_order(
            CATEGORIES, list(ordered_ids), self._store.update_category,
            "category",
        )

    # ------------------------------------------------------------------
    # Sentences
    # ------------------------------------------------------------------

    @_remote_first("add sentence")
    def add_sentence(
        self,
        category_id: int,
        source: str,
        target: str,
        owner: str | None,
    ) -> Sentence:
        self._require_owner(owner)
        category = self._model.get_category(category_id)
        if category.owner != owner:
            raise ValidationError(
                f"Category {category_id!r} belongs to another owner"
            )
        sentence = Sentence(
            id=self._fresh_id(),
            category_id=category_id,
            source=_require_text(source, "Source text"),
            target=_require_text(target, "Target text"),
            rank=self._model.sentence_count(category_id),
            owner=owner,
        )
        self._store.insert_sentence(sentence)
        self._model.upsert(sentence)
        return sentence

    @_remote_first("edit sentence")
    def edit_sentence(
        self,
        sentence_id: int,
        new_source: str,
        new_target: str,
    ) -> Sentence:
        current = self._model.get_sentence(sentence_id)
        fields = {
            "source": _require_text(new_source, "Source text"),
            "target": _require_text(new_target, "Target text"),
        }
        self._store.update_sentence(sentence_id, **fields)
        return self._model.upsert(dataclasses.replace(current, **fields))

    @_remote_first("delete sentence")
    def delete_sentence(self, sentence_id: int) -> None:
        self._model.get_sentence(sentence_id)
        self._store.delete_sentence(sentence_id)
        self._model.remove(sentence_id)

    def move_sentence(
        self,
        category_id: int,
        dragged_id: int,
        target_id: int,
    ) -> ReorderResult:
        self._model.get_category(category_id)
        order = [s.id for s in self._model.sentences(category_id)]
        new_order = _move(order, dragged_id, target_id, "Sentence")
        if dragged_id == target_id:
            return ReorderResult(order=tuple(order))
        return self._apply_order(
            category_id, new_order, self._store.update_sentence, "sentence",
        )

    def reorder_sentences(
        self,
        category_id: int,
        ordered_ids: Iterable[int],
    ) -> ReorderResult:
        return self._apply_order(
            category_id, list(ordered_ids), self._store.update_sentence,
            "sentence",
        )

    def snapshot(self, category_id: int) -> tuple[Sentence, ...]:
        """Immutable copy of one category's sentences in rank order."""
        self._model.get_category(category_id)
        return self._model.sentences(category_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _apply_order(
        self,
        collection_key: Any,
        ordered_ids: list[int],
        update: Callable[..., None],
        entity_type: str,
    ) -> ReorderResult:
        self._model.reorder(collection_key, ordered_ids)

        persisted: list[int] = []
        for rank, entity_id in enumerate(ordered_ids):
            try:
                update(entity_id, rank=rank)
            except StoreError as e:
                logger.warning(
                    "Saving %s order stopped at id=%s after %d of %d rows: %s",
                    entity_type, entity_id, len(persisted), len(ordered_ids), e,
                )
                return ReorderResult(
                    order=tuple(ordered_ids),
                    persisted=tuple(persisted),
                    failed_id=entity_id,
                    error=str(e),
                )
            persisted.append(entity_id)

        logger.debug("Saved %s order (%d rows)", entity_type, len(persisted))
        return ReorderResult(order=tuple(ordered_ids), persisted=tuple(persisted))

    def _require_owner(self, owner: str | None) -> None:
        if not owner or not owner.strip():
            raise ValidationError("An owner is required; log in first")
        if owner != self._owner:
            raise ValidationError(
                f"Owner {owner!r} is not the loaded owner {self._owner!r}"
            )

    def _fresh_id(self) -> int:
        new_id = self._new_id()
        while self._model.has_id(new_id):
            new_id = self._new_id()
        return new_id
