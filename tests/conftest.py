"""Shared test fixtures for sentence-quiz."""

import itertools
from collections import Counter

import pytest

from sentence_quiz import SQLiteStore, StoreError, SyncEngine

OWNER = "charles"
OTHER_OWNER = "guest"
COLOR = "hsl(200, 70%, 60%)"


class FlakyStore(SQLiteStore):
    """In-memory SQLite store whose calls can be made to fail.

    ``fail_on[name] = n`` makes the n-th call of method ``name`` (counted
    since the last ``calls.clear()``) and every later one raise
    :class:`StoreError`.
    """

    def __init__(self):
        super().__init__(":memory:")
        self.fail_on = {}
        self.calls = Counter()

    def _check(self, name):
        self.calls[name] += 1
        limit = self.fail_on.get(name)
        if limit is not None and self.calls[name] >= limit:
            raise StoreError(f"{name} failed (call {self.calls[name]})")

    def list_categories(self, owner):
        self._check("list_categories")
        return super().list_categories(owner)

    def list_sentences(self, owner):
        self._check("list_sentences")
        return super().list_sentences(owner)

    def insert_category(self, category):
        self._check("insert_category")
        return super().insert_category(category)

    def insert_sentence(self, sentence):
        self._check("insert_sentence")
        return super().insert_sentence(sentence)

    def update_category(self, category_id, **fields):
        self._check("update_category")
        return super().update_category(category_id, **fields)

    def update_sentence(self, sentence_id, **fields):
        self._check("update_sentence")
        return super().update_sentence(sentence_id, **fields)

    def delete_category(self, category_id):
        self._check("delete_category")
        return super().delete_category(category_id)

    def delete_sentence(self, sentence_id):
        self._check("delete_sentence")
        return super().delete_sentence(sentence_id)

    def ranks(self, table):
        """Stored id -> rank mapping for one table, bypassing the checks."""
        rows = self._conn.execute(f"SELECT id, sort_order FROM {table}").fetchall()
        return {r["id"]: r["sort_order"] for r in rows}


@pytest.fixture
def store():
    with FlakyStore() as st:
        yield st


@pytest.fixture
def engine(store):
    """Engine over an empty store, loaded for OWNER."""
    eng = SyncEngine(
        store,
        id_factory=itertools.count(1).__next__,
        color_factory=lambda: COLOR,
    )
    eng.load_for_owner(OWNER)
    return eng


@pytest.fixture
def engine_with_data(engine):
    """Engine with categories Travel (3 sentences) and Food (1 sentence)."""
    travel = engine.add_category("Travel", OWNER)
    food = engine.add_category("Food", OWNER)
    s1 = engine.add_sentence(travel.id, "안녕", "Hello", OWNER)
    s2 = engine.add_sentence(travel.id, "감사", "Thanks", OWNER)
    s3 = engine.add_sentence(travel.id, "어디", "Where", OWNER)
    s4 = engine.add_sentence(food.id, "맛있다", "Delicious", OWNER)
    return engine, travel, food, s1, s2, s3, s4
