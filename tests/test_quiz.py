"""Tests for the quiz session state machine."""

import random

import pytest

from sentence_quiz import (
    NoContentError,
    Progress,
    QuizMode,
    QuizSession,
    QuizState,
    QuizStateError,
)

from conftest import OWNER


@pytest.fixture
def quiz(engine_with_data):
    engine = engine_with_data[0]
    return QuizSession(engine.snapshot, rng=random.Random(1234)), engine_with_data


class TestStart:

    def test_sequential_keeps_rank_order(self, quiz):
        session, (engine, travel, food, s1, s2, s3, s4) = quiz
        session.start(travel.id, QuizMode.SEQUENTIAL)
        assert session.state is QuizState.AWAITING_REVEAL
        assert session.index == 0
        assert [s.id for s in session.items] == [s1.id, s2.id, s3.id]
        assert session.prompt == "안녕"
        assert session.answer is None

    def test_mode_accepts_string(self, quiz):
        session, (engine, travel, *_) = quiz
        session.start(travel.id, "random")
        assert session.mode is QuizMode.RANDOM

    def test_empty_category(self, quiz):
        session, (engine, *_) = quiz
        empty = engine.add_category("Empty", OWNER)
        with pytest.raises(NoContentError):
            session.start(empty.id, QuizMode.SEQUENTIAL)
        assert session.state is QuizState.NOT_STARTED

    def test_random_is_a_shuffle(self, quiz):
        session, (engine, travel, *_) = quiz
        expected = sorted(s.id for s in engine.snapshot(travel.id))
        orders = set()
        for _ in range(1000):
            session.start(travel.id, QuizMode.RANDOM)
            ids = [s.id for s in session.items]
            assert sorted(ids) == expected
            orders.add(tuple(ids))
        assert len(orders) > 1


class TestTransitions:

    def test_full_walk(self, quiz):
        session, (engine, travel, food, s1, s2, s3, s4) = quiz
        session.start(travel.id, QuizMode.SEQUENTIAL)

        seen = []
        while session.state is not QuizState.COMPLETED:
            assert session.state is QuizState.AWAITING_REVEAL
            revealed = session.reveal()
            assert session.state is QuizState.REVEALED
            assert session.answer == revealed.target
            seen.append(revealed.id)
            session.advance()

        assert seen == [s1.id, s2.id, s3.id]
        assert session.index is None
        assert session.progress.position == 3

    def test_progress(self, quiz):
        session, (engine, travel, *_) = quiz
        assert session.progress.total == 0
        session.start(travel.id)
        assert (session.progress.position, session.progress.total) == (1, 3)
        session.reveal()
        session.advance()
        assert session.progress.position == 2

    def test_advance_before_reveal(self, quiz):
        session, (engine, travel, *_) = quiz
        session.start(travel.id)
        with pytest.raises(QuizStateError):
            session.advance()
        assert session.state is QuizState.AWAITING_REVEAL

    def test_reveal_twice(self, quiz):
        session, (engine, travel, *_) = quiz
        session.start(travel.id)
        session.reveal()
        with pytest.raises(QuizStateError):
            session.reveal()

    def test_reveal_before_start(self, quiz):
        session, _ = quiz
        with pytest.raises(QuizStateError):
            session.reveal()

    def test_no_transitions_after_completion(self, quiz):
        session, (engine, travel, food, *_) = quiz
        session.start(food.id)
        session.reveal()
        assert session.advance() is None
        assert session.state is QuizState.COMPLETED
        with pytest.raises(QuizStateError):
            session.reveal()

    @pytest.mark.parametrize("steps", [0, 1, 2])
    def test_exit_from_any_state(self, quiz, steps):
        session, (engine, travel, *_) = quiz
        session.start(travel.id)
        for step in range(steps):
            session.reveal() if step % 2 == 0 else session.advance()
        session.exit()
        assert session.state is QuizState.NOT_STARTED
        assert session.items == ()
        assert session.current is None

    def test_exit_after_completion(self, quiz):
        session, (engine, travel, food, *_) = quiz
        session.start(food.id)
        session.reveal()
        session.advance()
        assert session.state is QuizState.COMPLETED

        session.exit()
        assert session.state is QuizState.NOT_STARTED
        assert session.items == ()
        assert session.progress == Progress(0, 0)

    def test_exit_when_not_started(self, quiz):
        session, _ = quiz
        session.exit()
        assert session.state is QuizState.NOT_STARTED


class TestSnapshotIsolation:

    def test_edits_do_not_affect_running_session(self, quiz):
        session, (engine, travel, food, s1, s2, s3, s4) = quiz
        session.start(travel.id)
        engine.delete_sentence(s2.id)
        engine.edit_sentence(s1.id, "바뀜", "Changed")
        engine.add_sentence(travel.id, "새", "New", OWNER)

        assert [s.id for s in session.items] == [s1.id, s2.id, s3.id]
        assert session.prompt == "안녕"
