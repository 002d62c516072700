"""
Tests for the SM-2 review scheduler.

Covers:
- three Easy reviews from a fresh card
- Hard review penalty and spacing reset
- ease factor floor
- ordering of ease update vs. interval growth
- grade validation
"""
import pytest

from flashstudy.models.review import DifficultyGrade, ReviewState
from flashstudy.services.errors import InvalidGrade
from flashstudy.services.scheduler import next_state, round_half_up

from conftest import NOW


def _triple(state: ReviewState) -> tuple[int, int, float]:
    return state.interval, state.repetitions, state.ease_factor


class TestEasyProgression:
    def test_three_easy_reviews(self):
        """Fresh card graded Easy three times: 1 → 3 → round(3 × 2.8) = 8 days."""
        state = ReviewState()
        steps = []
        for _ in range(3):
            state = next_state(state, 3)
            steps.append(_triple(state))

        assert steps == [(1, 1, 2.6), (3, 2, 2.7), (8, 3, 2.8)]

    def test_medium_keeps_ease_factor(self):
        state = next_state(ReviewState(), DifficultyGrade.MEDIUM)
        assert _triple(state) == (1, 1, 2.5)

    def test_growth_uses_previous_interval_and_new_ease(self):
        """interval 10, ease 2.0, Easy → ease 2.1, interval round(10 × 2.1) = 21."""
        state = ReviewState(interval=10, repetitions=4, ease_factor=2.0)
        updated = next_state(state, 3)
        assert updated.ease_factor == 2.1
        assert updated.interval == 21
        assert updated.repetitions == 5

    def test_interval_rounds_half_up(self):
        """5 × 2.5 = 12.5 must become 13, not banker's 12."""
        state = ReviewState(interval=5, repetitions=2, ease_factor=2.5)
        assert next_state(state, 2).interval == 13


class TestHardGrade:
    def test_hard_from_fresh_card(self):
        state = next_state(ReviewState(), 1)
        assert _triple(state) == (1, 0, 2.36)

    @pytest.mark.parametrize(
        "state",
        [
            ReviewState(),
            ReviewState(interval=30, repetitions=7, ease_factor=2.9),
            ReviewState(interval=3, repetitions=2, ease_factor=1.3),
        ],
    )
    def test_hard_always_resets_spacing(self, state):
        updated = next_state(state, DifficultyGrade.HARD)
        assert updated.repetitions == 0
        assert updated.interval == 1

    def test_ease_factor_never_below_floor(self):
        state = ReviewState()
        for _ in range(15):
            state = next_state(state, 1)
            assert state.ease_factor >= 1.3
        assert state.ease_factor == 1.3

    def test_mixed_sequence_respects_floor(self):
        state = ReviewState(ease_factor=1.3)
        for grade in [1, 2, 1, 1, 3, 1, 2, 2, 1]:
            state = next_state(state, grade)
            assert state.ease_factor >= 1.3
            assert state.interval >= 1


class TestPurity:
    def test_records_grade_and_keeps_timestamp(self):
        state = ReviewState(last_reviewed_at=NOW)
        updated = next_state(state, 2)
        assert updated.last_difficulty is DifficultyGrade.MEDIUM
        assert updated.last_reviewed_at == NOW

    def test_input_is_not_mutated(self):
        state = ReviewState(interval=3, repetitions=2, ease_factor=2.5)
        next_state(state, 3)
        assert _triple(state) == (3, 2, 2.5)


class TestGradeValidation:
    @pytest.mark.parametrize("grade", [0, 4, -1, True, "2", 2.0, None])
    def test_rejects_invalid_grades(self, grade):
        with pytest.raises(InvalidGrade):
            next_state(ReviewState(), grade)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(8.4) == 8
    assert round_half_up(12.5) == 13
    assert round_half_up(2.36, 2) == 2.36
