"""
SM-2 review scheduler.

Grades are on a three-point scale (1=Hard, 2=Medium, 3=Easy). The ease
factor is updated first and the new interval multiplies the *previous*
interval by the *updated* ease factor; changing that order changes long-run
interval growth.
"""
from __future__ import annotations

import math

from flashstudy.models.review import MIN_EASE_FACTOR, DifficultyGrade, ReviewState
from flashstudy.services.errors import InvalidGrade

_SECOND_INTERVAL = 3


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with .5 going up, independent of Python's banker's rounding."""
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def parse_grade(grade: object) -> DifficultyGrade:
    # bool is an int subclass; True must not pass as Hard
    if isinstance(grade, bool) or not isinstance(grade, int):
        raise InvalidGrade(grade)
    try:
        return DifficultyGrade(grade)
    except ValueError:
        raise InvalidGrade(grade) from None


def next_ease_factor(ease_factor: float, grade: DifficultyGrade) -> float:
    miss = 3 - int(grade)
    updated = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    return max(MIN_EASE_FACTOR, updated)


def next_state(state: ReviewState, grade: object) -> ReviewState:
    """
    Compute the review state that follows `state` after a review graded `grade`.

    Pure: `last_reviewed_at` is carried over unchanged, the caller stamps it.
    """
    grade = parse_grade(grade)
    ease_factor = next_ease_factor(state.ease_factor, grade)

    if grade < DifficultyGrade.MEDIUM:
        # Hard: restart the spacing curve, ease penalty above still sticks
        repetitions = 0
        interval = 1
    else:
        repetitions = state.repetitions + 1
        if repetitions == 1:
            interval = 1
        elif repetitions == 2:
            interval = _SECOND_INTERVAL
        else:
            interval = max(1, int(round_half_up(state.interval * ease_factor)))

    return ReviewState(
        interval=interval,
        repetitions=repetitions,
        ease_factor=round_half_up(ease_factor, 2),
        last_difficulty=grade,
        last_reviewed_at=state.last_reviewed_at,
    )
