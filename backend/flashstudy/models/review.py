from __future__ import annotations

from datetime import datetime
from enum import IntEnum

from pydantic import AliasChoices, BaseModel, Field, StrictInt


class DifficultyGrade(IntEnum):
    HARD = 1
    MEDIUM = 2
    EASY = 3


DEFAULT_INTERVAL = 1
DEFAULT_REPETITIONS = 0
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3


class ReviewState(BaseModel):
    interval: int = Field(default=DEFAULT_INTERVAL, ge=1)       # days until next review
    repetitions: int = Field(default=DEFAULT_REPETITIONS, ge=0) # consecutive successful reviews
    ease_factor: float = Field(default=DEFAULT_EASE_FACTOR, ge=MIN_EASE_FACTOR)
    last_difficulty: DifficultyGrade | None = None
    last_reviewed_at: datetime | None = None                    # None = never reviewed


class ReviewRequest(BaseModel):
    card_id: StrictInt = Field(validation_alias=AliasChoices("cardId", "card_id"))
    # range is checked by parse_grade so 0 and 4 surface as InvalidGrade
    grade: StrictInt = Field(validation_alias=AliasChoices("grade", "difficulty"))


class ReviewOutcome(BaseModel):
    card_id: int
    grade: DifficultyGrade
    new_interval: int
    new_repetitions: int
    new_ease_factor: float
    next_review_date: datetime
    last_reviewed_at: datetime
