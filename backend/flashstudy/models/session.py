from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from flashstudy.models.deck import DueCard
from flashstudy.models.review import ReviewOutcome
from flashstudy.models.stats import StudyStats


class SessionSnapshot(BaseModel):
    """Derived once per request; the server never stores sessions."""

    session_id: str
    started_at: datetime
    deck_id: int | None
    max_cards: int
    cards: list[DueCard]
    total_cards: int
    stats: StudyStats
    message: str


class DueCardsReport(BaseModel):
    cards: list[DueCard]
    total_due: int
    stats: StudyStats
    message: str


class ReviewResult(BaseModel):
    review: ReviewOutcome
    stats: StudyStats
    message: str


class ResetResult(BaseModel):
    card_id: int
    stats: StudyStats
    message: str
