from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from flashstudy.models.review import DifficultyGrade, ReviewState


class DeckCreate(BaseModel):
    title: str = Field(min_length=2)
    icon: str
    color: str


class Deck(BaseModel):
    id: int
    user_id: int
    title: str
    icon: str
    color: str


class DeckSummary(BaseModel):
    id: int
    title: str
    icon: str
    color: str


class DeckList(BaseModel):
    items: list[Deck]
    total: int


class CardCreate(BaseModel):
    question: str = Field(min_length=1)
    response: str = Field(min_length=1)
    difficulty: int = 1  # initial difficulty hint, not a review grade


class Card(BaseModel):
    id: int
    deck_id: int
    question: str
    response: str
    difficulty: int


class CardList(BaseModel):
    items: list[Card]
    total: int


class CardWithState(BaseModel):
    """A card joined with its deck display fields and its review state.

    `state` is None when the user has never touched the card.
    """

    card_id: int
    deck_id: int
    question: str
    response: str
    initial_difficulty: int
    deck_title: str
    deck_color: str
    deck_icon: str
    state: ReviewState | None = None

    @property
    def effective_state(self) -> ReviewState:
        return self.state if self.state is not None else ReviewState()


class DueCard(BaseModel):
    """Payload shape for a card handed out in a session or due listing."""

    card_id: int
    deck_id: int
    question: str
    response: str
    initial_difficulty: int
    deck_title: str
    deck_color: str
    deck_icon: str
    interval: int
    repetitions: int
    ease_factor: float
    last_difficulty: DifficultyGrade | None
    last_reviewed_at: datetime | None
    due_for_review: bool


class RecentReview(BaseModel):
    card_id: int
    question: str
    response: str
    deck_title: str
    deck_color: str
    last_difficulty: DifficultyGrade | None
    last_reviewed_at: datetime
    interval: int
    repetitions: int
