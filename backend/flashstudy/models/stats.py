from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from flashstudy.models.deck import DeckSummary, RecentReview


class StudyStats(BaseModel):
    total_cards: int = 0
    total_cards_studied: int = 0
    cards_learned: int = 0          # repetitions >= 2 and ease_factor >= 2.0
    cards_due: int = 0
    avg_ease_factor: float = 2.5
    last_study_date: datetime | None = None
    cards_studied_today: int = 0


class DeckProgress(BaseModel):
    total_cards: int = 0
    studied_cards: int = 0
    learned_cards: int = 0          # repetitions > 0
    due_cards: int = 0
    avg_ease_factor: float = 2.5
    last_study_date: datetime | None = None
    completion_rate: int = 0        # percent


class Consistency(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"


class ConsistencyReport(BaseModel):
    reviews_last_7_days: int
    average_per_day: float
    consistency: Consistency


class DifficultyDistribution(BaseModel):
    hard: int = 0       # percent of graded reviews
    medium: int = 0
    easy: int = 0
    total: int = 0      # number of graded reviews


class Suggestion(BaseModel):
    type: str  # progress | consistency | workload | difficulty
    message: str
    priority: Priority


class StudyAnalysis(BaseModel):
    overall_progress: int
    study_consistency: ConsistencyReport
    difficulty_distribution: DifficultyDistribution
    suggestions: list[Suggestion]


class GeneralStats(BaseModel):
    stats: StudyStats
    recent_reviews: list[RecentReview]
    message: str


class DeckProgressReport(BaseModel):
    deck: DeckSummary
    progress: DeckProgress
    message: str


class AnalysisReport(BaseModel):
    analysis: StudyAnalysis
    message: str
