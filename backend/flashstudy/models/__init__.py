from flashstudy.models.deck import (
    Card,
    CardCreate,
    CardList,
    CardWithState,
    Deck,
    DeckCreate,
    DeckList,
    DeckSummary,
    DueCard,
    RecentReview,
)
from flashstudy.models.review import (
    DifficultyGrade,
    ReviewOutcome,
    ReviewRequest,
    ReviewState,
)
from flashstudy.models.stats import (
    DeckProgress,
    StudyAnalysis,
    StudyStats,
    Suggestion,
)

__all__ = [
    "Card",
    "CardCreate",
    "CardList",
    "CardWithState",
    "Deck",
    "DeckCreate",
    "DeckList",
    "DeckProgress",
    "DeckSummary",
    "DifficultyGrade",
    "DueCard",
    "RecentReview",
    "ReviewOutcome",
    "ReviewRequest",
    "ReviewState",
    "StudyAnalysis",
    "StudyStats",
    "Suggestion",
]
