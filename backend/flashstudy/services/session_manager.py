"""
Study session orchestration.

Sessions are plain values computed per call: nothing about a session is kept
server-side, the session id only lets clients correlate their own requests.
Argument validation happens before the store is touched; ownership checks go
through the store and surface as NotFound whether the card or deck is
missing or belongs to someone else.
"""
from __future__ import annotations

import logging

from flashstudy.models.deck import DeckSummary
from flashstudy.models.review import DifficultyGrade, ReviewOutcome, ReviewState
from flashstudy.models.session import (
    DueCardsReport,
    ResetResult,
    ReviewResult,
    SessionSnapshot,
)
from flashstudy.models.stats import AnalysisReport, DeckProgressReport, GeneralStats
from flashstudy.services.due_selector import DueSelector, next_review_date, to_due_card
from flashstudy.services.errors import InvalidLimit, NotFound
from flashstudy.services.scheduler import next_state, parse_grade
from flashstudy.services.stats_aggregator import STATS_RECENT_REVIEWS, StatsAggregator

logger = logging.getLogger(__name__)

SESSION_LIMIT_RANGE = (1, 100)
DUE_LIMIT_RANGE = (1, 200)

_FEEDBACK = {
    DifficultyGrade.HARD: "Don't give up! Practice makes perfect.",
    DifficultyGrade.MEDIUM: "Good job! You're making steady progress.",
    DifficultyGrade.EASY: "Excellent! You have mastered this content.",
}


def _check_limit(limit: object, bounds: tuple[int, int]) -> int:
    """
    Validate a card limit against inclusive bounds.

    The routers pass query limits through unchecked, so an out-of-range value
    from HTTP and from a direct caller both end up as InvalidLimit.
    """
    low, high = bounds
    if isinstance(limit, bool) or not isinstance(limit, int) or not low <= limit <= high:
        raise InvalidLimit(limit, low, high)
    return limit


def feedback_message(grade: DifficultyGrade, interval: int) -> str:
    if grade is DifficultyGrade.HARD and interval == 1:
        when = "You will see this card again tomorrow."
    else:
        when = f"Next review in {interval} {'day' if interval == 1 else 'days'}."
    return f"{_FEEDBACK[grade]} {when}"


class SessionManager:
    def __init__(self, store, clock) -> None:
        self.store = store
        self.clock = clock
        self.selector = DueSelector(store, clock)
        self.stats = StatsAggregator(store, clock)

    async def _require_card(self, user_id: int, card_id: int) -> None:
        if not await self.store.card_belongs_to_user(card_id, user_id):
            raise NotFound(f"Card {card_id} not found")

    async def _require_deck(self, user_id: int, deck_id: int):
        deck = await self.store.get_deck(user_id, deck_id)
        if deck is None:
            raise NotFound(f"Deck {deck_id} not found")
        return deck

    async def start_session(
        self, user_id: int, deck_id: int | None = None, limit: int = 20
    ) -> SessionSnapshot:
        limit = _check_limit(limit, SESSION_LIMIT_RANGE)
        if deck_id is not None and not await self.store.deck_belongs_to_user(deck_id, user_id):
            raise NotFound(f"Deck {deck_id} not found")

        now = self.clock.now()
        selected = await self.selector.due_cards(user_id, deck_id, limit)
        stats = await self.stats.study_stats(user_id)
        cards = [to_due_card(e, now) for e in selected]

        logger.info(
            "Session started for user %s (deck=%s, limit=%d): %d cards",
            user_id,
            deck_id if deck_id is not None else "all",
            limit,
            len(cards),
        )
        return SessionSnapshot(
            session_id=f"session_{int(now.timestamp() * 1000)}_{user_id}",
            started_at=now,
            deck_id=deck_id,
            max_cards=limit,
            cards=cards,
            total_cards=len(cards),
            stats=stats,
            message=(
                f"Session started with {len(cards)} cards"
                if cards
                else "No cards available for review right now"
            ),
        )

    async def review_card(self, user_id: int, card_id: int, grade: object) -> ReviewResult:
        grade = parse_grade(grade)
        await self._require_card(user_id, card_id)

        now = self.clock.now()

        def _apply(current: ReviewState) -> ReviewState:
            return next_state(current, grade).model_copy(update={"last_reviewed_at": now})

        updated = await self.store.apply_review(user_id, card_id, _apply)
        stats = await self.stats.study_stats(user_id)

        logger.info(
            "User %s reviewed card %s: grade=%d interval=%d reps=%d ease=%.2f",
            user_id,
            card_id,
            grade,
            updated.interval,
            updated.repetitions,
            updated.ease_factor,
        )
        return ReviewResult(
            review=ReviewOutcome(
                card_id=card_id,
                grade=grade,
                new_interval=updated.interval,
                new_repetitions=updated.repetitions,
                new_ease_factor=updated.ease_factor,
                next_review_date=next_review_date(updated),
                last_reviewed_at=updated.last_reviewed_at,
            ),
            stats=stats,
            message=feedback_message(grade, updated.interval),
        )

    async def reset_progress(self, user_id: int, card_id: int) -> ResetResult:
        await self._require_card(user_id, card_id)
        await self.store.upsert_review_state(user_id, card_id, ReviewState())
        stats = await self.stats.study_stats(user_id)
        logger.info("User %s reset progress on card %s", user_id, card_id)
        return ResetResult(
            card_id=card_id,
            stats=stats,
            message="Card progress reset",
        )

    async def cards_due_today(self, user_id: int, limit: int = 50) -> DueCardsReport:
        limit = _check_limit(limit, DUE_LIMIT_RANGE)
        now = self.clock.now()
        selected = await self.selector.due_cards(user_id, None, limit)
        stats = await self.stats.study_stats(user_id)
        cards = [to_due_card(e, now) for e in selected]
        return DueCardsReport(
            cards=cards,
            total_due=len(cards),
            stats=stats,
            message=f"{len(cards)} cards available for review today",
        )

    async def deck_progress(self, user_id: int, deck_id: int) -> DeckProgressReport:
        deck = await self._require_deck(user_id, deck_id)
        progress = await self.stats.deck_progress(user_id, deck_id)
        return DeckProgressReport(
            deck=DeckSummary(id=deck.id, title=deck.title, icon=deck.icon, color=deck.color),
            progress=progress,
            message=f'Progress for deck "{deck.title}" loaded',
        )

    async def general_stats(self, user_id: int) -> GeneralStats:
        stats = await self.stats.study_stats(user_id)
        recent = await self.stats.recent_reviews(user_id, STATS_RECENT_REVIEWS)
        return GeneralStats(stats=stats, recent_reviews=recent, message="Statistics loaded")

    async def study_analysis(self, user_id: int) -> AnalysisReport:
        analysis = await self.stats.analysis(user_id)
        return AnalysisReport(analysis=analysis, message="Study analysis generated")
