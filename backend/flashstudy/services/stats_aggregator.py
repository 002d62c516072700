"""
Study statistics and analysis.

Everything here is derived from the review states a store returns plus the
list of most recent reviews; the pure functions take `now` explicitly so they
can be exercised without a database.

Two different notions of "learned" are in use and must stay separate:
user-wide stats count a card once it has two successful repetitions and an
ease factor of at least 2.0, deck progress counts it after any successful
repetition.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta

from flashstudy.models.deck import CardWithState, RecentReview
from flashstudy.models.review import DEFAULT_EASE_FACTOR, DifficultyGrade, ReviewState
from flashstudy.models.stats import (
    Consistency,
    ConsistencyReport,
    DeckProgress,
    DifficultyDistribution,
    Priority,
    StudyAnalysis,
    StudyStats,
    Suggestion,
)
from flashstudy.services.due_selector import is_due
from flashstudy.services.scheduler import round_half_up

logger = logging.getLogger(__name__)

CONSISTENCY_WINDOW = timedelta(days=7)
HIGH_CONSISTENCY_REVIEWS = 5
MEDIUM_CONSISTENCY_REVIEWS = 2
LOW_PROGRESS_PCT = 30
WORKLOAD_DUE_CARDS = 20
HARD_SHARE_PCT = 50

ANALYSIS_RECENT_REVIEWS = 20
STATS_RECENT_REVIEWS = 5


def is_learned(state: ReviewState) -> bool:
    """User-wide threshold: settled into the spacing curve with a healthy ease."""
    return state.repetitions >= 2 and state.ease_factor >= 2.0


def is_learned_in_deck(state: ReviewState) -> bool:
    """Deck-progress threshold: at least one successful repetition."""
    return state.repetitions > 0


def percent(part: int, whole: int) -> int:
    if whole == 0:
        return 0
    return int(round_half_up(part / whole * 100))


def _studied(entries: Sequence[CardWithState]) -> list[ReviewState]:
    return [e.state for e in entries if e.state is not None]


def _avg_ease(states: Sequence[ReviewState]) -> float:
    if not states:
        return DEFAULT_EASE_FACTOR
    return sum(s.ease_factor for s in states) / len(states)


def _last_study_date(states: Sequence[ReviewState]) -> datetime | None:
    reviewed = [s.last_reviewed_at for s in states if s.last_reviewed_at is not None]
    return max(reviewed) if reviewed else None


def compute_study_stats(entries: Sequence[CardWithState], now: datetime) -> StudyStats:
    studied = _studied(entries)
    today = now.date()
    return StudyStats(
        total_cards=len(entries),
        total_cards_studied=len(studied),
        cards_learned=sum(1 for s in studied if is_learned(s)),
        cards_due=sum(1 for e in entries if is_due(e.state, now)),
        avg_ease_factor=_avg_ease(studied),
        last_study_date=_last_study_date(studied),
        cards_studied_today=sum(
            1
            for s in studied
            if s.last_reviewed_at is not None
            and s.last_reviewed_at.astimezone(now.tzinfo).date() == today
        ),
    )


def compute_deck_progress(entries: Sequence[CardWithState], now: datetime) -> DeckProgress:
    studied = _studied(entries)
    learned = sum(1 for s in studied if is_learned_in_deck(s))
    return DeckProgress(
        total_cards=len(entries),
        studied_cards=len(studied),
        learned_cards=learned,
        due_cards=sum(1 for e in entries if is_due(e.state, now)),
        avg_ease_factor=_avg_ease(studied),
        last_study_date=_last_study_date(studied),
        completion_rate=percent(learned, len(entries)),
    )


def analyze_consistency(
    recent: Sequence[RecentReview], now: datetime
) -> ConsistencyReport:
    count = sum(1 for r in recent if now - r.last_reviewed_at <= CONSISTENCY_WINDOW)
    if count >= HIGH_CONSISTENCY_REVIEWS:
        consistency = Consistency.HIGH
    elif count >= MEDIUM_CONSISTENCY_REVIEWS:
        consistency = Consistency.MEDIUM
    else:
        consistency = Consistency.LOW
    return ConsistencyReport(
        reviews_last_7_days=count,
        average_per_day=round_half_up(count / 7 * 10) / 10,
        consistency=consistency,
    )


def analyze_difficulty(recent: Sequence[RecentReview]) -> DifficultyDistribution:
    graded = [r.last_difficulty for r in recent if r.last_difficulty is not None]
    total = len(graded)
    if total == 0:
        return DifficultyDistribution()
    return DifficultyDistribution(
        hard=percent(graded.count(DifficultyGrade.HARD), total),
        medium=percent(graded.count(DifficultyGrade.MEDIUM), total),
        easy=percent(graded.count(DifficultyGrade.EASY), total),
        total=total,
    )


def suggest(
    overall_progress: int,
    consistency: ConsistencyReport,
    distribution: DifficultyDistribution,
    stats: StudyStats,
) -> list[Suggestion]:
    """Every rule is checked on its own; all matching suggestions are returned."""
    suggestions: list[Suggestion] = []
    if overall_progress < LOW_PROGRESS_PCT:
        suggestions.append(
            Suggestion(
                type="progress",
                message="Try studying a little every day to speed up your progress.",
                priority=Priority.HIGH,
            )
        )
    if consistency.consistency is Consistency.LOW:
        suggestions.append(
            Suggestion(
                type="consistency",
                message="Keep a regular study routine for better retention.",
                priority=Priority.HIGH,
            )
        )
    if stats.cards_due > WORKLOAD_DUE_CARDS:
        suggestions.append(
            Suggestion(
                type="workload",
                message=(
                    f"You have {stats.cards_due} cards waiting. "
                    "Consider longer study sessions."
                ),
                priority=Priority.MEDIUM,
            )
        )
    if distribution.hard > HARD_SHARE_PCT:
        suggestions.append(
            Suggestion(
                type="difficulty",
                message="Many cards were marked hard. Consider reviewing the base material.",
                priority=Priority.MEDIUM,
            )
        )
    return suggestions


def compute_analysis(
    stats: StudyStats, recent: Sequence[RecentReview], now: datetime
) -> StudyAnalysis:
    overall = percent(stats.cards_learned, stats.total_cards)
    consistency = analyze_consistency(recent, now)
    distribution = analyze_difficulty(recent)
    return StudyAnalysis(
        overall_progress=overall,
        study_consistency=consistency,
        difficulty_distribution=distribution,
        suggestions=suggest(overall, consistency, distribution, stats),
    )


class StatsAggregator:
    """Store-backed front for the pure stats functions above."""

    def __init__(self, store, clock) -> None:
        self._store = store
        self._clock = clock

    async def study_stats(self, user_id: int) -> StudyStats:
        entries = await self._store.list_cards_for_review(user_id)
        return compute_study_stats(entries, self._clock.now())

    async def deck_progress(self, user_id: int, deck_id: int) -> DeckProgress:
        entries = await self._store.list_cards_for_review(user_id, deck_id)
        return compute_deck_progress(entries, self._clock.now())

    async def recent_reviews(
        self, user_id: int, limit: int = STATS_RECENT_REVIEWS
    ) -> list[RecentReview]:
        return await self._store.list_recent_reviews(user_id, limit)

    async def analysis(self, user_id: int) -> StudyAnalysis:
        stats = await self.study_stats(user_id)
        recent = await self._store.list_recent_reviews(user_id, ANALYSIS_RECENT_REVIEWS)
        analysis = compute_analysis(stats, recent, self._clock.now())
        logger.info(
            "Analysis for user %s: progress=%d%% consistency=%s suggestions=%d",
            user_id,
            analysis.overall_progress,
            analysis.study_consistency.consistency.value,
            len(analysis.suggestions),
        )
        return analysis
