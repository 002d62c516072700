"""
Due-card selection.

A card is due when it was never reviewed, or when its last review plus its
interval (in days) is not after `now`. Never-reviewed cards come first by
card id, then reviewed cards stalest first.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from flashstudy.models.deck import CardWithState, DueCard
from flashstudy.models.review import ReviewState

logger = logging.getLogger(__name__)


def next_review_date(state: ReviewState) -> datetime | None:
    if state.last_reviewed_at is None:
        return None
    return state.last_reviewed_at + timedelta(days=state.interval)


def is_due(state: ReviewState | None, now: datetime) -> bool:
    if state is None or state.last_reviewed_at is None:
        return True
    return next_review_date(state) <= now


def _sort_key(entry: CardWithState) -> tuple:
    state = entry.state
    if state is None or state.last_reviewed_at is None:
        return (0, 0.0, entry.card_id)
    return (1, state.last_reviewed_at.timestamp(), entry.card_id)


def select_due(
    entries: Iterable[CardWithState], now: datetime, limit: int
) -> list[CardWithState]:
    due = [e for e in entries if is_due(e.state, now)]
    due.sort(key=_sort_key)
    return due[:limit]


def to_due_card(entry: CardWithState, now: datetime) -> DueCard:
    state = entry.effective_state
    return DueCard(
        card_id=entry.card_id,
        deck_id=entry.deck_id,
        question=entry.question,
        response=entry.response,
        initial_difficulty=entry.initial_difficulty,
        deck_title=entry.deck_title,
        deck_color=entry.deck_color,
        deck_icon=entry.deck_icon,
        interval=state.interval,
        repetitions=state.repetitions,
        ease_factor=state.ease_factor,
        last_difficulty=state.last_difficulty,
        last_reviewed_at=state.last_reviewed_at,
        due_for_review=is_due(entry.state, now),
    )


class DueSelector:
    """Reads a user's cards from the store and picks the ones due now."""

    def __init__(self, store, clock) -> None:
        self._store = store
        self._clock = clock

    async def due_cards(
        self, user_id: int, deck_id: int | None = None, limit: int = 20
    ) -> list[CardWithState]:
        entries = await self._store.list_cards_for_review(user_id, deck_id)
        selected = select_due(entries, self._clock.now(), limit)
        logger.debug(
            "User %s: %d of %d cards due (deck=%s, limit=%d)",
            user_id,
            len(selected),
            len(entries),
            deck_id,
            limit,
        )
        return selected
