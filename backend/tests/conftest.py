"""
Pytest configuration and shared fixtures.

Store fixtures use a throwaway SQLite file per test; the clock is pinned so
due dates and "today" are deterministic.
"""
from datetime import datetime, timedelta, timezone

import pytest

from flashstudy.db.sqlite import SQLiteStore
from flashstudy.models.deck import CardCreate, CardWithState, DeckCreate
from flashstudy.models.review import ReviewState
from flashstudy.services.clock import FixedClock
from flashstudy.services.session_manager import SessionManager

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
USER = 1
OTHER_USER = 2


def days_ago(n: float) -> datetime:
    return NOW - timedelta(days=n)


def make_entry(card_id: int, state: ReviewState | None = None, deck_id: int = 1) -> CardWithState:
    """Build a CardWithState without touching a database."""
    return CardWithState(
        card_id=card_id,
        deck_id=deck_id,
        question=f"Q{card_id}",
        response=f"A{card_id}",
        initial_difficulty=1,
        deck_title="Deck",
        deck_color="#000000",
        deck_icon="book",
        state=state,
    )


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
async def store(tmp_path):
    store = SQLiteStore(tmp_path / "study.db", timeout=5.0)
    await store.open()
    yield store
    await store.close()


@pytest.fixture
def manager(store, clock):
    return SessionManager(store, clock)


@pytest.fixture
async def deck(store):
    return await store.create_deck(
        USER, DeckCreate(title="Biology", icon="leaf", color="#2e7d32")
    )


@pytest.fixture
async def cards(store, deck):
    """Five cards in the user's deck, ids ascending."""
    created = []
    for i in range(5):
        created.append(
            await store.create_card(
                deck.id, CardCreate(question=f"Question {i}", response=f"Answer {i}")
            )
        )
    return created
