"""
Tests for due-card selection: the due predicate, ordering, limits and deck scope.
"""
from datetime import timedelta

import pytest

from flashstudy.models.deck import CardCreate, DeckCreate
from flashstudy.models.review import ReviewState
from flashstudy.services.due_selector import DueSelector, is_due, select_due

from conftest import NOW, OTHER_USER, USER, days_ago, make_entry


class TestDuePredicate:
    def test_missing_state_is_due(self):
        assert is_due(None, NOW)

    def test_never_reviewed_is_due(self):
        assert is_due(ReviewState(interval=30), NOW)

    def test_due_exactly_at_boundary(self):
        state = ReviewState(interval=3, last_reviewed_at=days_ago(3))
        assert is_due(state, NOW)

    def test_not_due_just_before_boundary(self):
        state = ReviewState(interval=3, last_reviewed_at=days_ago(3) + timedelta(seconds=1))
        assert not is_due(state, NOW)

    def test_reviewed_yesterday_with_three_day_interval_is_not_due(self):
        state = ReviewState(interval=3, repetitions=2, last_reviewed_at=days_ago(1))
        assert not is_due(state, NOW)


class TestOrdering:
    def test_never_reviewed_sorts_first(self):
        """A never-reviewed card precedes a reviewed card that is already due."""
        reviewed = make_entry(1, ReviewState(interval=1, repetitions=1, last_reviewed_at=days_ago(1)))
        fresh = make_entry(2)
        result = select_due([reviewed, fresh], NOW, limit=10)
        assert [e.card_id for e in result] == [2, 1]

    def test_never_reviewed_tie_break_by_card_id(self):
        entries = [make_entry(9), make_entry(3, ReviewState()), make_entry(5)]
        result = select_due(entries, NOW, limit=10)
        assert [e.card_id for e in result] == [3, 5, 9]

    def test_reviewed_cards_stalest_first(self):
        entries = [
            make_entry(1, ReviewState(interval=1, last_reviewed_at=days_ago(2))),
            make_entry(2, ReviewState(interval=1, last_reviewed_at=days_ago(10))),
            make_entry(3, ReviewState(interval=1, last_reviewed_at=days_ago(5))),
        ]
        result = select_due(entries, NOW, limit=10)
        assert [e.card_id for e in result] == [2, 3, 1]

    def test_excludes_cards_not_yet_due(self):
        entries = [
            make_entry(1, ReviewState(interval=8, last_reviewed_at=days_ago(1))),
            make_entry(2),
        ]
        assert [e.card_id for e in select_due(entries, NOW, limit=10)] == [2]

    @pytest.mark.parametrize("limit", [1, 2, 5])
    def test_truncates_to_limit(self, limit):
        entries = [make_entry(i) for i in range(1, 8)]
        result = select_due(entries, NOW, limit)
        assert len(result) == limit
        assert [e.card_id for e in result] == list(range(1, limit + 1))


class TestDueSelectorWithStore:
    async def test_only_users_own_cards(self, store, clock, cards):
        other_deck = await store.create_deck(
            OTHER_USER, DeckCreate(title="History", icon="scroll", color="#795548")
        )
        await store.create_card(other_deck.id, CardCreate(question="When?", response="1066"))

        selector = DueSelector(store, clock)
        result = await selector.due_cards(USER, limit=50)
        assert [e.card_id for e in result] == [c.id for c in cards]

    async def test_deck_scope(self, store, clock, deck, cards):
        second = await store.create_deck(
            USER, DeckCreate(title="Chemistry", icon="flask", color="#1565c0")
        )
        extra = await store.create_card(second.id, CardCreate(question="H2O?", response="Water"))

        selector = DueSelector(store, clock)
        scoped = await selector.due_cards(USER, second.id, limit=50)
        assert [e.card_id for e in scoped] == [extra.id]

    async def test_reviewed_card_drops_out_until_due(self, store, clock, cards):
        first = cards[0]
        await store.upsert_review_state(
            USER, first.id, ReviewState(interval=3, repetitions=2, last_reviewed_at=days_ago(1))
        )
        selector = DueSelector(store, clock)

        ids = [e.card_id for e in await selector.due_cards(USER, limit=50)]
        assert first.id not in ids

        clock.advance(days=2)
        ids = [e.card_id for e in await selector.due_cards(USER, limit=50)]
        # due again, and after the never-reviewed ones
        assert ids[-1] == first.id
