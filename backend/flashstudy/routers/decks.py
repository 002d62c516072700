from fastapi import APIRouter, Depends, HTTPException

from flashstudy.db.sqlite import SQLiteStore
from flashstudy.deps import get_store, get_user_id
from flashstudy.models.deck import Card, CardCreate, CardList, Deck, DeckCreate, DeckList
from flashstudy.models.envelope import Envelope

router = APIRouter()
cards_router = APIRouter()


async def _owned_deck(store: SQLiteStore, user_id: int, deck_id: int) -> Deck:
    deck = await store.get_deck(user_id, deck_id)
    if not deck:
        raise HTTPException(status_code=404, detail="Deck not found")
    return deck


@router.get("/", response_model=Envelope[DeckList])
async def list_decks(
    user_id: int = Depends(get_user_id), store: SQLiteStore = Depends(get_store)
):
    items = await store.list_decks(user_id)
    return Envelope(data=DeckList(items=items, total=len(items)))


@router.post("/", response_model=Envelope[Deck], status_code=201)
async def create_deck(
    body: DeckCreate,
    user_id: int = Depends(get_user_id),
    store: SQLiteStore = Depends(get_store),
):
    return Envelope(data=await store.create_deck(user_id, body))


@router.get("/{deck_id}/cards", response_model=Envelope[CardList])
async def list_deck_cards(
    deck_id: int,
    user_id: int = Depends(get_user_id),
    store: SQLiteStore = Depends(get_store),
):
    await _owned_deck(store, user_id, deck_id)
    items = await store.list_cards_for_deck(deck_id)
    return Envelope(data=CardList(items=items, total=len(items)))


@router.post("/{deck_id}/cards", response_model=Envelope[Card], status_code=201)
async def create_card(
    deck_id: int,
    body: CardCreate,
    user_id: int = Depends(get_user_id),
    store: SQLiteStore = Depends(get_store),
):
    await _owned_deck(store, user_id, deck_id)
    return Envelope(data=await store.create_card(deck_id, body))


@cards_router.delete("/{card_id}", response_model=Envelope[dict])
async def delete_card(
    card_id: int,
    user_id: int = Depends(get_user_id),
    store: SQLiteStore = Depends(get_store),
):
    if not await store.card_belongs_to_user(card_id, user_id):
        raise HTTPException(status_code=404, detail="Card not found")
    await store.delete_card(card_id)
    return Envelope(data={"card_id": card_id, "deleted": True})
