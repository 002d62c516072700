"""
Study & spaced repetition router.

Endpoints:
  GET    /study/health                     study subsystem status
  GET    /study/stats                      general stats + recent reviews
  GET    /study/cards/due                  cards due now, all decks
  GET    /study/session                    start a session over all decks
  GET    /study/session/{deck_id}          start a session over one deck
  POST   /study/review                     submit a grade, run SM-2
  GET    /study/decks/{deck_id}/progress   per-deck progress
  GET    /study/analysis                   consistency, difficulty mix, suggestions
  DELETE /study/cards/{card_id}            reset a card's review state
"""
from __future__ import annotations

import time

from fastapi import APIRouter, Depends, Query, Request

from flashstudy.config import settings
from flashstudy.deps import get_session_manager, get_user_id
from flashstudy.models.envelope import Envelope
from flashstudy.models.health import StudyHealth
from flashstudy.models.review import ReviewRequest
from flashstudy.models.session import (
    DueCardsReport,
    ResetResult,
    ReviewResult,
    SessionSnapshot,
)
from flashstudy.models.stats import AnalysisReport, DeckProgressReport, GeneralStats
from flashstudy.services.session_manager import SessionManager

router = APIRouter()


@router.get("/health", response_model=Envelope[StudyHealth])
async def study_health(request: Request):
    return Envelope(
        data=StudyHealth(
            service="study-system",
            status="healthy",
            version=request.app.version,
            uptime=round(time.monotonic() - request.app.state.started_at, 3),
            features={
                "sm2_algorithm": "active",
                "session_management": "active",
                "progress_tracking": "active",
                "statistics": "active",
                "deck_progress": "active",
                "study_analysis": "active",
            },
        )
    )


@router.get("/stats", response_model=Envelope[GeneralStats])
async def get_stats(
    user_id: int = Depends(get_user_id),
    manager: SessionManager = Depends(get_session_manager),
):
    return Envelope(data=await manager.general_stats(user_id))


@router.get("/cards/due", response_model=Envelope[DueCardsReport])
async def get_cards_due(
    limit: int = Query(default=settings.default_due_limit),
    user_id: int = Depends(get_user_id),
    manager: SessionManager = Depends(get_session_manager),
):
    return Envelope(data=await manager.cards_due_today(user_id, limit))


@router.get("/session", response_model=Envelope[SessionSnapshot])
async def start_session(
    limit: int = Query(default=settings.default_session_limit),
    user_id: int = Depends(get_user_id),
    manager: SessionManager = Depends(get_session_manager),
):
    return Envelope(data=await manager.start_session(user_id, None, limit))


@router.get("/session/{deck_id}", response_model=Envelope[SessionSnapshot])
async def start_deck_session(
    deck_id: int,
    limit: int = Query(default=settings.default_session_limit),
    user_id: int = Depends(get_user_id),
    manager: SessionManager = Depends(get_session_manager),
):
    return Envelope(data=await manager.start_session(user_id, deck_id, limit))


@router.post("/review", response_model=Envelope[ReviewResult])
async def review_card(
    body: ReviewRequest,
    user_id: int = Depends(get_user_id),
    manager: SessionManager = Depends(get_session_manager),
):
    """Submit a review grade (1=Hard, 2=Medium, 3=Easy) for a card."""
    return Envelope(data=await manager.review_card(user_id, body.card_id, body.grade))


@router.get("/decks/{deck_id}/progress", response_model=Envelope[DeckProgressReport])
async def get_deck_progress(
    deck_id: int,
    user_id: int = Depends(get_user_id),
    manager: SessionManager = Depends(get_session_manager),
):
    return Envelope(data=await manager.deck_progress(user_id, deck_id))


@router.get("/analysis", response_model=Envelope[AnalysisReport])
async def get_study_analysis(
    user_id: int = Depends(get_user_id),
    manager: SessionManager = Depends(get_session_manager),
):
    return Envelope(data=await manager.study_analysis(user_id))


@router.delete("/cards/{card_id}", response_model=Envelope[ResetResult])
async def reset_card_progress(
    card_id: int,
    user_id: int = Depends(get_user_id),
    manager: SessionManager = Depends(get_session_manager),
):
    return Envelope(data=await manager.reset_progress(user_id, card_id))
