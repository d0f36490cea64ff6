import os
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from worldcup.database import get_session
from worldcup.models.match import Match
from worldcup.models.tournament import Tournament
from worldcup.services.errors import BracketError
from worldcup.services.pool_stats import DatabaseStatsSink, pool_items
from worldcup.services.round_labels import label_for_match
from worldcup.services.tournament_engine import (
    TournamentView,
    get_current_match,
    get_state,
    needs_resume,
    resume_tournament,
    start_tournament,
    submit_winner,
)
from worldcup.utils.http_errors import http_error

router = APIRouter()


def min_items() -> int:
    """Smallest pool that may be played"""
    return int(os.getenv("WORLDCUP_MIN_ITEMS", "4"))


def max_items() -> int:
    """Largest pool that may be created or played"""
    return int(os.getenv("WORLDCUP_MAX_ITEMS", "1024"))


class ItemResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    media_url: Optional[str] = None
    order_num: int
    championship_wins: int

    class Config:
        from_attributes = True


class MatchResponse(BaseModel):
    id: int
    round: int
    match_number: int
    item1_id: int
    item2_id: int
    winner_id: Optional[int] = None
    auto_resolved: bool
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CurrentMatchResponse(BaseModel):
    id: int
    round: int
    match_number: int
    round_label: str
    round_title: str
    item1: ItemResponse
    item2: ItemResponse


class ProgressResponse(BaseModel):
    completed_matches: int
    total_matches: int
    percentage: int


class TournamentStateResponse(BaseModel):
    id: int
    worldcup_id: int
    user_id: Optional[str] = None
    bracket_size: int
    total_rounds: int
    current_round: int
    is_completed: bool
    started_at: datetime
    completed_at: Optional[datetime] = None
    current_match: Optional[CurrentMatchResponse] = None
    champion: Optional[ItemResponse] = None
    runner_up: Optional[ItemResponse] = None
    progress: ProgressResponse
    matches: List[MatchResponse]


class TournamentStart(BaseModel):
    user_id: Optional[str] = None
    bracket_size: Optional[int] = None


class WinnerSubmit(BaseModel):
    winner_id: int


def current_match_response(match: Match, total_rounds: int) -> CurrentMatchResponse:
    label = label_for_match(match.round, total_rounds)
    return CurrentMatchResponse(
        id=match.id,
        round=match.round,
        match_number=match.match_number,
        round_label=label.name,
        round_title=label.title,
        item1=ItemResponse.model_validate(match.item1),
        item2=ItemResponse.model_validate(match.item2),
    )


def state_response(view: TournamentView) -> TournamentStateResponse:
    t = view.tournament
    return TournamentStateResponse(
        id=t.id,
        worldcup_id=t.worldcup_id,
        user_id=t.user_id,
        bracket_size=t.bracket_size,
        total_rounds=t.total_rounds,
        current_round=t.current_round,
        is_completed=view.is_completed,
        started_at=t.started_at,
        completed_at=t.completed_at,
        current_match=current_match_response(view.current_match, t.total_rounds) if view.current_match else None,
        champion=ItemResponse.model_validate(view.champion) if view.champion else None,
        runner_up=ItemResponse.model_validate(view.runner_up) if view.runner_up else None,
        progress=ProgressResponse(
            completed_matches=view.progress.completed_matches,
            total_matches=view.progress.total_matches,
            percentage=view.progress.percentage,
        ),
        matches=[MatchResponse.model_validate(m) for m in view.matches],
    )


@router.post("/worldcups/{worldcup_id}/tournaments", response_model=TournamentStateResponse, status_code=201)
def create_tournament(worldcup_id: int, payload: TournamentStart, session: Session = Depends(get_session)):
    """Seed a new tournament over a world cup's items"""
    item_count = len(pool_items(session, worldcup_id))
    if item_count and item_count < min_items():
        raise HTTPException(status_code=400, detail=f"At least {min_items()} items are required to play, found {item_count}")
    if item_count > max_items():
        raise HTTPException(status_code=400, detail=f"At most {max_items()} items can be played, found {item_count}")
    if payload.bracket_size is not None and payload.bracket_size < min_items():
        raise HTTPException(status_code=400, detail=f"Brackets start at {min_items()} items, got {payload.bracket_size}")

    try:
        view = start_tournament(
            session,
            worldcup_id,
            user_id=payload.user_id,
            bracket_size=payload.bracket_size,
            stats_sink=DatabaseStatsSink(session),
        )
    except BracketError as e:
        raise http_error(e)
    return state_response(view)


@router.get("/tournaments/{tournament_id}", response_model=TournamentStateResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Current state of a tournament"""
    try:
        view = get_state(session, tournament_id)
        if needs_resume(view):
            view = resume_tournament(session, tournament_id, stats_sink=DatabaseStatsSink(session))
    except BracketError as e:
        raise http_error(e)
    return state_response(view)


@router.get("/tournaments/{tournament_id}/current-match", response_model=Optional[CurrentMatchResponse])
def get_tournament_current_match(tournament_id: int, session: Session = Depends(get_session)):
    """The match waiting for a choice, or null once the tournament is over"""
    try:
        match = get_current_match(session, tournament_id)
        tournament = session.get(Tournament, tournament_id)
        if match is None and tournament.completed_at is None:
            match = resume_tournament(session, tournament_id, stats_sink=DatabaseStatsSink(session)).current_match
    except BracketError as e:
        raise http_error(e)
    if match is None:
        return None
    return current_match_response(match, tournament.total_rounds)


@router.post("/tournaments/{tournament_id}/matches/{match_id}/winner", response_model=TournamentStateResponse)
def choose_winner(
    tournament_id: int,
    match_id: int,
    payload: WinnerSubmit,
    session: Session = Depends(get_session),
):
    """Record the chosen item and advance the bracket"""
    try:
        view = submit_winner(
            session,
            tournament_id,
            match_id,
            payload.winner_id,
            stats_sink=DatabaseStatsSink(session),
        )
    except BracketError as e:
        raise http_error(e)
    return state_response(view)
