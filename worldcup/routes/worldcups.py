from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from worldcup.database import get_session
from worldcup.models.item import WorldCupItem
from worldcup.models.worldcup import WorldCup
from worldcup.routes.tournaments import ItemResponse, max_items, min_items
from worldcup.services.errors import BracketError
from worldcup.services.pool_stats import pool_items
from worldcup.services.ranking_service import rank_pool
from worldcup.services.round_labels import bracket_size_options
from worldcup.utils.http_errors import http_error

router = APIRouter()


class ItemCreate(BaseModel):
    title: str
    description: Optional[str] = None
    media_url: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError("title is required")
        return v.strip()


class WorldCupCreate(BaseModel):
    title: str
    description: Optional[str] = None
    items: List[ItemCreate]

    @field_validator("items")
    @classmethod
    def validate_items(cls, v):
        if len(v) < 2:
            raise ValueError("a world cup needs at least 2 items")
        return v


class WorldCupResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    participants: int
    created_at: datetime
    items: List[ItemResponse]


class BracketSizeResponse(BaseModel):
    size: int
    title: str
    bye_count: int


class RankingRowResponse(BaseModel):
    rank: int
    item: ItemResponse
    wins: int
    losses: int
    total_matches: int
    win_rate_pct: float
    round_reached: Optional[str] = None
    round_reached_title: Optional[str] = None
    appearances: int
    championships: int


def worldcup_response(session: Session, worldcup: WorldCup) -> WorldCupResponse:
    return WorldCupResponse(
        id=worldcup.id,
        title=worldcup.title,
        description=worldcup.description,
        participants=worldcup.participants,
        created_at=worldcup.created_at,
        items=[ItemResponse.model_validate(item) for item in pool_items(session, worldcup.id)],
    )


def get_worldcup_or_404(session: Session, worldcup_id: int) -> WorldCup:
    worldcup = session.get(WorldCup, worldcup_id)
    if not worldcup:
        raise HTTPException(status_code=404, detail="World cup not found")
    return worldcup


@router.post("/worldcups", response_model=WorldCupResponse, status_code=201)
def create_worldcup(payload: WorldCupCreate, session: Session = Depends(get_session)):
    """Create a world cup with its item pool"""
    if len(payload.items) > max_items():
        raise HTTPException(status_code=400, detail=f"A world cup holds at most {max_items()} items")

    worldcup = WorldCup(title=payload.title, description=payload.description)
    session.add(worldcup)
    session.flush()
    for order_num, item in enumerate(payload.items):
        session.add(
            WorldCupItem(
                worldcup_id=worldcup.id,
                title=item.title,
                description=item.description,
                media_url=item.media_url,
                order_num=order_num,
            )
        )
    session.commit()
    session.refresh(worldcup)
    return worldcup_response(session, worldcup)


@router.get("/worldcups/{worldcup_id}", response_model=WorldCupResponse)
def get_worldcup(worldcup_id: int, session: Session = Depends(get_session)):
    """Get a world cup and its choosable items"""
    return worldcup_response(session, get_worldcup_or_404(session, worldcup_id))


@router.get("/worldcups/{worldcup_id}/bracket-sizes", response_model=List[BracketSizeResponse])
def list_bracket_sizes(worldcup_id: int, session: Session = Depends(get_session)):
    """Bracket sizes a player can pick for this pool, largest first"""
    get_worldcup_or_404(session, worldcup_id)
    item_count = len(pool_items(session, worldcup_id))
    options = bracket_size_options(item_count, min_size=min_items(), max_size=max_items())
    return [BracketSizeResponse(size=o.size, title=o.title, bye_count=o.bye_count) for o in options]


@router.get("/worldcups/{worldcup_id}/ranking", response_model=List[RankingRowResponse])
def get_ranking(
    worldcup_id: int,
    tournament_id: Optional[int] = None,
    session: Session = Depends(get_session),
):
    """
    Item ranking for a world cup.

    With tournament_id, ranks that one game; otherwise aggregates every
    completed tournament of the pool.
    """
    try:
        rows = rank_pool(session, worldcup_id, tournament_id)
    except BracketError as e:
        raise http_error(e)

    items = {item.id: item for item in pool_items(session, worldcup_id)}
    return [
        RankingRowResponse(
            rank=row.rank,
            item=ItemResponse.model_validate(items[row.item_id]),
            wins=row.wins,
            losses=row.losses,
            total_matches=row.total_matches,
            win_rate_pct=row.win_rate_pct,
            round_reached=row.round_reached.name if row.round_reached else None,
            round_reached_title=row.round_reached.title if row.round_reached else None,
            appearances=row.appearances,
            championships=row.championships,
        )
        for row in rows
    ]
