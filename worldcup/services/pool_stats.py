"""
Item-pool helpers: statistics sink, choosable items and bye rows.

The engine reports (worldcup_id, winner_item_id) when a tournament completes;
the sink bumps the pool's play counter and the champion's win counter with
in-SQL increments inside the caller's transaction. The engine never reads
these counters back.
"""
import logging
from typing import List, Protocol

from sqlalchemy import update
from sqlmodel import Session, select

from worldcup.models.item import BYE_TITLE, WorldCupItem
from worldcup.models.worldcup import WorldCup

logger = logging.getLogger(__name__)


class StatsSink(Protocol):
    def tournament_completed(self, worldcup_id: int, winner_item_id: int) -> None:
        ...


class DatabaseStatsSink:
    """Counts completed plays on WorldCup and titles on WorldCupItem."""

    def __init__(self, session: Session):
        self.session = session

    def tournament_completed(self, worldcup_id: int, winner_item_id: int) -> None:
        self.session.execute(
            update(WorldCup)
            .where(WorldCup.id == worldcup_id)
            .values(participants=WorldCup.participants + 1)
            .execution_options(synchronize_session=False)
        )
        self.session.execute(
            update(WorldCupItem)
            .where(WorldCupItem.id == winner_item_id)
            .values(championship_wins=WorldCupItem.championship_wins + 1)
            .execution_options(synchronize_session=False)
        )
        logger.info("Recorded completed play for worldcup %d, champion item %d", worldcup_id, winner_item_id)


def ensure_bye_items(session: Session, worldcup_id: int, count: int) -> List[WorldCupItem]:
    """
    Return *count* distinct bye rows for a pool, creating the missing ones.

    Bye rows are shared across tournaments of the same pool; within one
    bracket each padding slot gets its own row. Flushes but does not commit.
    """
    if count <= 0:
        return []

    byes = list(
        session.exec(
            select(WorldCupItem)
            .where(WorldCupItem.worldcup_id == worldcup_id, WorldCupItem.is_bye == True)  # noqa: E712
            .order_by(WorldCupItem.id)
            .limit(count)
        ).all()
    )
    missing = count - len(byes)
    for _ in range(missing):
        bye = WorldCupItem(
            worldcup_id=worldcup_id,
            title=BYE_TITLE,
            description="Auto advance",
            is_bye=True,
            order_num=-1,
        )
        session.add(bye)
        byes.append(bye)
    if missing:
        session.flush()
        logger.debug("Created %d bye items for worldcup %d", missing, worldcup_id)
    return byes


def pool_items(session: Session, worldcup_id: int) -> List[WorldCupItem]:
    """Choosable (non-bye) items of a pool, in pool order."""
    return list(
        session.exec(
            select(WorldCupItem)
            .where(WorldCupItem.worldcup_id == worldcup_id, WorldCupItem.is_bye == False)  # noqa: E712
            .order_by(WorldCupItem.order_num, WorldCupItem.id)
        ).all()
    )
