"""
Match Resolver: record the winner of exactly one match.

Writers of one tournament are serialized by locking its row (SELECT ... FOR
UPDATE) before anything is read, so the advancer that runs afterwards in the
same transaction sees every earlier resolution of the round. The write itself
is also conditional (winner_id IS NULL): two submissions for the same match
produce one success and one MatchAlreadyResolvedError.
Does not commit and does not advance; callers run the round advancer in the
same transaction.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session, select

from worldcup.models.match import Match
from worldcup.models.tournament import Tournament
from worldcup.services.errors import (
    InvalidWinnerError,
    MatchAlreadyResolvedError,
    MatchNotFoundError,
    TournamentAlreadyCompletedError,
    TournamentNotFoundError,
)

logger = logging.getLogger(__name__)


def tournament_lock_statement(tournament_id: int):
    return (
        select(Tournament)
        .where(Tournament.id == tournament_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )


def lock_tournament(session: Session, tournament_id: int) -> Optional[Tournament]:
    """Load a tournament row and hold its lock until the caller's transaction ends.

    SQLite has no row locks and serializes writers on its own; the FOR UPDATE
    clause is dropped there.
    """
    return session.exec(tournament_lock_statement(tournament_id)).first()


def resolve_match(
    session: Session,
    tournament_id: int,
    match_id: int,
    winner_id: int,
    now: Optional[datetime] = None,
) -> Match:
    """
    Set winner_id/completed_at on a match.

    Preconditions, checked in order:
        tournament exists          -> TournamentNotFoundError
        tournament not completed   -> TournamentAlreadyCompletedError
        match in this tournament   -> MatchNotFoundError
        match not yet resolved     -> MatchAlreadyResolvedError
        winner is a participant    -> InvalidWinnerError

    Returns:
        The updated Match
    """
    tournament = lock_tournament(session, tournament_id)
    if not tournament:
        raise TournamentNotFoundError(tournament_id)
    if tournament.completed_at is not None:
        raise TournamentAlreadyCompletedError(tournament_id)

    match = session.get(Match, match_id)
    if not match or match.tournament_id != tournament_id:
        raise MatchNotFoundError(match_id, tournament_id)
    if match.winner_id is not None:
        raise MatchAlreadyResolvedError(match_id)
    if winner_id not in (match.item1_id, match.item2_id):
        raise InvalidWinnerError(match_id, winner_id)

    result = session.execute(
        update(Match)
        .where(Match.id == match_id, Match.winner_id.is_(None))
        .values(winner_id=winner_id, completed_at=now or datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # Another request resolved it between our read and write
        logger.warning("Lost resolution race on match %d (tournament %d)", match_id, tournament_id)
        raise MatchAlreadyResolvedError(match_id)

    session.refresh(match)
    logger.debug("Match %d resolved: winner item %d", match_id, winner_id)
    return match
