"""
Round Advancer: when every match of the current round has a winner, either
complete the tournament (final round) or create the next round's matches.

IN_PROGRESS(r) -> IN_PROGRESS(r+1) -> ... -> COMPLETED. No round is skipped
and no transition reverses. Round r+1 match k is fed by round r matches 2k-1
and 2k, in match_number order.

Guarantees:
    - Idempotent (calling it when nothing changed is a no-op)
    - current_round and completion are written with conditional updates, so a
      concurrent advance of the same round does nothing
    - Does not commit; runs inside the caller's transaction
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from worldcup.models.item import WorldCupItem
from worldcup.models.match import Match
from worldcup.models.tournament import Tournament
from worldcup.services.bracket_seeder import resolve_bye
from worldcup.services.errors import TournamentNotFoundError
from worldcup.services.pool_stats import StatsSink

logger = logging.getLogger(__name__)


class AdvanceOutcome(str, enum.Enum):
    IN_PROGRESS = "IN_PROGRESS"  # current round still has unresolved matches
    ADVANCED = "ADVANCED"  # next round created, current_round incremented
    COMPLETED = "COMPLETED"  # final resolved, champion recorded
    NOOP = "NOOP"  # already completed, or another writer advanced first


@dataclass
class AdvanceResult:
    outcome: AdvanceOutcome
    round: int
    created_matches: int = 0
    winner_item_id: Optional[int] = None


def round_matches(session: Session, tournament_id: int, round_number: int) -> List[Match]:
    return list(
        session.exec(
            select(Match)
            .where(Match.tournament_id == tournament_id, Match.round == round_number)
            .order_by(Match.match_number)
            .execution_options(populate_existing=True)
        ).all()
    )


def advance_tournament(
    session: Session, tournament_id: int, stats_sink: Optional[StatsSink] = None
) -> AdvanceResult:
    """
    Check the current round and move the tournament forward by at most one step.

    Returns:
        AdvanceResult describing what happened
    """
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFoundError(tournament_id)

    current = tournament.current_round
    if tournament.completed_at is not None:
        return AdvanceResult(outcome=AdvanceOutcome.NOOP, round=current, winner_item_id=tournament.winner_item_id)

    matches = round_matches(session, tournament_id, current)
    if not matches or any(m.winner_id is None for m in matches):
        return AdvanceResult(outcome=AdvanceOutcome.IN_PROGRESS, round=current)

    if current == tournament.total_rounds:
        return _complete(session, tournament, matches[0], stats_sink)

    return _create_next_round(session, tournament, matches)


def _complete(
    session: Session, tournament: Tournament, final: Match, stats_sink: Optional[StatsSink]
) -> AdvanceResult:
    winner_id = final.winner_id
    result = session.execute(
        update(Tournament)
        .where(Tournament.id == tournament.id, Tournament.completed_at.is_(None))
        .values(winner_item_id=winner_id, completed_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    session.refresh(tournament)
    if result.rowcount != 1:
        logger.warning("Tournament %d was completed by another writer", tournament.id)
        return AdvanceResult(outcome=AdvanceOutcome.NOOP, round=tournament.current_round, winner_item_id=winner_id)

    logger.info("Tournament %d completed: champion item %d", tournament.id, winner_id)
    if stats_sink is not None:
        stats_sink.tournament_completed(tournament.worldcup_id, winner_id)

    return AdvanceResult(outcome=AdvanceOutcome.COMPLETED, round=tournament.current_round, winner_item_id=winner_id)


def _create_next_round(session: Session, tournament: Tournament, matches: List[Match]) -> AdvanceResult:
    current = tournament.current_round
    next_round = current + 1

    result = session.execute(
        update(Tournament)
        .where(Tournament.id == tournament.id, Tournament.current_round == current)
        .values(current_round=next_round)
        .execution_options(synchronize_session=False)
    )
    session.refresh(tournament)
    if result.rowcount != 1:
        logger.warning("Round %d of tournament %d was advanced by another writer", current, tournament.id)
        return AdvanceResult(outcome=AdvanceOutcome.NOOP, round=tournament.current_round)

    winners = [m.winner_id for m in matches]
    now = datetime.utcnow()
    created = 0
    for k in range(len(winners) // 2):
        match = Match(
            tournament_id=tournament.id,
            round=next_round,
            match_number=k + 1,
            item1_id=winners[2 * k],
            item2_id=winners[2 * k + 1],
        )
        item1 = session.get(WorldCupItem, match.item1_id)
        item2 = session.get(WorldCupItem, match.item2_id)
        bye_winner = resolve_bye(item1, item2)
        if bye_winner is not None:
            # Only reachable if a bye survived round 1
            logger.warning(
                "Bye reached round %d of tournament %d; auto-resolving match %d",
                next_round,
                tournament.id,
                k + 1,
            )
            match.winner_id = bye_winner.id
            match.auto_resolved = True
            match.completed_at = now
        session.add(match)
        created += 1

    session.flush()
    logger.info("Tournament %d advanced to round %d/%d (%d matches)", tournament.id, next_round, tournament.total_rounds, created)
    return AdvanceResult(outcome=AdvanceOutcome.ADVANCED, round=next_round, created_matches=created)


def advance_until_actionable(
    session: Session, tournament_id: int, stats_sink: Optional[StatsSink] = None
) -> AdvanceResult:
    """
    Run the advancer until the tournament waits on a player choice or completes.

    Several steps are only needed when whole rounds are decided without a
    player (bye-only rounds).
    """
    result = advance_tournament(session, tournament_id, stats_sink)
    while result.outcome == AdvanceOutcome.ADVANCED:
        result = advance_tournament(session, tournament_id, stats_sink)
    return result
