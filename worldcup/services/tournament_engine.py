"""
Tournament State Machine: the single entry point for playing a bracket.

start_tournament -> seeder, persist tournament + round 1, advance past byes
submit_winner    -> resolver, advancer (one transaction, tournament row locked)
resume_tournament-> advancer only, for a resolved round nobody advanced
get_state        -> read-only view of the current match / completion

Mutating operations commit once at the end and roll back on any
BracketError, so a failed call leaves no partial state.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlmodel import Session, select

from worldcup.models.item import WorldCupItem
from worldcup.models.match import Match
from worldcup.models.tournament import Tournament
from worldcup.models.worldcup import WorldCup
from worldcup.services.bracket_seeder import SeedFn, seed_bracket
from worldcup.services.errors import BracketError, TournamentNotFoundError, WorldCupNotFoundError
from worldcup.services.match_resolver import lock_tournament, resolve_match
from worldcup.services.pool_stats import StatsSink, ensure_bye_items, pool_items
from worldcup.services.round_advancer import advance_until_actionable
from worldcup.services.round_labels import RoundLabel, label_for_match

logger = logging.getLogger(__name__)


@dataclass
class TournamentProgress:
    completed_matches: int
    total_matches: int
    percentage: int


@dataclass
class TournamentView:
    tournament: Tournament
    matches: List[Match] = field(default_factory=list)
    current_match: Optional[Match] = None
    current_round_label: Optional[RoundLabel] = None
    champion: Optional[WorldCupItem] = None
    runner_up: Optional[WorldCupItem] = None
    progress: Optional[TournamentProgress] = None

    @property
    def is_completed(self) -> bool:
        return self.tournament.completed_at is not None


def tournament_matches(session: Session, tournament_id: int) -> List[Match]:
    return list(
        session.exec(
            select(Match)
            .where(Match.tournament_id == tournament_id)
            .order_by(Match.round, Match.match_number)
        ).all()
    )


def get_current_match(session: Session, tournament_id: int) -> Optional[Match]:
    """Lowest (round, match_number) among unresolved matches, or None."""
    if not session.get(Tournament, tournament_id):
        raise TournamentNotFoundError(tournament_id)
    return session.exec(
        select(Match)
        .where(Match.tournament_id == tournament_id, Match.winner_id.is_(None))
        .order_by(Match.round, Match.match_number)
        .limit(1)
    ).first()


def _progress(tournament: Tournament, matches: List[Match]) -> TournamentProgress:
    total = tournament.bracket_size - 1
    completed = sum(1 for m in matches if m.winner_id is not None)
    if tournament.completed_at is not None:
        percentage = 100
    else:
        percentage = min(99, round(completed * 100 / total)) if total else 0
    return TournamentProgress(completed_matches=completed, total_matches=total, percentage=percentage)


def build_view(session: Session, tournament: Tournament) -> TournamentView:
    matches = tournament_matches(session, tournament.id)
    current = next((m for m in matches if m.winner_id is None), None)

    view = TournamentView(
        tournament=tournament,
        matches=matches,
        current_match=current,
        progress=_progress(tournament, matches),
    )
    if current is not None:
        view.current_round_label = label_for_match(current.round, tournament.total_rounds)

    if tournament.winner_item_id is not None:
        view.champion = session.get(WorldCupItem, tournament.winner_item_id)
        final = next((m for m in matches if m.round == tournament.total_rounds), None)
        if final is not None and final.loser_id is not None:
            runner_up = session.get(WorldCupItem, final.loser_id)
            if runner_up is not None and not runner_up.is_bye:
                view.runner_up = runner_up
    return view


def start_tournament(
    session: Session,
    worldcup_id: int,
    *,
    user_id: Optional[str] = None,
    seed_fn: Optional[SeedFn] = None,
    bracket_size: Optional[int] = None,
    stats_sink: Optional[StatsSink] = None,
) -> TournamentView:
    """
    Seed a new tournament over a pool's items and persist it with its round-1 matches.

    Byes are resolved up front and the advancer runs until a match needs a
    player choice (or, degenerately, the tournament completes).

    Raises:
        WorldCupNotFoundError: unknown pool
        InvalidInputError: fewer than 2 items, bad bracket_size or seed_fn
    """
    try:
        if not session.get(WorldCup, worldcup_id):
            raise WorldCupNotFoundError(worldcup_id)

        items = pool_items(session, worldcup_id)
        plan = seed_bracket(
            items,
            make_byes=lambda count: ensure_bye_items(session, worldcup_id, count),
            seed_fn=seed_fn,
            bracket_size=bracket_size,
        )

        tournament = Tournament(
            worldcup_id=worldcup_id,
            user_id=user_id,
            bracket_size=plan.bracket_size,
            total_rounds=plan.total_rounds,
            current_round=1,
        )
        session.add(tournament)
        session.flush()

        for planned in plan.matches:
            match = Match(
                tournament_id=tournament.id,
                round=1,
                match_number=planned.match_number,
                item1_id=planned.item1.id,
                item2_id=planned.item2.id,
            )
            if planned.winner is not None:
                match.winner_id = planned.winner.id
                match.auto_resolved = True
                match.completed_at = tournament.started_at
            session.add(match)
        session.flush()

        advance_until_actionable(session, tournament.id, stats_sink)
        session.commit()
    except BracketError:
        session.rollback()
        raise

    session.refresh(tournament)
    logger.info(
        "Started tournament %d on worldcup %d (%d rounds, user=%s)",
        tournament.id,
        worldcup_id,
        tournament.total_rounds,
        user_id or "anonymous",
    )
    return build_view(session, tournament)


def submit_winner(
    session: Session,
    tournament_id: int,
    match_id: int,
    winner_id: int,
    *,
    stats_sink: Optional[StatsSink] = None,
) -> TournamentView:
    """
    Record a player's choice and move the bracket forward.

    Raises:
        TournamentNotFoundError, TournamentAlreadyCompletedError,
        MatchNotFoundError, MatchAlreadyResolvedError, InvalidWinnerError
    """
    try:
        resolve_match(session, tournament_id, match_id, winner_id)
        advance_until_actionable(session, tournament_id, stats_sink)
        session.commit()
    except BracketError:
        session.rollback()
        raise

    tournament = session.get(Tournament, tournament_id)
    session.refresh(tournament)
    return build_view(session, tournament)


def needs_resume(view: TournamentView) -> bool:
    """Open tournament with no open match: a fully resolved round was never advanced."""
    return not view.is_completed and view.current_match is None


def resume_tournament(
    session: Session, tournament_id: int, *, stats_sink: Optional[StatsSink] = None
) -> TournamentView:
    """
    Run the advancer for a tournament whose resolved round was left behind
    (e.g. a writer that committed its resolution but died before advancing).

    Takes the tournament lock like submit_winner; a no-op when nothing is pending.
    """
    try:
        if not lock_tournament(session, tournament_id):
            raise TournamentNotFoundError(tournament_id)
        result = advance_until_actionable(session, tournament_id, stats_sink)
        session.commit()
    except BracketError:
        session.rollback()
        raise

    logger.info("Resumed tournament %d: %s at round %d", tournament_id, result.outcome.value, result.round)
    tournament = session.get(Tournament, tournament_id)
    session.refresh(tournament)
    return build_view(session, tournament)


def get_state(session: Session, tournament_id: int) -> TournamentView:
    """Read-only view of a tournament; never mutates."""
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise TournamentNotFoundError(tournament_id)
    return build_view(session, tournament)
