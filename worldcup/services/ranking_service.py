"""
Ranking Aggregator: order a pool's items by how far they got and how often they won.

Sort keys, in order:
    1. best round reached (champion > final > semifinal > ...)
    2. win rate (wins / decided matches)
    3. total decided matches
Ties keep pool order, so the result is deterministic.

rank_items() is pure and takes any number of match histories: one history is
the current-game view, every completed tournament of a pool is the aggregated
view. load_histories() / rank_pool() read them from the database.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlmodel import Session, select

from worldcup.models.match import Match
from worldcup.models.tournament import Tournament
from worldcup.models.worldcup import WorldCup
from worldcup.services.errors import TournamentNotFoundError, WorldCupNotFoundError
from worldcup.services.pool_stats import pool_items
from worldcup.services.round_labels import CHAMPION, RoundLabel, label_for_match, label_priority, round_label

logger = logging.getLogger(__name__)


@dataclass
class RankingRow:
    item_id: int
    rank: int
    wins: int
    losses: int
    total_matches: int
    win_rate_pct: float
    round_reached: Optional[RoundLabel]
    appearances: int
    championships: int


@dataclass
class _Tally:
    wins: int = 0
    losses: int = 0
    appearances: int = 0
    championships: int = 0
    best: Optional[RoundLabel] = None

    @property
    def total_matches(self) -> int:
        return self.wins + self.losses

    @property
    def win_ratio(self) -> Fraction:
        if not self.total_matches:
            return Fraction(0)
        return Fraction(self.wins, self.total_matches)

    def reach(self, label: RoundLabel) -> None:
        if label_priority(label) > label_priority(self.best):
            self.best = label


def history_total_rounds(history: Sequence[Any]) -> int:
    """Rounds of the bracket a history was played in, from its round-1 match count."""
    first_round = sum(1 for m in history if m.round == 1)
    if first_round == 0:
        return 0
    return first_round.bit_length()


def _tally_history(history: Sequence[Any], real_ids: set, tallies: Dict[int, _Tally]) -> None:
    total_rounds = history_total_rounds(history)
    if total_rounds == 0:
        return

    highest: Dict[int, int] = {}
    champion_id = None
    for m in history:
        for item_id in (m.item1_id, m.item2_id):
            if item_id in real_ids:
                highest[item_id] = max(highest.get(item_id, 0), m.round)

        if m.winner_id is None:
            continue
        if m.round == total_rounds:
            champion_id = m.winner_id
        loser_id = m.item2_id if m.winner_id == m.item1_id else m.item1_id
        if m.winner_id in real_ids:
            tallies[m.winner_id].wins += 1
        # A bye never loses; it is not ranked
        if loser_id in real_ids:
            tallies[loser_id].losses += 1

    for item_id, round_number in highest.items():
        tally = tallies[item_id]
        tally.appearances += 1
        tally.reach(label_for_match(round_number, total_rounds))

    if champion_id in real_ids:
        tallies[champion_id].championships += 1
        tallies[champion_id].reach(round_label(CHAMPION))


def rank_items(pool: Iterable[Any], histories: Iterable[Sequence[Any]]) -> List[RankingRow]:
    """
    Rank every non-bye item of *pool* over *histories*.

    Args:
        pool: items exposing ``id`` and ``is_bye``, in display order
        histories: match lists exposing ``round``, ``item1_id``, ``item2_id``
            and ``winner_id``; one list per tournament

    Returns:
        One RankingRow per item, rank 1..K
    """
    items = [item for item in pool if not item.is_bye]
    real_ids = {item.id for item in items}
    tallies: Dict[int, _Tally] = defaultdict(_Tally)

    for history in histories:
        _tally_history(list(history), real_ids, tallies)

    ordered = sorted(
        items,
        key=lambda item: (
            -label_priority(tallies[item.id].best),
            -tallies[item.id].win_ratio,
            -tallies[item.id].total_matches,
        ),
    )

    rows = []
    for rank, item in enumerate(ordered, start=1):
        tally = tallies[item.id]
        rows.append(
            RankingRow(
                item_id=item.id,
                rank=rank,
                wins=tally.wins,
                losses=tally.losses,
                total_matches=tally.total_matches,
                win_rate_pct=round(float(tally.win_ratio * 100), 2),
                round_reached=tally.best,
                appearances=tally.appearances,
                championships=tally.championships,
            )
        )
    return rows


def load_histories(session: Session, worldcup_id: int, tournament_id: Optional[int] = None) -> List[List[Match]]:
    """
    Match histories for a pool.

    With tournament_id: that tournament only (current-game mode), finished or not.
    Without: every completed tournament of the pool (aggregated mode).
    """
    if tournament_id is not None:
        tournament = session.get(Tournament, tournament_id)
        if not tournament or tournament.worldcup_id != worldcup_id:
            raise TournamentNotFoundError(tournament_id)
        tournament_ids = [tournament_id]
    else:
        tournament_ids = list(
            session.exec(
                select(Tournament.id)
                .where(Tournament.worldcup_id == worldcup_id, Tournament.completed_at.is_not(None))
                .order_by(Tournament.id)
            ).all()
        )
    if not tournament_ids:
        return []

    grouped: Dict[int, List[Match]] = {tid: [] for tid in tournament_ids}
    matches = session.exec(
        select(Match)
        .where(Match.tournament_id.in_(tournament_ids))
        .order_by(Match.tournament_id, Match.round, Match.match_number)
    ).all()
    for m in matches:
        grouped[m.tournament_id].append(m)
    return [grouped[tid] for tid in tournament_ids]


def rank_pool(session: Session, worldcup_id: int, tournament_id: Optional[int] = None) -> List[RankingRow]:
    if not session.get(WorldCup, worldcup_id):
        raise WorldCupNotFoundError(worldcup_id)

    pool = pool_items(session, worldcup_id)
    histories = load_histories(session, worldcup_id, tournament_id)
    logger.debug(
        "Ranking %d items of worldcup %d over %d histories", len(pool), worldcup_id, len(histories)
    )
    return rank_items(pool, histories)
