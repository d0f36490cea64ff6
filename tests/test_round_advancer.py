"""Round advancement: monotonic rounds, winner wiring, completion, idempotency."""
import pytest
from sqlalchemy import update
from sqlmodel import Session, select

from worldcup.models.item import WorldCupItem
from worldcup.models.match import Match
from worldcup.models.tournament import Tournament
from worldcup.services.bracket_seeder import identity_permutation
from worldcup.services.errors import TournamentNotFoundError
from worldcup.services.match_resolver import resolve_match
from worldcup.services.pool_stats import ensure_bye_items
from worldcup.services.round_advancer import (
    AdvanceOutcome,
    advance_tournament,
    advance_until_actionable,
    round_matches,
)
from worldcup.services.tournament_engine import start_tournament


class RecordingSink:
    def __init__(self):
        self.calls = []

    def tournament_completed(self, worldcup_id, winner_item_id):
        self.calls.append((worldcup_id, winner_item_id))


@pytest.fixture
def tournament(session: Session, make_pool) -> Tournament:
    view = start_tournament(session, make_pool(4).id, seed_fn=identity_permutation)
    return view.tournament


def _resolve_round(session: Session, tournament: Tournament, round_number: int, pick_second: bool = False):
    winners = []
    for m in round_matches(session, tournament.id, round_number):
        winner = m.item2_id if pick_second else m.item1_id
        resolve_match(session, tournament.id, m.id, winner)
        winners.append(winner)
    return winners


def test_unresolved_round_is_in_progress(session: Session, tournament: Tournament):
    result = advance_tournament(session, tournament.id)

    assert result.outcome == AdvanceOutcome.IN_PROGRESS
    assert result.round == 1
    assert tournament.current_round == 1


def test_partially_resolved_round_is_in_progress(session: Session, tournament: Tournament):
    first = round_matches(session, tournament.id, 1)[0]
    resolve_match(session, tournament.id, first.id, first.item1_id)

    assert advance_tournament(session, tournament.id).outcome == AdvanceOutcome.IN_PROGRESS
    assert round_matches(session, tournament.id, 2) == []


def test_full_round_creates_next_round_in_order(session: Session, tournament: Tournament):
    winners = _resolve_round(session, tournament, 1, pick_second=True)

    result = advance_tournament(session, tournament.id)

    assert result.outcome == AdvanceOutcome.ADVANCED
    assert result.round == 2
    assert result.created_matches == 1
    assert tournament.current_round == 2
    final = round_matches(session, tournament.id, 2)
    assert len(final) == 1
    assert (final[0].match_number, final[0].item1_id, final[0].item2_id) == (1, winners[0], winners[1])
    assert final[0].winner_id is None


def test_advance_is_idempotent(session: Session, tournament: Tournament):
    _resolve_round(session, tournament, 1)
    advance_tournament(session, tournament.id)

    again = advance_tournament(session, tournament.id)

    assert again.outcome == AdvanceOutcome.IN_PROGRESS
    assert again.round == 2
    matches = session.exec(select(Match).where(Match.tournament_id == tournament.id)).all()
    assert len(matches) == 3


def test_final_completes_and_reports_once(session: Session, tournament: Tournament):
    sink = RecordingSink()
    _resolve_round(session, tournament, 1)
    advance_tournament(session, tournament.id, sink)
    [champion] = _resolve_round(session, tournament, 2)

    result = advance_tournament(session, tournament.id, sink)

    assert result.outcome == AdvanceOutcome.COMPLETED
    assert result.winner_item_id == champion
    assert tournament.winner_item_id == champion
    assert tournament.completed_at is not None
    assert tournament.current_round == tournament.total_rounds
    assert sink.calls == [(tournament.worldcup_id, champion)]

    noop = advance_tournament(session, tournament.id, sink)
    assert noop.outcome == AdvanceOutcome.NOOP
    assert len(sink.calls) == 1


def test_lost_round_race_is_a_noop(session: Session, tournament: Tournament):
    _resolve_round(session, tournament, 1)
    # Another writer moves the round on behind this session's back
    session.execute(
        update(Tournament)
        .where(Tournament.id == tournament.id)
        .values(current_round=2)
        .execution_options(synchronize_session=False)
    )

    result = advance_tournament(session, tournament.id)

    assert result.outcome == AdvanceOutcome.NOOP
    assert round_matches(session, tournament.id, 2) == []


def test_unknown_tournament(session: Session):
    with pytest.raises(TournamentNotFoundError):
        advance_tournament(session, 12345)


def test_bye_reaching_next_round_is_auto_resolved(session: Session, make_pool):
    worldcup = make_pool(2)
    real = session.exec(select(WorldCupItem).where(WorldCupItem.worldcup_id == worldcup.id)).all()
    bye1, bye2 = ensure_bye_items(session, worldcup.id, 2)

    tournament = Tournament(worldcup_id=worldcup.id, bracket_size=4, total_rounds=2)
    session.add(tournament)
    session.flush()
    session.add(Match(tournament_id=tournament.id, round=1, match_number=1, item1_id=bye1.id, item2_id=bye2.id,
                      winner_id=bye1.id, auto_resolved=True))
    session.add(Match(tournament_id=tournament.id, round=1, match_number=2, item1_id=real[0].id, item2_id=real[1].id,
                      winner_id=real[0].id))
    session.commit()

    sink = RecordingSink()
    result = advance_until_actionable(session, tournament.id, sink)

    assert result.outcome == AdvanceOutcome.COMPLETED
    final = round_matches(session, tournament.id, 2)[0]
    assert final.auto_resolved is True
    assert final.winner_id == real[0].id
    assert sink.calls == [(worldcup.id, real[0].id)]
