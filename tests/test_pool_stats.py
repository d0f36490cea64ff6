from sqlmodel import Session, select

from worldcup.models.item import BYE_TITLE, WorldCupItem
from worldcup.models.worldcup import WorldCup
from worldcup.services.pool_stats import DatabaseStatsSink, ensure_bye_items, pool_items


def test_ensure_bye_items_creates_then_reuses(session: Session, make_pool):
    worldcup = make_pool(5)

    first = ensure_bye_items(session, worldcup.id, 3)
    session.commit()
    again = ensure_bye_items(session, worldcup.id, 2)

    assert len(first) == 3
    assert len({b.id for b in first}) == 3
    assert all(b.is_bye and b.title == BYE_TITLE for b in first)
    assert [b.id for b in again] == sorted(b.id for b in first)[:2]


def test_ensure_bye_items_tops_up(session: Session, make_pool):
    worldcup = make_pool(5)
    ensure_bye_items(session, worldcup.id, 1)

    byes = ensure_bye_items(session, worldcup.id, 3)

    assert len({b.id for b in byes}) == 3
    total = session.exec(select(WorldCupItem).where(WorldCupItem.is_bye == True)).all()  # noqa: E712
    assert len(total) == 3


def test_ensure_bye_items_zero(session: Session, make_pool):
    assert ensure_bye_items(session, make_pool(4).id, 0) == []


def test_byes_are_per_pool(session: Session, make_pool):
    a, b = make_pool(3, "A"), make_pool(3, "B")
    [bye_a] = ensure_bye_items(session, a.id, 1)
    [bye_b] = ensure_bye_items(session, b.id, 1)

    assert bye_a.id != bye_b.id
    assert bye_b.worldcup_id == b.id


def test_pool_items_excludes_byes_and_keeps_order(session: Session, make_pool):
    worldcup = make_pool(3)
    ensure_bye_items(session, worldcup.id, 1)

    items = pool_items(session, worldcup.id)

    assert [i.title for i in items] == ["Item 1", "Item 2", "Item 3"]


def test_database_sink_increments_counters(session: Session, make_pool):
    worldcup = make_pool(4)
    champion = pool_items(session, worldcup.id)[2]
    sink = DatabaseStatsSink(session)

    sink.tournament_completed(worldcup.id, champion.id)
    sink.tournament_completed(worldcup.id, champion.id)
    session.commit()

    assert session.get(WorldCup, worldcup.id).participants == 2
    assert session.get(WorldCupItem, champion.id).championship_wins == 2
