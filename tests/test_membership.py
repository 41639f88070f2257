import pytest
from sqlalchemy import select

from codeplugs import membership, repository
from codeplugs.exceptions import RenumberError
from codeplugs.models.enums import EntityKind
from codeplugs.models.orm import ChannelRow, ScanListChannelRow, ZoneChannelRow
from codeplugs.models.records import Channel
from codeplugs.repository import session_scope


def _seed(engine):
    """Three channels, a zone holding two of them and a scan list holding one."""
    with session_scope(engine) as session:
        channels = repository.insert_channels(
            session, [Channel(name=n, rx_frequency=146.0 + i) for i, n in enumerate(["A", "B", "C"])]
        )
        ids = [c.id for c in channels]
        zone = repository.find_or_create_collection(session, EntityKind.ZONES, "Zone 1")
        membership.replace_members(session, EntityKind.ZONES, zone, [ids[2], ids[0]])
        scan = repository.find_or_create_collection(session, EntityKind.SCAN_LISTS, "Scan 1")
        membership.replace_members(session, EntityKind.SCAN_LISTS, scan, [ids[1]])
    return ids, zone, scan


def _state(engine):
    with session_scope(engine) as session:
        channels = [tuple(r) for r in session.execute(select(ChannelRow.id, ChannelRow.name).order_by(ChannelRow.id))]
        zones = [tuple(r) for r in session.execute(select(ZoneChannelRow.__table__).order_by(ZoneChannelRow.position))]
        scans = [tuple(r) for r in session.execute(select(ScanListChannelRow.__table__))]
    return channels, zones, scans


def test_replace_keeps_given_order_and_drops_duplicates(engine):
    ids, zone, _ = _seed(engine)
    with session_scope(engine) as session:
        result = membership.replace_members(session, EntityKind.ZONES, zone, [ids[1], ids[0], ids[1], ids[2]])
        assert result == [ids[1], ids[0], ids[2]]
        assert repository.member_ids(session, EntityKind.ZONES, zone) == result
        zones = repository.list_collections(session, EntityKind.ZONES)
    assert zones[0].members == ["B", "A", "C"]


def test_append_continues_after_last_position(engine):
    ids, zone, _ = _seed(engine)
    with session_scope(engine) as session:
        added = membership.append_members(session, EntityKind.ZONES, zone, [ids[0], ids[1]])
        assert added == [ids[1]]
        assert repository.member_ids(session, EntityKind.ZONES, zone) == [ids[2], ids[0], ids[1]]


def test_renumber_follows_new_order_and_keeps_memberships(engine):
    ids, zone, scan = _seed(engine)
    with session_scope(engine) as session:
        mapping = membership.renumber_channels(session, [ids[2], ids[0], ids[1]])
    assert mapping == {ids[2]: 1, ids[0]: 2, ids[1]: 3}

    with session_scope(engine) as session:
        assert [(c.id, c.name, c.sort_order) for c in repository.list_channels(session)] == [
            (1, "C", 1), (2, "A", 2), (3, "B", 3),
        ]
        assert repository.member_ids(session, EntityKind.ZONES, zone) == [1, 2]
        assert repository.member_ids(session, EntityKind.SCAN_LISTS, scan) == [3]


@pytest.mark.parametrize("bad", [lambda ids: ids[:2], lambda ids: [ids[0], ids[0], ids[1]], lambda ids: ids[:2] + [99]])
def test_invalid_renumber_changes_nothing(engine, bad):
    ids, _, _ = _seed(engine)
    before = _state(engine)
    assert len(before[1]) == 2 and len(before[2]) == 1
    with pytest.raises(RenumberError):
        with session_scope(engine) as session:
            membership.renumber_channels(session, bad(ids))
    assert _state(engine) == before


def test_deleting_channel_cascades_to_memberships(engine):
    ids, zone, _ = _seed(engine)
    with session_scope(engine) as session:
        repository.delete_channel(session, ids[0])
    with session_scope(engine) as session:
        assert repository.member_ids(session, EntityKind.ZONES, zone) == [ids[2]]


def test_failure_while_replaying_memberships_rolls_back_renumber(engine, monkeypatch):
    ids, _, _ = _seed(engine)
    before = _state(engine)

    def broken_insert(table):
        raise RuntimeError("replay failed")

    monkeypatch.setattr(membership, "insert", broken_insert)
    with pytest.raises(RuntimeError):
        with session_scope(engine) as session:
            membership.renumber_channels(session, [ids[2], ids[0], ids[1]])
    assert _state(engine) == before
