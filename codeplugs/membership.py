"""Ordered collection membership and global channel renumbering.

Membership order lives in the ``position`` column of each join table;
nothing relies on the store's insertion order.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.orm import Session

from . import repository
from .exceptions import RenumberError
from .models.enums import EntityKind
from .models.orm import ChannelRow, ScanListChannelRow, ZoneChannelRow

logger = logging.getLogger(__name__)

# Larger than any plausible channel count, so shifted keys never meet final ones
RENUMBER_OFFSET = 1_000_000


def _unique(ids: Iterable[int]) -> List[int]:
    seen = set()
    out = []
    for member_id in ids:
        if member_id not in seen:
            seen.add(member_id)
            out.append(member_id)
    return out


def replace_members(session: Session, kind: EntityKind, collection_id: int, member_ids: Sequence[int]) -> List[int]:
    """Make ``member_ids`` the exact, ordered membership of a collection."""
    tables = repository.collection_tables(kind)
    repository.get_collection(session, kind, collection_id)
    ordered = _unique(member_ids)
    session.execute(delete(tables.link).where(tables.owner_column == collection_id))
    if ordered:
        session.execute(
            insert(tables.link),
            [
                {tables.owner_key: collection_id, tables.member_key: member_id, "position": position}
                for position, member_id in enumerate(ordered)
            ],
        )
    session.flush()
    logger.debug("%s %d now has %d members", kind, collection_id, len(ordered))
    return ordered


def append_members(session: Session, kind: EntityKind, collection_id: int, member_ids: Sequence[int]) -> List[int]:
    """Add members after the current last position, skipping ones already present."""
    tables = repository.collection_tables(kind)
    repository.get_collection(session, kind, collection_id)
    present = set(repository.member_ids(session, kind, collection_id))
    last = session.scalar(select(func.max(tables.link.position)).where(tables.owner_column == collection_id))
    next_position = 0 if last is None else last + 1
    added = [member_id for member_id in _unique(member_ids) if member_id not in present]
    if added:
        session.execute(
            insert(tables.link),
            [
                {tables.owner_key: collection_id, tables.member_key: member_id, "position": next_position + i}
                for i, member_id in enumerate(added)
            ],
        )
        session.flush()
    return added


def _snapshot(session: Session, link) -> List[Dict[str, int]]:
    table = link.__table__
    return [dict(row._mapping) for row in session.execute(select(table))]


def renumber_channels(session: Session, ordered_ids: Sequence[int]) -> Dict[int, int]:
    """Reassign channel IDs so ``ordered_ids[i]`` becomes ID ``i + 1``.

    Zone and scan-list memberships survive with their positions. Runs in
    the caller's transaction; any failure must roll the whole thing back.
    Returns the old -> new ID map.
    """
    current = repository.channel_ids(session)
    ordered = list(ordered_ids)
    if len(ordered) != len(current):
        raise RenumberError(
            f"reorder lists {len(ordered)} channels but {len(current)} are stored"
        )
    if len(set(ordered)) != len(ordered) or set(ordered) != set(current):
        raise RenumberError("reorder list must name every stored channel exactly once")

    mapping = {old: new for new, old in enumerate(ordered, start=1)}
    links = (ZoneChannelRow, ScanListChannelRow)
    snapshots = {link: _snapshot(session, link) for link in links}
    for link in links:
        session.execute(delete(link.__table__))

    channels = ChannelRow.__table__
    session.execute(update(channels).values(id=channels.c.id + RENUMBER_OFFSET))
    for old, new in mapping.items():
        session.execute(
            update(channels)
            .where(channels.c.id == old + RENUMBER_OFFSET)
            .values(id=new, sort_order=new)
        )

    for link, rows in snapshots.items():
        replay = []
        for row in rows:
            new_id = mapping.get(row["channel_id"])
            if new_id is None:
                continue
            replay.append({**row, "channel_id": new_id})
        if replay:
            session.execute(insert(link.__table__), replay)
    session.flush()
    session.expire_all()
    logger.info("renumbered %d channels", len(mapping))
    return mapping
