"""Engine routing and persistence helpers for the codeplug store.

Every helper that takes a ``Session`` leaves commit/rollback to the
caller (normally :func:`session_scope`), so several helpers can share one
transaction.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple, Union

from sqlalchemy import create_engine, delete, event, func, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .exceptions import NotFoundError
from .models.enums import EntityKind
from .models.orm import (
    Base,
    ChannelRow,
    ContactListEntryRow,
    ContactListRow,
    ContactRow,
    DirectoryContactRow,
    RoamingChannelRow,
    RoamingZoneChannelRow,
    RoamingZoneRow,
    ScanListChannelRow,
    ScanListRow,
    ZoneChannelRow,
    ZoneRow,
)
from .models.records import Channel, Contact, DirectoryContact, RoamingChannel, RoamingZone, ScanList, Zone

logger = logging.getLogger(__name__)

_engine_cache: Dict[str, Engine] = {}


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(db_path: Union[str, Path]) -> Engine:
    """Return the cached engine for ``db_path``, creating tables on first use."""
    key = str(db_path)
    engine = _engine_cache.get(key)
    if engine is None:
        if key != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(f"sqlite:///{key}")
        event.listen(engine, "connect", _enable_foreign_keys)
        Base.metadata.create_all(engine)
        _engine_cache[key] = engine
        logger.debug("opened codeplug store %s", key)
    return engine


def dispose_engines() -> None:
    for engine in _engine_cache.values():
        engine.dispose()
    _engine_cache.clear()


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _columns(row: Any) -> Dict[str, Any]:
    return {c.name: getattr(row, c.name) for c in row.__table__.columns}


# ------------------------------------------------------------------
# Channels
# ------------------------------------------------------------------


def list_channels(session: Session, include_skipped: bool = True) -> List[Channel]:
    stmt = select(ChannelRow).order_by(ChannelRow.sort_order, ChannelRow.id)
    if not include_skipped:
        stmt = stmt.where(ChannelRow.skip.is_(False))
    return [Channel.from_row(_columns(row)) for row in session.scalars(stmt).unique()]


def get_channel(session: Session, channel_id: int) -> Channel:
    row = session.get(ChannelRow, channel_id)
    if row is None:
        raise NotFoundError(f"channel {channel_id} not found")
    return Channel.from_row(_columns(row))


def channel_ids(session: Session) -> List[int]:
    return list(session.scalars(select(ChannelRow.id).order_by(ChannelRow.id)))


def channel_keys(session: Session) -> Set[Tuple[str, float]]:
    """(name, rx frequency) pairs already stored, used to skip duplicates."""
    return {
        (name, round(rx, 6))
        for name, rx in session.execute(select(ChannelRow.name, ChannelRow.rx_frequency))
    }


def insert_channels(session: Session, channels: Iterable[Channel]) -> List[Channel]:
    """Validate and insert channels after the current last sort position."""
    channels = list(channels)
    for channel in channels:
        channel.validate()
    next_order = (session.scalar(select(func.max(ChannelRow.sort_order))) or 0) + 1
    rows = []
    for offset, channel in enumerate(channels):
        channel.sort_order = next_order + offset
        values = channel.to_row()
        values.pop("id", None)
        row = ChannelRow(**values)
        session.add(row)
        rows.append(row)
    session.flush()
    for channel, row in zip(channels, rows):
        channel.id = row.id
    return channels


def save_channel(session: Session, channel: Channel) -> Channel:
    channel.validate()
    if channel.id is None:
        return insert_channels(session, [channel])[0]
    row = session.get(ChannelRow, channel.id)
    if row is None:
        raise NotFoundError(f"channel {channel.id} not found")
    for key, value in channel.to_row().items():
        if key != "id":
            setattr(row, key, value)
    session.flush()
    return channel


def delete_channel(session: Session, channel_id: int) -> None:
    row = session.get(ChannelRow, channel_id)
    if row is None:
        raise NotFoundError(f"channel {channel_id} not found")
    session.delete(row)
    session.flush()


def delete_all_channels(session: Session) -> int:
    result = session.execute(delete(ChannelRow))
    return result.rowcount or 0


# ------------------------------------------------------------------
# Contacts (talkgroups)
# ------------------------------------------------------------------


def list_contacts(session: Session) -> List[Contact]:
    rows = session.scalars(select(ContactRow).order_by(ContactRow.name, ContactRow.id))
    return [Contact.from_row(_columns(row)) for row in rows]


def save_contact(session: Session, contact: Contact, allow_placeholder: bool = False) -> Contact:
    contact.validate(allow_placeholder=allow_placeholder)
    values = contact.to_row()
    values.pop("id", None)
    if contact.id is None:
        row = ContactRow(**values)
        session.add(row)
    else:
        row = session.get(ContactRow, contact.id)
        if row is None:
            raise NotFoundError(f"contact {contact.id} not found")
        for key, value in values.items():
            setattr(row, key, value)
    session.flush()
    contact.id = row.id
    return contact


def upsert_contacts(session: Session, contacts: Iterable[Contact]) -> int:
    """Insert talkgroups, updating the name of an existing (ID, type) pair."""
    existing = {
        (row.dmr_id, row.call_type): row for row in session.scalars(select(ContactRow))
    }
    count = 0
    for contact in contacts:
        contact.validate()
        row = existing.get((contact.dmr_id, str(contact.call_type)))
        if row is None:
            row = ContactRow(name=contact.name, dmr_id=contact.dmr_id, call_type=str(contact.call_type))
            session.add(row)
            existing[(row.dmr_id, row.call_type)] = row
        else:
            row.name = contact.name
        count += 1
    session.flush()
    return count


def lowest_contact_id(session: Session) -> int:
    return min(session.scalar(select(func.min(ContactRow.dmr_id))) or 0, 0)


def delete_contact(session: Session, contact_id: int) -> None:
    row = session.get(ContactRow, contact_id)
    if row is None:
        raise NotFoundError(f"contact {contact_id} not found")
    session.delete(row)
    session.flush()


# ------------------------------------------------------------------
# Directory contacts (soft delete)
# ------------------------------------------------------------------

_DIRECTORY_COLUMNS = ("dmr_id", "callsign", "name", "city", "state", "country", "remarks")


def upsert_directory(
    engine: Engine,
    contacts: Iterable[DirectoryContact],
    batch_size: int = 1000,
    on_batch: Optional[Callable[[int], None]] = None,
) -> int:
    """Insert or refresh directory rows, one transaction per batch.

    A row that was soft-deleted is resurrected: every field is overwritten
    and ``deleted_at`` is cleared. ``on_batch`` receives the row count of
    each committed batch.
    """
    table = DirectoryContactRow.__table__
    stmt = sqlite_insert(table)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.dmr_id],
        set_={
            **{name: stmt.excluded[name] for name in _DIRECTORY_COLUMNS if name != "dmr_id"},
            "deleted_at": None,
        },
    )
    total = 0
    batch: List[Dict[str, Any]] = []
    for contact in contacts:
        batch.append({name: getattr(contact, name) for name in _DIRECTORY_COLUMNS})
        if len(batch) >= batch_size:
            total += _write_batch(engine, stmt, batch, on_batch)
            batch = []
    if batch:
        total += _write_batch(engine, stmt, batch, on_batch)
    return total


def _write_batch(engine: Engine, stmt, batch: List[Dict[str, Any]], on_batch=None) -> int:
    # Later duplicates of the same ID win, as they would row by row
    unique = list({row["dmr_id"]: row for row in batch}.values())
    with session_scope(engine) as session:
        session.execute(stmt, unique)
    logger.debug("directory batch of %d rows written", len(unique))
    if on_batch is not None:
        on_batch(len(batch))
    return len(unique)


def list_directory(
    session: Session,
    include_deleted: bool = False,
    dmr_ids: Optional[Iterable[int]] = None,
    limit: Optional[int] = None,
) -> List[DirectoryContact]:
    stmt = select(DirectoryContactRow).order_by(DirectoryContactRow.dmr_id)
    if not include_deleted:
        stmt = stmt.where(DirectoryContactRow.deleted_at.is_(None))
    if dmr_ids is not None:
        stmt = stmt.where(DirectoryContactRow.dmr_id.in_(list(dmr_ids)))
    if limit is not None:
        stmt = stmt.limit(limit)
    return [DirectoryContact.from_row(_columns(row)) for row in session.scalars(stmt)]


def soft_delete_directory(session: Session, dmr_ids: Optional[Iterable[int]] = None) -> int:
    stmt = (
        update(DirectoryContactRow)
        .where(DirectoryContactRow.deleted_at.is_(None))
        .values(deleted_at=datetime.utcnow())
    )
    if dmr_ids is not None:
        stmt = stmt.where(DirectoryContactRow.dmr_id.in_(list(dmr_ids)))
    return session.execute(stmt).rowcount or 0


# ------------------------------------------------------------------
# Ordered collections
# ------------------------------------------------------------------


@dataclass(frozen=True)
class CollectionTables:
    """ORM wiring for one kind of ordered collection."""

    row: type
    link: type
    owner_key: str
    member_key: str
    member_row: type
    record: type

    @property
    def owner_column(self):
        return getattr(self.link, self.owner_key)

    @property
    def member_column(self):
        return getattr(self.link, self.member_key)


COLLECTIONS: Dict[EntityKind, CollectionTables] = {
    EntityKind.ZONES: CollectionTables(ZoneRow, ZoneChannelRow, "zone_id", "channel_id", ChannelRow, Zone),
    EntityKind.SCAN_LISTS: CollectionTables(
        ScanListRow, ScanListChannelRow, "scan_list_id", "channel_id", ChannelRow, ScanList
    ),
    EntityKind.ROAMING_ZONES: CollectionTables(
        RoamingZoneRow,
        RoamingZoneChannelRow,
        "roaming_zone_id",
        "roaming_channel_id",
        RoamingChannelRow,
        RoamingZone,
    ),
}


def collection_tables(kind: EntityKind) -> CollectionTables:
    try:
        return COLLECTIONS[EntityKind(kind)]
    except (KeyError, ValueError):
        raise NotFoundError(f"{kind} is not a channel collection") from None


def list_collections(session: Session, kind: EntityKind) -> list:
    """Return zone/scan-list/roaming-zone records with member names in order."""
    tables = collection_tables(kind)
    records = [
        tables.record(name=row.name, id=row.id)
        for row in session.scalars(select(tables.row).order_by(tables.row.id))
    ]
    by_id = {record.id: record for record in records}
    stmt = (
        select(tables.owner_column, tables.member_row.name)
        .join(tables.member_row, tables.member_row.id == tables.member_column)
        .order_by(tables.owner_column, tables.link.position)
    )
    for owner_id, member in session.execute(stmt):
        by_id[owner_id].members.append(member)
    return records


def member_ids(session: Session, kind: EntityKind, collection_id: int) -> List[int]:
    tables = collection_tables(kind)
    stmt = (
        select(tables.member_column)
        .where(tables.owner_column == collection_id)
        .order_by(tables.link.position)
    )
    return list(session.scalars(stmt))


def get_collection(session: Session, kind: EntityKind, collection_id: int):
    tables = collection_tables(kind)
    row = session.get(tables.row, collection_id)
    if row is None:
        raise NotFoundError(f"{kind} {collection_id} not found")
    return row


def find_or_create_collection(session: Session, kind: EntityKind, name: str) -> int:
    tables = collection_tables(kind)
    row = session.scalar(select(tables.row).where(tables.row.name == name))
    if row is None:
        row = tables.row(name=name)
        session.add(row)
        session.flush()
    return row.id


def rename_collection(session: Session, kind: EntityKind, collection_id: int, name: str) -> None:
    row = get_collection(session, kind, collection_id)
    row.name = name
    session.flush()


def delete_collection(session: Session, kind: EntityKind, collection_id: int) -> None:
    session.delete(get_collection(session, kind, collection_id))
    session.flush()


def ids_by_name(session: Session, row_cls: type) -> Dict[str, int]:
    """Name -> ID map; the first row (lowest sort position) wins on duplicates."""
    order = row_cls.sort_order if hasattr(row_cls, "sort_order") else row_cls.id
    mapping: Dict[str, int] = {}
    for row_id, name in session.execute(select(row_cls.id, row_cls.name).order_by(order, row_cls.id)):
        mapping.setdefault(name, row_id)
    return mapping


def resolve_member_ids(mapping: Dict[str, int], names: Sequence[str]) -> Tuple[List[int], List[str]]:
    """Map member names to IDs, dropping duplicates; returns (ids, unknown names)."""
    ids: List[int] = []
    unknown: List[str] = []
    seen: Set[int] = set()
    for name in names:
        member_id = mapping.get(name)
        if member_id is None:
            unknown.append(name)
        elif member_id not in seen:
            seen.add(member_id)
            ids.append(member_id)
    return ids, unknown


# ------------------------------------------------------------------
# Roaming channels
# ------------------------------------------------------------------


def list_roaming_channels(session: Session) -> List[RoamingChannel]:
    rows = session.scalars(select(RoamingChannelRow).order_by(RoamingChannelRow.id))
    return [RoamingChannel.from_row(_columns(row)) for row in rows]


def insert_roaming_channels(session: Session, channels: Iterable[RoamingChannel]) -> List[RoamingChannel]:
    channels = list(channels)
    rows = []
    for channel in channels:
        values = channel.to_row()
        values.pop("id", None)
        row = RoamingChannelRow(**values)
        session.add(row)
        rows.append(row)
    session.flush()
    for channel, row in zip(channels, rows):
        channel.id = row.id
    return channels


def delete_roaming_channel(session: Session, channel_id: int) -> None:
    row = session.get(RoamingChannelRow, channel_id)
    if row is None:
        raise NotFoundError(f"roaming channel {channel_id} not found")
    session.delete(row)
    session.flush()


# ------------------------------------------------------------------
# Contact (filter) lists
# ------------------------------------------------------------------


def create_contact_list(
    session: Session, name: str, dmr_ids: Iterable[int], description: str = ""
) -> int:
    """Create or replace the named filter list."""
    row = session.scalar(select(ContactListRow).where(ContactListRow.name == name))
    if row is None:
        row = ContactListRow(name=name, description=description)
        session.add(row)
        session.flush()
    else:
        row.description = description or row.description
        session.execute(delete(ContactListEntryRow).where(ContactListEntryRow.list_id == row.id))
    for dmr_id in sorted(set(dmr_ids)):
        session.add(ContactListEntryRow(list_id=row.id, dmr_id=dmr_id))
    session.flush()
    return row.id


def list_contact_lists(session: Session) -> List[Dict[str, Any]]:
    counts = dict(
        session.execute(
            select(ContactListEntryRow.list_id, func.count()).group_by(ContactListEntryRow.list_id)
        ).all()
    )
    return [
        {
            "id": row.id,
            "name": row.name,
            "description": row.description,
            "created_at": row.created_at,
            "count": counts.get(row.id, 0),
        }
        for row in session.scalars(select(ContactListRow).order_by(ContactListRow.name))
    ]


def contact_list_ids(session: Session, name: str) -> Set[int]:
    row = session.scalar(select(ContactListRow).where(ContactListRow.name == name))
    if row is None:
        raise NotFoundError(f"contact list {name!r} not found")
    return set(
        session.scalars(select(ContactListEntryRow.dmr_id).where(ContactListEntryRow.list_id == row.id))
    )


def delete_contact_list(session: Session, list_id: int) -> None:
    row = session.get(ContactListRow, list_id)
    if row is None:
        raise NotFoundError(f"contact list {list_id} not found")
    session.delete(row)
    session.flush()
