"""Editing operations on a codeplug store.

Each public method runs in its own transaction.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set

from sqlalchemy.engine import Engine

from . import membership, repository
from .codecs import load_filter_list
from .codecs.base import Source
from .contacts import ContactResolver
from .models.enums import EntityKind
from .models.records import Channel, Contact, DirectoryContact, RoamingChannel
from .normalizers import fix_bandwidth
from .repository import session_scope

logger = logging.getLogger(__name__)


class CodeplugService:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    def list_channels(self) -> List[Channel]:
        with session_scope(self.engine) as session:
            return repository.list_channels(session)

    def get_channel(self, channel_id: int) -> Channel:
        with session_scope(self.engine) as session:
            return repository.get_channel(session, channel_id)

    def save_channel(self, channel: Channel) -> Channel:
        """Insert or update a channel, linking its talkgroup by name."""
        channel.validate()
        with session_scope(self.engine) as session:
            if channel.tx_contact:
                ContactResolver(session).resolve([channel])
            else:
                channel.contact_id = None
            return repository.save_channel(session, channel)

    def delete_channel(self, channel_id: int) -> None:
        with session_scope(self.engine) as session:
            repository.delete_channel(session, channel_id)

    def reorder_channels(self, ordered_ids: Sequence[int]) -> Dict[int, int]:
        """Renumber every channel to follow ``ordered_ids``; returns old -> new IDs."""
        with session_scope(self.engine) as session:
            return membership.renumber_channels(session, ordered_ids)

    def fix_bandwidths(self) -> int:
        changed = 0
        with session_scope(self.engine) as session:
            for channel in repository.list_channels(session):
                if fix_bandwidth(channel):
                    repository.save_channel(session, channel)
                    changed += 1
        logger.info("fixed bandwidth on %d channels", changed)
        return changed

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    def list_contacts(self) -> List[Contact]:
        with session_scope(self.engine) as session:
            return repository.list_contacts(session)

    def save_contact(self, contact: Contact) -> Contact:
        with session_scope(self.engine) as session:
            return repository.save_contact(session, contact)

    def delete_contact(self, contact_id: int) -> None:
        with session_scope(self.engine) as session:
            repository.delete_contact(session, contact_id)

    def list_directory(self, limit: Optional[int] = None, include_deleted: bool = False) -> List[DirectoryContact]:
        with session_scope(self.engine) as session:
            return repository.list_directory(session, include_deleted=include_deleted, limit=limit)

    def delete_directory(self, dmr_ids: Optional[Sequence[int]] = None) -> int:
        """Soft-delete directory rows (all of them when ``dmr_ids`` is None)."""
        with session_scope(self.engine) as session:
            return repository.soft_delete_directory(session, dmr_ids)

    # ------------------------------------------------------------------
    # Zones / scan lists / roaming zones
    # ------------------------------------------------------------------

    def list_collections(self, kind: EntityKind) -> list:
        with session_scope(self.engine) as session:
            return repository.list_collections(session, kind)

    def create_collection(self, kind: EntityKind, name: str, member_ids: Sequence[int] = ()) -> int:
        with session_scope(self.engine) as session:
            collection_id = repository.find_or_create_collection(session, kind, name)
            if member_ids:
                membership.replace_members(session, kind, collection_id, member_ids)
            return collection_id

    def rename_collection(self, kind: EntityKind, collection_id: int, name: str) -> None:
        with session_scope(self.engine) as session:
            repository.rename_collection(session, kind, collection_id, name)

    def delete_collection(self, kind: EntityKind, collection_id: int) -> None:
        with session_scope(self.engine) as session:
            repository.delete_collection(session, kind, collection_id)

    def member_ids(self, kind: EntityKind, collection_id: int) -> List[int]:
        with session_scope(self.engine) as session:
            repository.get_collection(session, kind, collection_id)
            return repository.member_ids(session, kind, collection_id)

    def assign_members(
        self, kind: EntityKind, collection_id: int, member_ids: Sequence[int], append: bool = False
    ) -> List[int]:
        """Replace (or extend) a collection's ordered membership."""
        with session_scope(self.engine) as session:
            if append:
                membership.append_members(session, kind, collection_id, member_ids)
            else:
                membership.replace_members(session, kind, collection_id, member_ids)
            return repository.member_ids(session, kind, collection_id)

    # ------------------------------------------------------------------
    # Roaming channels
    # ------------------------------------------------------------------

    def list_roaming_channels(self) -> List[RoamingChannel]:
        with session_scope(self.engine) as session:
            return repository.list_roaming_channels(session)

    def add_roaming_channel(self, channel: RoamingChannel) -> RoamingChannel:
        with session_scope(self.engine) as session:
            return repository.insert_roaming_channels(session, [channel])[0]

    def delete_roaming_channel(self, channel_id: int) -> None:
        with session_scope(self.engine) as session:
            repository.delete_roaming_channel(session, channel_id)

    # ------------------------------------------------------------------
    # Filter lists
    # ------------------------------------------------------------------

    def import_contact_list(self, name: str, source: Source, description: str = "") -> int:
        ids = load_filter_list(source)
        with session_scope(self.engine) as session:
            repository.create_contact_list(session, name, ids, description)
        logger.info("filter list %r holds %d IDs", name, len(ids))
        return len(ids)

    def list_contact_lists(self) -> List[dict]:
        with session_scope(self.engine) as session:
            return repository.list_contact_lists(session)

    def delete_contact_list(self, list_id: int) -> None:
        with session_scope(self.engine) as session:
            repository.delete_contact_list(session, list_id)

    def contact_list_ids(self, name: str) -> Set[int]:
        with session_scope(self.engine) as session:
            return repository.contact_list_ids(session, name)
