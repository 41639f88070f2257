"""Link channels to talkgroup contacts by name."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from . import repository
from .models.enums import ContactType
from .models.records import Channel, Contact

logger = logging.getLogger(__name__)


def _key(name: str) -> str:
    return (name or "").strip().lower()


class ContactResolver:
    """Case-insensitive name -> contact index that grows as it resolves.

    Unknown talkgroup names become Group placeholders with negative IDs,
    so they never collide with real (positive) IDs and the same name
    always maps to the same placeholder within one run.
    """

    def __init__(self, session: Session, contacts: Optional[Iterable[Contact]] = None) -> None:
        self.session = session
        if contacts is None:
            contacts = repository.list_contacts(session)
        self._index: Dict[str, Contact] = {}
        self._lowest = repository.lowest_contact_id(session)
        for contact in contacts:
            self._index.setdefault(_key(contact.name), contact)
            self._lowest = min(self._lowest, contact.dmr_id)
        self.created: List[Contact] = []

    def lookup(self, name: str) -> Optional[Contact]:
        return self._index.get(_key(name))

    def resolve_name(self, name: str) -> Optional[Contact]:
        key = _key(name)
        if not key:
            return None
        contact = self._index.get(key)
        if contact is None:
            self._lowest -= 1
            contact = Contact(name=name.strip(), dmr_id=self._lowest, call_type=ContactType.GROUP)
            repository.save_contact(self.session, contact, allow_placeholder=True)
            self._index[key] = contact
            self.created.append(contact)
            logger.info("created placeholder talkgroup %r (ID %d)", contact.name, contact.dmr_id)
        return contact

    def resolve(self, channels: Iterable[Channel]) -> List[Channel]:
        """Set ``contact_id`` on every channel with a talkgroup reference.

        Channels are not persisted here; callers save them afterwards.
        """
        channels = list(channels)
        for channel in channels:
            contact = self.resolve_name(channel.tx_contact)
            if contact is not None:
                channel.contact_id = contact.id
        return channels


def resolve(session: Session, existing: Iterable[Contact], channels: Iterable[Channel]) -> List[Contact]:
    """Resolve ``channels`` against ``existing``; returns contacts created."""
    resolver = ContactResolver(session, existing)
    resolver.resolve(channels)
    return resolver.created
